from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def paginate(items: Sequence[T], offset: int | None = None, limit: int | None = None) -> list[T]:
    """
    Slice a page out of items.

    offset is 1-based; both bounds are optional. Offsets past the end give an
    empty page.
    """
    start = 0 if offset is None else offset - 1
    if start >= len(items):
        return []
    end = len(items) if limit is None else min(start + limit, len(items))
    return list(items[start:end])
