"""
Conditional GET support.

ETags are a SHA-256 over the canonical JSON of the representation sent (or of
each item of a collection, in order), so two reads of an unchanged resource
always agree.
"""

import hashlib
from collections.abc import Sequence

from fastapi import Request
from fastapi.responses import Response
from pydantic import BaseModel


def build_etag(sha256: str) -> str:
    # first 16 hex chars are plenty for a per-resource fingerprint
    return f'"{sha256[:16]}"'


def compute_etag(entity: BaseModel | Sequence[BaseModel]) -> str:
    digest = hashlib.sha256()
    if isinstance(entity, BaseModel):
        digest.update(entity.model_dump_json().encode())
    else:
        for item in entity:
            digest.update(item.model_dump_json().encode())
            digest.update(b"\n")
    return build_etag(digest.hexdigest())


def check_if_none_match(request: Request, etag: str) -> bool:
    """
    Check If-None-Match header for conditional GET.

    Returns True if client has cached version (304 should be returned).
    """
    if_none_match = request.headers.get("if-none-match")
    if if_none_match:
        client_etags = [e.strip() for e in if_none_match.split(",")]
        return etag in client_etags or "*" in client_etags
    return False


def not_modified(etag: str) -> Response:
    return Response(status_code=304, headers={"ETag": etag})
