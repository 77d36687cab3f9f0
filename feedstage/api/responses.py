from collections.abc import Sequence

from fastapi.responses import JSONResponse
from pydantic import BaseModel


def dump(model: BaseModel) -> dict:
    """Wire form of a DTO: camelCase, absent fields omitted."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def render(
    payload: BaseModel | Sequence[BaseModel],
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content = dump(payload) if isinstance(payload, BaseModel) else [dump(p) for p in payload]
    return JSONResponse(content=content, status_code=status_code, headers=headers)
