"""
Content negotiation for single-value resources.

A scalar is written as JSON (strings quoted, None as null) or as the raw text,
depending on Accept. Request bodies are JSON-decoded only when Content-Type
says they are JSON.
"""

import json
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

JSON_MEDIA_TYPES = frozenset({"application/json", "application/*", "*/*"})
TEXT_MEDIA_TYPES = frozenset({"text/plain", "text/*"})


def _media_types(header: str) -> list[str]:
    return [part.split(";")[0].strip().lower() for part in header.split(",") if part.strip()]


def negotiate(value: Any, accept: str | None, text: str | None = None) -> Response:
    """
    Render value per the Accept header; 406 when neither JSON nor text is acceptable.

    text overrides the plain-text rendering, which defaults to str(value).
    """
    if not accept:
        return JSONResponse(content=value)
    media_types = _media_types(accept)
    if any(m in JSON_MEDIA_TYPES for m in media_types):
        return JSONResponse(content=value)
    if any(m in TEXT_MEDIA_TYPES for m in media_types):
        if text is None:
            text = "" if value is None else str(value)
        return PlainTextResponse(text)
    raise HTTPException(
        status_code=status.HTTP_406_NOT_ACCEPTABLE,
        detail=f"Unsupported media type(s): {accept}",
    )


def decode_scalar(raw: str, content_type: str) -> str | None:
    """Decode a scalar body; ValueError when JSON was declared but no JSON string was sent."""
    if "application/json" not in content_type.lower():
        return raw
    try:
        value = json.loads(raw) if raw else None
    except json.JSONDecodeError as e:
        raise ValueError("Invalid JSON") from e
    if value is not None and not isinstance(value, str):
        raise ValueError("Expected a JSON string")
    return value


async def scalar_body(request: Request) -> str | None:
    """Read a single string value from the request body."""
    body = await request.body()
    try:
        return decode_scalar(body.decode("utf-8"), request.headers.get("content-type", ""))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


async def lenient_scalar_body(request: Request) -> str | None:
    """Like scalar_body, but a body that cannot be decoded reads as None."""
    raw = (await request.body()).decode("utf-8", errors="replace")
    try:
        return decode_scalar(raw, request.headers.get("content-type", ""))
    except ValueError:
        return None
