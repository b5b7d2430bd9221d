"""
JSON envelopes: strict request-body decoding and response encoding.

Every decode failure is a `MalformedInputError` whose message tells the client
what was wrong with the body:
- too large, empty, badly-formed (with offset when known), truncated
- unknown key, wrong type for a field (or at an offset)
- more than one JSON value
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Mapping, TypeVar

from fastapi import Request, Response
from pydantic import BaseModel, ValidationError

from .errors import MalformedInputError

DEFAULT_MAX_BYTES = 256_000

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _too_large(max_bytes: int) -> MalformedInputError:
    return MalformedInputError(f"the body must not be larger than {max_bytes} bytes")


def _schema_error(exc: ValidationError, *, offset: int) -> MalformedInputError:
    first = exc.errors()[0]
    loc = [str(part) for part in first.get("loc", ())]
    if first.get("type") == "extra_forbidden" and loc:
        return MalformedInputError(f'body contains unknown key "{loc[-1]}"')
    if loc:
        return MalformedInputError(f'the body contains the incorrect JSON type for field "{".".join(loc)}"')
    return MalformedInputError(f"the body contains the incorrect JSON type (at character {offset})")


def read_json(body: bytes, schema: type[SchemaT], *, max_bytes: int = DEFAULT_MAX_BYTES) -> SchemaT:
    """
    Decode exactly one JSON object from `body` into `schema`.
    """
    if len(body) > max_bytes:
        raise _too_large(max_bytes)

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedInputError(f"the body contains badly-formed JSON (at character {exc.start})") from exc

    stripped = text.lstrip()
    if not stripped:
        raise MalformedInputError("the body must not be empty")
    lead = len(text) - len(stripped)

    try:
        value, end = json.JSONDecoder().raw_decode(stripped)
    except json.JSONDecodeError as exc:
        # Running out of input mid-value means the body was cut short.
        if exc.pos >= len(stripped) or exc.msg.startswith("Unterminated string"):
            raise MalformedInputError("the body contains badly-formed JSON") from exc
        raise MalformedInputError(
            f"the body contains badly-formed JSON (at character {lead + exc.pos})"
        ) from exc

    try:
        decoded = schema.model_validate(value)
    except ValidationError as exc:
        raise _schema_error(exc, offset=lead + end) from exc

    if stripped[end:].strip():
        raise MalformedInputError("the body must contain only one JSON value")
    return decoded


async def read_request_json(
    request: Request,
    schema: type[SchemaT],
    *,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> SchemaT:
    """
    Read the request body, stopping as soon as it grows past `max_bytes`.
    """
    declared = (request.headers.get("content-length") or "").strip()
    if declared.isdigit() and int(declared) > max_bytes:
        raise _too_large(max_bytes)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise _too_large(max_bytes)
    return read_json(bytes(body), schema, max_bytes=max_bytes)


def _to_jsonable(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(
    status_code: int,
    data: Mapping[str, Any],
    headers: Mapping[str, str] | None = None,
) -> Response:
    """
    Serialize an envelope (top-level key -> payload) into a JSON response.

    Serialization errors propagate to the caller.
    """
    payload = json.dumps(dict(data), indent="\t", default=_to_jsonable) + "\n"
    response = Response(
        content=payload.encode("utf-8"),
        status_code=status_code,
        media_type="application/json",
    )
    for key, value in (headers or {}).items():
        response.headers[key] = value
    return response
