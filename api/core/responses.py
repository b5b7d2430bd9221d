"""
Error responses.

Maps the error taxonomy in `core/errors.py` to status codes and
`{"error": ...}` envelopes, and registers the matching exception handlers.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response, status
from starlette.exceptions import HTTPException as StarletteHTTPException

from .envelope import write_json
from .errors import (
    FailedValidationError,
    MalformedInputError,
    RecordNotFoundError,
    StorageError,
    UnsafeSortValueError,
)

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"
NOT_FOUND_MESSAGE = "the requested resource could not be found"


def log_error(request: Request, exc: BaseException) -> None:
    logger.error(
        "server_error method=%s uri=%s error=%s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )


def error_response(
    request: Request,
    status_code: int,
    message: object,
    headers: dict[str, str] | None = None,
) -> Response:
    try:
        return write_json(status_code, {"error": message}, headers)
    except (TypeError, ValueError) as exc:
        log_error(request, exc)
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def server_error_response(request: Request, exc: BaseException) -> Response:
    log_error(request, exc)
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


def not_found_response(request: Request) -> Response:
    return error_response(request, status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)


def method_not_allowed_response(request: Request) -> Response:
    message = f"the {request.method} method is not supported for this resource"
    return error_response(request, status.HTTP_405_METHOD_NOT_ALLOWED, message)


def bad_request_response(request: Request, message: str) -> Response:
    return error_response(request, status.HTTP_400_BAD_REQUEST, message)


def failed_validation_response(request: Request, errors: dict[str, str]) -> Response:
    return error_response(request, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


def rate_limit_exceeded_response(request: Request) -> Response:
    return error_response(request, status.HTTP_429_TOO_MANY_REQUESTS, "rate limit exceeded")


async def _failed_validation_handler(request: Request, exc: FailedValidationError) -> Response:
    return failed_validation_response(request, exc.errors)


async def _malformed_input_handler(request: Request, exc: MalformedInputError) -> Response:
    return bad_request_response(request, exc.message)


async def _not_found_handler(request: Request, exc: RecordNotFoundError) -> Response:
    return not_found_response(request)


async def _server_error_handler(request: Request, exc: Exception) -> Response:
    return server_error_response(request, exc)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return not_found_response(request)
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return method_not_allowed_response(request)
    return error_response(request, exc.status_code, exc.detail, getattr(exc, "headers", None))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FailedValidationError, _failed_validation_handler)
    app.add_exception_handler(MalformedInputError, _malformed_input_handler)
    app.add_exception_handler(RecordNotFoundError, _not_found_handler)
    app.add_exception_handler(StorageError, _server_error_handler)
    app.add_exception_handler(UnsafeSortValueError, _server_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
