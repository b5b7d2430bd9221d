"""
Record API endpoints.

`build_router(kind)` produces the CRUD + list routes for one kind. The
repository for a kind comes from `app.state.repositories[kind.plural]`.
"""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.datastructures import QueryParams

from core.config import Settings, get_settings
from core.envelope import read_request_json, write_json
from core.errors import FailedValidationError, RecordNotFoundError
from core.filters import Filters, validate_filters
from core.validator import Validator

from . import schemas
from .kinds import RecordKind
from .models import Record, validate_record
from .repository import RecordRepository

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_SORT = "id"

# bigint upper bound
MAX_ID = 2**63 - 1

# ASCII digits only; int() alone also takes spaces, underscores and other scripts.
_ID_PATTERN = re.compile(r"[0-9]+")
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def read_id_param(raw: str) -> int:
    """
    Parse a path id. Anything that is not a positive integer is a missing record.
    """
    if not _ID_PATTERN.fullmatch(raw or ""):
        raise RecordNotFoundError()
    record_id = int(raw)
    if record_id < 1 or record_id > MAX_ID:
        raise RecordNotFoundError()
    return record_id


def read_string(query: QueryParams, key: str, default: str) -> str:
    value = query.get(key, "")
    return value if value else default


def read_int(query: QueryParams, key: str, default: int, v: Validator) -> int:
    value = query.get(key, "")
    if not value:
        return default
    if not _INT_PATTERN.fullmatch(value):
        v.add_error(key, "must be an integer value")
        return default
    return int(value)


def build_router(kind: RecordKind) -> APIRouter:
    router = APIRouter(prefix=kind.path, tags=[kind.plural])

    def get_repository(request: Request) -> RecordRepository:
        return request.app.state.repositories[kind.plural]

    @router.post("")
    async def create_record(
        request: Request,
        settings: Settings = Depends(get_settings),
        repository: RecordRepository = Depends(get_repository),
    ) -> Response:
        payload = await read_request_json(
            request,
            schemas.CreateRecordRequest,
            max_bytes=settings.max_body_bytes,
        )
        record = Record(content=payload.content, author=payload.author)

        v = Validator()
        validate_record(v, record)
        if not v.is_empty():
            raise FailedValidationError(v.errors)

        await repository.insert(record)
        return write_json(
            status.HTTP_201_CREATED,
            {kind.singular: record},
            {"Location": f"{kind.path}/{record.id}"},
        )

    @router.get("/{record_id}")
    async def show_record(
        record_id: str,
        repository: RecordRepository = Depends(get_repository),
    ) -> Response:
        record = await repository.get(read_id_param(record_id))
        return write_json(status.HTTP_200_OK, {kind.singular: record})

    @router.patch("/{record_id}")
    async def update_record(
        record_id: str,
        request: Request,
        settings: Settings = Depends(get_settings),
        repository: RecordRepository = Depends(get_repository),
    ) -> Response:
        record = await repository.get(read_id_param(record_id))

        payload = await read_request_json(
            request,
            schemas.UpdateRecordRequest,
            max_bytes=settings.max_body_bytes,
        )
        if payload.content is not None:
            record.content = payload.content
        if payload.author is not None:
            record.author = payload.author

        v = Validator()
        validate_record(v, record)
        if not v.is_empty():
            raise FailedValidationError(v.errors)

        await repository.update(record)
        return write_json(status.HTTP_200_OK, {kind.singular: record})

    @router.delete("/{record_id}")
    async def delete_record(
        record_id: str,
        repository: RecordRepository = Depends(get_repository),
    ) -> Response:
        await repository.delete(read_id_param(record_id))
        return write_json(status.HTTP_200_OK, {"message": f"{kind.singular} successfully deleted"})

    @router.get("")
    async def list_records(
        request: Request,
        repository: RecordRepository = Depends(get_repository),
    ) -> Response:
        query = request.query_params
        content = read_string(query, "content", "")
        author = read_string(query, "author", "")

        v = Validator()
        filters = Filters(
            page=read_int(query, "page", DEFAULT_PAGE, v),
            page_size=read_int(query, "page_size", DEFAULT_PAGE_SIZE, v),
            sort=read_string(query, "sort", DEFAULT_SORT),
            sort_safelist=kind.sort_safelist,
        )
        validated = validate_filters(v, filters)
        if validated is None:
            raise FailedValidationError(v.errors)

        records, metadata = await repository.get_all(content, author, validated)
        return write_json(status.HTTP_200_OK, {kind.plural: records, "@metadata": metadata})

    return router
