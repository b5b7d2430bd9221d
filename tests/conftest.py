import asyncio
import os
from datetime import datetime, timezone

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LIMITER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from core.errors import RecordNotFoundError
from core.filters import Metadata, ValidatedFilters, calculate_metadata
from main import create_app
from records import kinds
from records.models import Record


def _matches(text: str, query: str) -> bool:
    # Rough stand-in for plainto_tsquery('simple', ...): every word must appear.
    words = text.lower().split()
    return all(term in words for term in query.lower().split())


class InMemoryRecordRepository:
    def __init__(self, kind):
        self.kind = kind
        self.rows: dict[int, Record] = {}
        self._next_id = 1

    async def insert(self, record: Record) -> None:
        record.id = self._next_id
        record.created_at = datetime.now(timezone.utc)
        record.version = 1
        self._next_id += 1
        self.rows[record.id] = Record(**vars(record))

    async def get(self, record_id: int) -> Record:
        if record_id < 1 or record_id not in self.rows:
            raise RecordNotFoundError()
        return Record(**vars(self.rows[record_id]))

    async def update(self, record: Record) -> None:
        stored = self.rows.get(record.id)
        if stored is None:
            raise RecordNotFoundError()
        stored.content = record.content
        stored.author = record.author
        stored.version += 1
        record.version = stored.version

    async def delete(self, record_id: int) -> None:
        if record_id < 1 or self.rows.pop(record_id, None) is None:
            raise RecordNotFoundError()

    async def get_all(
        self,
        content: str,
        author: str,
        filters: ValidatedFilters,
    ) -> tuple[list[Record], Metadata]:
        column = filters.sort_column()
        descending = filters.sort_direction() == "DESC"
        matching = [
            row
            for row in sorted(self.rows.values(), key=lambda r: r.id)
            if (not content or _matches(row.content, content))
            and (not author or _matches(row.author, author))
        ]
        matching.sort(key=lambda r: getattr(r, column), reverse=descending)
        page = matching[filters.offset : filters.offset + filters.limit]
        total = len(matching) if page else 0
        return [Record(**vars(r)) for r in page], calculate_metadata(total, filters.page, filters.page_size)


@pytest.fixture
def settings():
    return Settings(environment="testing", limiter_enabled=False, max_body_bytes=1_000)


@pytest.fixture
def repositories():
    return {kind.plural: InMemoryRecordRepository(kind) for kind in kinds.ALL_KINDS}


@pytest.fixture
def app(settings, repositories):
    return create_app(settings, repositories=repositories)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def seed_quotes(repositories):
    repo = repositories["quotes"]
    quotes = [
        Record(content="Simplicity is the soul of efficiency", author="Austin Freeman"),
        Record(content="Talk is cheap show me the code", author="Linus Torvalds"),
        Record(content="Programs must be written for people to read", author="Harold Abelson"),
        Record(content="Code is like humor", author="Cory House"),
        Record(content="First solve the problem then write the code", author="John Johnson"),
    ]
    for quote in quotes:
        asyncio.run(repo.insert(quote))
    return quotes
