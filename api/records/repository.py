"""
Record persistence (raw SQL).

One `RecordRepository` per `RecordKind`; the kind supplies the table name.
Every statement runs with the repository's timeout, and driver or timeout
failures surface as `core.errors.StorageError`.

Table layout (see `migrations/001_create_records.sql`):
  id bigserial primary key, content text, author text,
  created_at timestamptz default now(), version integer default 1
"""

from __future__ import annotations

from core import db
from core.errors import RecordNotFoundError, StorageError
from core.filters import Metadata, ValidatedFilters, calculate_metadata

from .kinds import RecordKind
from .models import Record


class RecordRepository:
    def __init__(self, kind: RecordKind, *, timeout: float = db.DEFAULT_TIMEOUT):
        self.kind = kind
        self.timeout = timeout

    async def insert(self, record: Record) -> None:
        """
        Insert `record` and fill in the id, created_at and version the store assigned.
        """
        row = await db.fetch_one(
            f"""
            INSERT INTO {self.kind.table} (content, author)
            VALUES ($1, $2)
            RETURNING id, created_at, version
            """,
            record.content,
            record.author,
            timeout=self.timeout,
        )
        if row is None:
            raise StorageError(f"failed to insert {self.kind.singular}: no row returned")
        record.id = int(row["id"])
        record.created_at = row["created_at"]
        record.version = int(row["version"])

    async def get(self, record_id: int) -> Record:
        if record_id < 1:
            raise RecordNotFoundError()
        row = await db.fetch_one(
            f"""
            SELECT id, content, author, created_at, version
            FROM {self.kind.table}
            WHERE id = $1
            """,
            record_id,
            timeout=self.timeout,
        )
        if row is None:
            raise RecordNotFoundError()
        return Record.from_row(row)

    async def update(self, record: Record) -> None:
        """
        Overwrite content/author and bump the version by one (last write wins).
        """
        row = await db.fetch_one(
            f"""
            UPDATE {self.kind.table}
            SET content = $1, author = $2, version = version + 1
            WHERE id = $3
            RETURNING version
            """,
            record.content,
            record.author,
            record.id,
            timeout=self.timeout,
        )
        if row is None:
            # Deleted between the caller's read and this write.
            raise RecordNotFoundError()
        record.version = int(row["version"])

    async def delete(self, record_id: int) -> None:
        if record_id < 1:
            raise RecordNotFoundError()
        affected = await db.execute(
            f"""
            DELETE FROM {self.kind.table}
            WHERE id = $1
            """,
            record_id,
            timeout=self.timeout,
        )
        if affected == 0:
            raise RecordNotFoundError()

    async def get_all(
        self,
        content: str,
        author: str,
        filters: ValidatedFilters,
    ) -> tuple[list[Record], Metadata]:
        """
        Full-text filter on content and author (an empty filter matches every row),
        sorted by the safelisted column with id as tiebreak, one page at a time.

        `count(*) OVER()` gives the matching row count before LIMIT/OFFSET in the
        same round trip.
        """
        column = filters.sort_column()
        direction = filters.sort_direction()
        rows = await db.fetch_all(
            f"""
            SELECT count(*) OVER() AS total_records, id, content, author, created_at, version
            FROM {self.kind.table}
            WHERE (to_tsvector('simple', content) @@ plainto_tsquery('simple', $1) OR $1 = '')
              AND (to_tsvector('simple', author) @@ plainto_tsquery('simple', $2) OR $2 = '')
            ORDER BY {column} {direction}, id ASC
            LIMIT $3
            OFFSET $4
            """,
            content,
            author,
            filters.limit,
            filters.offset,
            timeout=self.timeout,
        )

        total_records = int(rows[0]["total_records"]) if rows else 0
        records = [Record.from_row(row) for row in rows]
        return records, calculate_metadata(total_records, filters.page, filters.page_size)
