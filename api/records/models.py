"""
Record entity and its field validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from core.validator import Validator

MAX_CONTENT_CHARS = 100
MAX_AUTHOR_CHARS = 25


@dataclass
class Record:
    id: int = 0
    content: str = ""
    author: str = ""
    created_at: datetime | None = None
    version: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Record:
        return cls(
            id=int(row["id"]),
            content=str(row["content"]),
            author=str(row["author"]),
            created_at=row["created_at"],
            version=int(row["version"]),
        )

    def to_dict(self) -> dict[str, Any]:
        # created_at stays internal.
        return {
            "id": self.id,
            "content": self.content,
            "author": self.author,
            "version": self.version,
        }


def validate_record(v: Validator, record: Record) -> None:
    v.check(record.content != "", "content", "must be provided")
    v.check(record.author != "", "author", "must be provided")
    v.check(
        len(record.content) <= MAX_CONTENT_CHARS,
        "content",
        f"must not be more than {MAX_CONTENT_CHARS} characters long",
    )
    v.check(
        len(record.author) <= MAX_AUTHOR_CHARS,
        "author",
        f"must not be more than {MAX_AUTHOR_CHARS} characters long",
    )
