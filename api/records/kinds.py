"""
Per-resource table configuration.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

DEFAULT_SORT_SAFELIST = ("id", "author", "-id", "-author")


@dataclass(frozen=True)
class RecordKind:
    singular: str
    plural: str
    table: str
    sort_safelist: tuple[str, ...] = DEFAULT_SORT_SAFELIST

    def __post_init__(self) -> None:
        # The table name goes into SQL text, so only plain identifiers are accepted.
        if not _IDENTIFIER.match(self.table):
            raise ValueError(f"invalid table name: {self.table!r}")

    @property
    def path(self) -> str:
        return f"/v1/{self.plural}"


QUOTES = RecordKind(singular="quote", plural="quotes", table="quotes")
COMMENTS = RecordKind(singular="comment", plural="comments", table="comments")

ALL_KINDS = (QUOTES, COMMENTS)
