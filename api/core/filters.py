"""
Pagination, sorting and page metadata for list endpoints.

The sort value from the query string ends up interpolated into ORDER BY, so it
is only ever resolved through `ValidatedFilters`, which `validate_filters`
hands out after the safelist check passed. Resolution still re-checks the
safelist and raises `UnsafeSortValueError` instead of trusting the caller.

Offset pagination has no cursor: a row inserted while a client is paging can
shift later pages.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import UnsafeSortValueError
from .validator import Validator, permitted_value

MAX_PAGE = 500
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Filters:
    page: int = 1
    page_size: int = 10
    sort: str = "id"
    sort_safelist: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Metadata:
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

    def is_empty(self) -> bool:
        return self.total_records == 0

    def to_dict(self) -> dict[str, int]:
        # Zero fields are left out, so "no results" serializes as {}.
        return {
            key: value
            for key, value in (
                ("current_page", self.current_page),
                ("page_size", self.page_size),
                ("first_page", self.first_page),
                ("last_page", self.last_page),
                ("total_records", self.total_records),
            )
            if value
        }


def resolve_sort_column(filters: Filters) -> tuple[str, str]:
    """
    Return the (column, direction) pair for `filters.sort`.

    A value that is not in the safelist raises `UnsafeSortValueError`.
    """
    if not permitted_value(filters.sort, *filters.sort_safelist):
        raise UnsafeSortValueError(filters.sort)
    if filters.sort.startswith("-"):
        return filters.sort[1:], "DESC"
    return filters.sort, "ASC"


@dataclass(frozen=True)
class ValidatedFilters:
    filters: Filters

    @property
    def page(self) -> int:
        return self.filters.page

    @property
    def page_size(self) -> int:
        return self.filters.page_size

    @property
    def limit(self) -> int:
        return self.filters.page_size

    @property
    def offset(self) -> int:
        return (self.filters.page - 1) * self.filters.page_size

    def sort_column(self) -> str:
        return resolve_sort_column(self.filters)[0]

    def sort_direction(self) -> str:
        return resolve_sort_column(self.filters)[1]


def validate_filters(v: Validator, filters: Filters) -> ValidatedFilters | None:
    """
    Record every pagination/sort problem on `v`.

    Returns a `ValidatedFilters` only when `v` holds no errors afterwards.
    """
    v.check(filters.page > 0, "page", "must be greater than zero")
    v.check(filters.page <= MAX_PAGE, "page", f"must be a maximum of {MAX_PAGE}")
    v.check(filters.page_size > 0, "page_size", "must be greater than zero")
    v.check(filters.page_size <= MAX_PAGE_SIZE, "page_size", f"must be a maximum of {MAX_PAGE_SIZE}")
    v.check(permitted_value(filters.sort, *filters.sort_safelist), "sort", "invalid sort value")

    if not v.is_empty():
        return None
    return ValidatedFilters(filters)


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    if total_records == 0:
        return Metadata()
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=(total_records + page_size - 1) // page_size,
        total_records=total_records,
    )
