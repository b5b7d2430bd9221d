import math

import pytest

from core.errors import UnsafeSortValueError
from core.filters import Filters, Metadata, ValidatedFilters, calculate_metadata, resolve_sort_column, validate_filters
from core.validator import Validator

SAFELIST = ("id", "author", "-id", "-author")


def _filters(**overrides):
    values = {"page": 1, "page_size": 10, "sort": "id", "sort_safelist": SAFELIST}
    values.update(overrides)
    return Filters(**values)


def test_valid_filters_return_token():
    v = Validator()
    validated = validate_filters(v, _filters(page=3, page_size=20, sort="-author"))
    assert v.is_empty()
    assert isinstance(validated, ValidatedFilters)
    assert validated.limit == 20
    assert validated.offset == 40
    assert validated.sort_column() == "author"
    assert validated.sort_direction() == "DESC"


def test_all_problems_reported_at_once():
    v = Validator()
    validated = validate_filters(v, _filters(page=0, page_size=101, sort="name"))
    assert validated is None
    assert v.errors == {
        "page": "must be greater than zero",
        "page_size": "must be a maximum of 100",
        "sort": "invalid sort value",
    }


@pytest.mark.parametrize(
    "page, page_size, errors",
    [
        (501, 10, {"page": "must be a maximum of 500"}),
        (-1, 10, {"page": "must be greater than zero"}),
        (1, 0, {"page_size": "must be greater than zero"}),
        (500, 100, {}),
    ],
)
def test_page_bounds(page, page_size, errors):
    v = Validator()
    validate_filters(v, _filters(page=page, page_size=page_size))
    assert v.errors == errors


def test_existing_errors_withhold_token():
    v = Validator()
    v.add_error("page_size", "must be an integer value")
    assert validate_filters(v, _filters()) is None


@pytest.mark.parametrize(
    "sort, expected",
    [
        ("id", ("id", "ASC")),
        ("-id", ("id", "DESC")),
        ("author", ("author", "ASC")),
        ("-author", ("author", "DESC")),
    ],
)
def test_every_safelisted_value_resolves(sort, expected):
    assert resolve_sort_column(_filters(sort=sort)) == expected


@pytest.mark.parametrize("sort", ["name", "-content", "id; DROP TABLE quotes", "--id", ""])
def test_unsafe_sort_raises_typed_error(sort):
    with pytest.raises(UnsafeSortValueError) as excinfo:
        resolve_sort_column(_filters(sort=sort))
    assert excinfo.value.value == sort


def test_sort_must_appear_as_given_in_safelist():
    with pytest.raises(UnsafeSortValueError):
        resolve_sort_column(_filters(sort="-id", sort_safelist=("id",)))


def test_validated_filters_recheck_safelist():
    forged = ValidatedFilters(_filters(sort="created_at"))
    with pytest.raises(UnsafeSortValueError):
        forged.sort_column()


def test_offset_grows_with_page():
    offsets = [ValidatedFilters(_filters(page=page, page_size=25)).offset for page in range(1, 6)]
    assert offsets == [0, 25, 50, 75, 100]


@pytest.mark.parametrize("total, page_size", [(1, 1), (1, 10), (10, 10), (11, 10), (99, 7), (500, 100)])
def test_last_page_is_ceiling(total, page_size):
    metadata = calculate_metadata(total, 1, page_size)
    assert metadata.last_page == math.ceil(total / page_size)
    assert metadata.first_page == 1
    assert metadata.last_page >= metadata.first_page
    assert metadata.total_records == total


def test_metadata_for_page():
    assert calculate_metadata(23, 2, 10) == Metadata(
        current_page=2,
        page_size=10,
        first_page=1,
        last_page=3,
        total_records=23,
    )


@pytest.mark.parametrize("page, page_size", [(1, 10), (7, 3), (500, 100)])
def test_no_records_gives_empty_metadata(page, page_size):
    metadata = calculate_metadata(0, page, page_size)
    assert metadata == Metadata()
    assert metadata.is_empty()
    assert metadata.to_dict() == {}


def test_metadata_to_dict():
    assert calculate_metadata(5, 1, 2).to_dict() == {
        "current_page": 1,
        "page_size": 2,
        "first_page": 1,
        "last_page": 3,
        "total_records": 5,
    }
