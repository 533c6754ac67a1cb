import pytest

from userdesk.errors import ValidationError
from userdesk.schemas.users_query import UserTableQuery
from userdesk.schemas.validation import validate_or_raise
from userdesk.types.users import AgeRange, FilterState


@pytest.mark.unit
def test_users_query_defaults() -> None:
    query = validate_or_raise(UserTableQuery, {})

    assert query.search == ""
    assert query.page == 1
    assert query.page_index == 0
    assert query.page_size == 10
    assert query.to_filter_state() == FilterState()


@pytest.mark.unit
def test_users_query_parses_strings_and_keeps_whitespace_search() -> None:
    query = validate_or_raise(
        UserTableQuery,
        {"q": "  ", "age_min": "20", "age_max": "25", "page": "3", "pageSize": "500"},
    )

    assert query.search == "  "
    assert query.to_filter_state() == FilterState(query="  ", age_range=AgeRange(20, 25))
    assert query.page_index == 2
    assert query.page_size == 200


@pytest.mark.unit
def test_users_query_rejects_inverted_age_range() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserTableQuery, {"age_min": "40", "age_max": "30"})

    assert exc_info.value.message_key == "INVALID_AGE_RANGE"


@pytest.mark.unit
def test_users_query_rejects_age_range_outside_bounds() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserTableQuery, {"age_max": "120"})

    assert exc_info.value.message_key == "INVALID_AGE_RANGE"


@pytest.mark.unit
def test_users_query_rejects_non_integer_age() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserTableQuery, {"age_min": "abc"})

    assert exc_info.value.field_errors == {"age_min": ["参数必须为整数"]}


@pytest.mark.unit
def test_users_query_rejects_unknown_parameters() -> None:
    with pytest.raises(ValidationError):
        validate_or_raise(UserTableQuery, {"role": "admin"})
