import pytest

from userdesk.errors import ValidationError
from userdesk.schemas.users import UserCreatePayload, UsersBatchDeletePayload, UserUpdatePayload
from userdesk.schemas.validation import validate_or_raise


def _valid_form(**overrides: object) -> dict[str, object]:
    form: dict[str, object] = {
        "first_name": "John",
        "last_name": "Smith",
        "email": "john.smith@example.com",
        "age": 30,
        "password": "Passw0rd!",
    }
    form.update(overrides)
    return form


@pytest.mark.unit
def test_create_payload_strips_names_and_blank_alternate_email() -> None:
    params = validate_or_raise(UserCreatePayload, _valid_form(first_name="  John ", alternate_email="  "))

    assert params.first_name == "John"
    assert params.alternate_email is None


@pytest.mark.unit
def test_create_payload_rejects_underage() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserCreatePayload, _valid_form(age=17))

    assert exc_info.value.field_errors == {"age": ["年龄不能小于18岁"]}
    assert exc_info.value.status_code == 400


@pytest.mark.unit
def test_create_payload_accepts_minimum_age() -> None:
    assert validate_or_raise(UserCreatePayload, _valid_form(age=18)).age == 18


@pytest.mark.unit
def test_create_payload_collects_every_field_error() -> None:
    form = {"first_name": "J", "last_name": "", "email": "not-an-email", "age": True, "password": "short"}

    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserCreatePayload, form)

    field_errors = exc_info.value.field_errors
    assert set(field_errors) == {"first_name", "last_name", "email", "age", "password"}
    assert field_errors["first_name"] == ["名至少需要2个字符"]
    assert field_errors["email"] == ["邮箱格式不正确"]
    assert field_errors["password"] == ["密码长度至少8位"]


@pytest.mark.unit
def test_create_payload_requires_fields() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserCreatePayload, {})

    assert exc_info.value.field_errors["email"] == ["该字段不能为空"]


@pytest.mark.unit
def test_create_payload_rejects_alternate_email_equal_to_email() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserCreatePayload, _valid_form(alternate_email="JOHN.smith@example.com"))

    assert exc_info.value.field_errors == {"alternate_email": ["备用邮箱不能与主邮箱相同"]}


@pytest.mark.unit
def test_update_payload_only_reports_submitted_fields() -> None:
    params = validate_or_raise(UserUpdatePayload, {"age": 40, "password": ""})

    assert params.changes() == {"age": 40}


@pytest.mark.unit
def test_update_payload_keeps_new_password() -> None:
    params = validate_or_raise(UserUpdatePayload, {"password": "N3wPassword"})

    assert params.changes() == {"password": "N3wPassword"}


@pytest.mark.unit
def test_update_payload_validates_submitted_fields() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserUpdatePayload, {"age": 12})

    assert "age" in exc_info.value.field_errors


@pytest.mark.unit
def test_update_payload_rejects_explicit_null_for_required_fields() -> None:
    payload = {"first_name": None, "last_name": None, "email": None, "age": None}

    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UserUpdatePayload, payload)

    assert exc_info.value.field_errors == {field: ["该字段不能为空"] for field in payload}


@pytest.mark.unit
def test_update_payload_allows_null_to_clear_optional_fields() -> None:
    params = validate_or_raise(UserUpdatePayload, {"alternate_email": None, "password": None})

    assert params.changes() == {"alternate_email": None}


@pytest.mark.unit
def test_batch_delete_payload_dedupes_ids() -> None:
    params = validate_or_raise(UsersBatchDeletePayload, {"ids": [" 1", "2", "1", ""]})

    assert params.ids == ["1", "2"]


@pytest.mark.unit
def test_batch_delete_payload_rejects_empty_selection() -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_or_raise(UsersBatchDeletePayload, {"ids": []})

    assert exc_info.value.message == "请先选择需要删除的用户"
