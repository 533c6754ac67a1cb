import pytest


def _assert_success_envelope(payload: object) -> dict:
    assert isinstance(payload, dict)
    assert payload.get("success") is True
    assert payload.get("error") is False
    assert "message" in payload
    assert "timestamp" in payload
    return payload


def _assert_error_envelope(payload: object, message_code: str) -> dict:
    assert isinstance(payload, dict)
    assert payload.get("success") is False
    assert payload.get("error") is True
    assert payload.get("message_code") == message_code
    assert {"error_id", "category", "severity", "message", "timestamp", "recoverable"}.issubset(payload.keys())
    return payload


@pytest.mark.unit
def test_api_v1_users_list_contract(client, seed_users) -> None:
    seed_users(12)

    response = client.get("/api/v1/users?age_min=20&age_max=25&search=SMITH")

    assert response.status_code == 200
    data = _assert_success_envelope(response.get_json())["data"]
    assert {"items", "total", "page", "pages", "limit"}.issubset(data.keys())
    assert [item["id"] for item in data["items"]] == ["3", "5", "7"]
    assert data["total"] == 3
    assert data["pages"] == 1
    assert {"id", "first_name", "last_name", "email", "alternate_email", "age"} == set(data["items"][0])


@pytest.mark.unit
def test_api_v1_users_list_clamps_page_beyond_range(client, seed_users) -> None:
    seed_users(12)

    response = client.get("/api/v1/users?page=9&page_size=5")

    data = response.get_json()["data"]
    assert data["page"] == 3
    assert data["pages"] == 3
    assert [item["id"] for item in data["items"]] == ["11", "12"]


@pytest.mark.unit
def test_api_v1_users_list_rejects_inverted_age_range(client) -> None:
    response = client.get("/api/v1/users?age_min=40&age_max=30")

    assert response.status_code == 400
    _assert_error_envelope(response.get_json(), "INVALID_AGE_RANGE")


@pytest.mark.unit
def test_api_v1_users_create_contract(client, form_factory) -> None:
    response = client.post("/api/v1/users", json=form_factory(0, alternate_email="backup@example.com"))

    assert response.status_code == 201
    user = _assert_success_envelope(response.get_json())["data"]["user"]
    assert user["id"] == "1"
    assert user["alternate_email"] == "backup@example.com"
    assert "password" not in user


@pytest.mark.unit
def test_api_v1_users_create_duplicate_email_returns_409(client, seed_users, form_factory) -> None:
    seed_users(1)

    response = client.post("/api/v1/users", json=form_factory(4, email="user0@example.com"))

    assert response.status_code == 409
    _assert_error_envelope(response.get_json(), "EMAIL_EXISTS")
    listed = client.get("/api/v1/users").get_json()["data"]
    assert listed["total"] == 1


@pytest.mark.unit
def test_api_v1_users_create_validation_error_lists_fields(client, form_factory) -> None:
    response = client.post("/api/v1/users", json=form_factory(0, age=17, password="short"))

    assert response.status_code == 400
    payload = _assert_error_envelope(response.get_json(), "VALIDATION_ERROR")
    assert set(payload["extra"]["field_errors"]) == {"age", "password"}


@pytest.mark.unit
def test_api_v1_users_detail_update_delete_contract(client, seed_users) -> None:
    seed_users(2)

    detail = client.get("/api/v1/users/2")
    assert detail.status_code == 200
    assert detail.get_json()["data"]["user"]["email"] == "user1@example.com"

    updated = client.patch("/api/v1/users/2", json={"first_name": "Renamed", "password": ""})
    assert updated.status_code == 200
    assert updated.get_json()["data"]["user"]["first_name"] == "Renamed"

    conflict = client.patch("/api/v1/users/2", json={"email": "USER0@example.com"})
    assert conflict.status_code == 409

    deleted = client.delete("/api/v1/users/2")
    assert deleted.status_code == 200

    missing = client.get("/api/v1/users/2")
    assert missing.status_code == 404
    _assert_error_envelope(missing.get_json(), "USER_NOT_FOUND")
    assert client.delete("/api/v1/users/2").status_code == 404
    assert client.patch("/api/v1/users/2", json={"age": 30}).status_code == 404


@pytest.mark.unit
def test_api_v1_users_batch_delete_contract(client, seed_users) -> None:
    seed_users(5)

    response = client.post("/api/v1/users/batch-delete", json={"ids": ["1", "2"]})

    assert response.status_code == 200
    assert response.get_json()["data"]["user_ids"] == ["1", "2"]
    remaining = client.get("/api/v1/users").get_json()["data"]["items"]
    assert [item["id"] for item in remaining] == ["3", "4", "5"]

    unmatched = client.post("/api/v1/users/batch-delete", json={"ids": ["1"]})
    assert unmatched.status_code == 404
    _assert_error_envelope(unmatched.get_json(), "NO_USERS_MATCHED")

    empty = client.post("/api/v1/users/batch-delete", json={"ids": []})
    assert empty.status_code == 400


@pytest.mark.unit
def test_api_v1_users_email_availability_contract(client, seed_users) -> None:
    seed_users(2)

    free = client.get("/api/v1/users/email-availability?email=free@example.com")
    assert free.get_json()["data"] == {"email": "free@example.com", "available": True, "owned": False}

    taken = client.get("/api/v1/users/email-availability?email=user0@example.com")
    assert taken.get_json()["data"]["available"] is False

    own = client.get("/api/v1/users/email-availability?email=user0@example.com&user_id=1")
    assert own.get_json()["data"] == {"email": "user0@example.com", "available": True, "owned": True}

    other = client.get("/api/v1/users/email-availability?email=user0@example.com&user_id=2")
    assert other.status_code == 409


@pytest.mark.unit
def test_api_v1_openapi_and_root_contract(client) -> None:
    openapi_response = client.get("/api/v1/openapi.json")
    assert openapi_response.status_code == 200
    paths = openapi_response.get_json()["paths"]
    assert "/users" in paths
    assert "/users/{user_id}" in paths
    assert "/users/batch-delete" in paths

    root = client.get("/api/v1/")
    assert root.status_code == 200
    assert root.get_json()["data"]["openapi_url"] == "/api/v1/openapi.json"


@pytest.mark.unit
@pytest.mark.parametrize("field", ["first_name", "last_name", "email", "age"])
def test_api_v1_users_update_rejects_explicit_null(client, seed_users, field) -> None:
    seed_users(1)

    response = client.patch("/api/v1/users/1", json={field: None})

    assert response.status_code == 400
    payload = _assert_error_envelope(response.get_json(), "VALIDATION_ERROR")
    assert payload["extra"]["field_errors"] == {field: ["该字段不能为空"]}
    detail = client.get("/api/v1/users/1").get_json()["data"]["user"]
    assert detail[field] is not None
