import pytest

from userdesk import db
from userdesk.errors import ConflictError, ValidationError
from userdesk.models.user import User
from userdesk.repositories.users_repository import UsersRepository
from userdesk.services.users.user_write_service import UserWriteService


@pytest.mark.unit
def test_create_assigns_sequential_ids_and_hashes_password(app, form_factory) -> None:
    service = UserWriteService()

    first = service.create(form_factory(0))
    second = service.create(form_factory(1))
    db.session.commit()

    assert (first.id, second.id) == ("1", "2")
    assert first.password != "Passw0rd!"
    assert first.check_password("Passw0rd!") is True


@pytest.mark.unit
def test_create_duplicate_email_does_not_consume_id(app, form_factory, seed_users) -> None:
    seed_users(2)
    service = UserWriteService()

    with pytest.raises(ConflictError) as exc_info:
        service.create(form_factory(5, email="USER0@example.com"))
    db.session.rollback()

    assert exc_info.value.message_key == "EMAIL_EXISTS"
    assert UsersRepository().next_id() == "3"
    assert UsersRepository.count_users() == 2


@pytest.mark.unit
def test_ids_keep_increasing_after_delete(app, form_factory, seed_users) -> None:
    seed_users(3)
    service = UserWriteService()
    service.delete_one("2")
    db.session.commit()

    created = service.create(form_factory(7))
    db.session.commit()

    assert created.id == "4"


@pytest.mark.unit
def test_update_rehashes_only_new_password(app, seed_users) -> None:
    (user_id,) = seed_users(1)
    service = UserWriteService()
    original_hash = db.session.get(User, user_id).password

    service.update(user_id, {"first_name": "Renamed", "password": ""})
    db.session.commit()
    user = db.session.get(User, user_id)
    assert user.first_name == "Renamed"
    assert user.password == original_hash

    service.update(user_id, {"password": "An0therPass"})
    db.session.commit()
    assert db.session.get(User, user_id).check_password("An0therPass") is True


@pytest.mark.unit
def test_update_rejects_email_owned_by_other_user(app, seed_users) -> None:
    seed_users(2)

    with pytest.raises(ConflictError):
        UserWriteService().update("2", {"email": "user0@example.com"})


@pytest.mark.unit
def test_update_rejects_alternate_email_matching_stored_email(app, seed_users) -> None:
    seed_users(1)

    with pytest.raises(ValidationError) as exc_info:
        UserWriteService().update("1", {"alternate_email": "USER0@example.com"})

    assert "alternate_email" in exc_info.value.field_errors


@pytest.mark.unit
def test_update_missing_user_returns_none(app) -> None:
    assert UserWriteService().update("404", {"age": 30}) is None


@pytest.mark.unit
def test_exists_by_email_and_id(app, seed_users) -> None:
    seed_users(2)
    service = UserWriteService()

    assert service.exists_by_email_and_id("user0@example.com", "1") is True
    assert service.exists_by_email_and_id("free@example.com", "1") is False
    with pytest.raises(ConflictError):
        service.exists_by_email_and_id("user1@example.com", "1")


@pytest.mark.unit
def test_delete_many_reports_whether_anything_matched(app, seed_users) -> None:
    seed_users(3)
    service = UserWriteService()

    assert service.delete_many(["1", "3", "99"]) is True
    db.session.commit()
    assert [user.id for user in UsersRepository().get_all()] == ["2"]
    assert service.delete_many(["1", "3"]) is False
