from __future__ import annotations

from types import SimpleNamespace

import pytest

from userdesk.errors import ConflictError
from userdesk.schemas.users import UserCreatePayload, UserUpdatePayload
from userdesk.services.users.mutation_coordinator import (
    MutationKind,
    MutationStatus,
    NotificationLevel,
    UserMutationCoordinator,
)
from userdesk.services.users.table_state import UserTableStore
from userdesk.types.users import UserRecordDict


class _FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


class _InMemoryUserService:
    """与 UserWriteService 同形的内存实现."""

    MESSAGE_EMAIL_EXISTS = "EMAIL_EXISTS"

    def __init__(self, records: list[UserRecordDict]) -> None:
        self.records = records
        self.calls: list[str] = []
        self.next_id = max((int(record["id"]) for record in records), default=0) + 1
        self.fail_with: Exception | None = None

    def list_records(self) -> list[UserRecordDict]:
        return [dict(record) for record in self.records]  # type: ignore[misc]

    def _owner(self, email: str) -> UserRecordDict | None:
        return next((record for record in self.records if record["email"].lower() == email.lower()), None)

    def create_validated(self, params: UserCreatePayload) -> SimpleNamespace:
        self.calls.append("create")
        if self.fail_with:
            raise self.fail_with
        if self._owner(params.email):
            raise ConflictError(message_key=self.MESSAGE_EMAIL_EXISTS)
        record: UserRecordDict = {
            "id": str(self.next_id),
            "first_name": params.first_name,
            "last_name": params.last_name,
            "email": params.email,
            "alternate_email": params.alternate_email,
            "age": params.age,
        }
        self.next_id += 1
        self.records.append(record)
        return SimpleNamespace(id=record["id"])

    def exists_by_email_and_id(self, email: str, user_id: str) -> bool:
        self.calls.append("exists_by_email_and_id")
        owner = self._owner(email)
        if owner is None:
            return False
        if owner["id"] != user_id:
            raise ConflictError(message_key=self.MESSAGE_EMAIL_EXISTS)
        return True

    def update_validated(self, user_id: str, params: UserUpdatePayload) -> SimpleNamespace | None:
        self.calls.append("update")
        record = next((record for record in self.records if record["id"] == user_id), None)
        if record is None:
            return None
        record.update({key: value for key, value in params.changes().items() if key != "password"})  # type: ignore[typeddict-item]
        return SimpleNamespace(id=user_id)

    def delete_one(self, user_id: str) -> bool:
        self.calls.append("delete_one")
        before = len(self.records)
        self.records[:] = [record for record in self.records if record["id"] != user_id]
        return len(self.records) < before

    def delete_many(self, user_ids: list[str]) -> bool:
        self.calls.append("delete_many")
        before = len(self.records)
        self.records[:] = [record for record in self.records if record["id"] not in user_ids]
        return len(self.records) < before


def _build(records: list[UserRecordDict]):
    service = _InMemoryUserService(records)
    store = UserTableStore(service.list_records, page_size=10, debounce_seconds=0)
    store.refetch()
    session = _FakeSession()
    coordinator = UserMutationCoordinator(store, service, session=session)  # type: ignore[arg-type]
    return service, store, session, coordinator


@pytest.mark.unit
def test_create_success_refetches_and_closes_modal(records_factory, form_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))
    store.open_create_modal()

    outcome = coordinator.create(form_factory(3, email="new.user@example.com"))

    assert outcome.succeeded is True
    assert outcome.record_id == "4"
    assert outcome.notification is not None
    assert outcome.notification.level is NotificationLevel.SUCCESS
    assert session.commits == 1
    assert [record["id"] for record in store.records] == ["1", "2", "3", "4"]
    assert store.modal.is_open is False
    assert coordinator.status(MutationKind.CREATE) is MutationStatus.SUCCEEDED


@pytest.mark.unit
def test_create_with_duplicate_email_leaves_records_unchanged(records_factory, form_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))
    store.open_create_modal()
    before = list(store.records)

    outcome = coordinator.create(form_factory(9, email="USER1@example.com"))

    assert outcome.status is MutationStatus.FAILED
    assert outcome.reached_store is True
    assert outcome.notification is not None
    assert outcome.notification.level is NotificationLevel.ERROR
    assert outcome.notification.message == "邮箱已被其他用户使用"
    assert outcome.notification.message_key == "EMAIL_EXISTS"
    assert session.rollbacks == 1
    assert session.commits == 0
    assert store.records == before
    assert service.next_id == 4
    assert store.modal.is_open is True
    assert store.modal.values["email"] == "USER1@example.com"


@pytest.mark.unit
def test_create_underage_is_rejected_before_store(records_factory, form_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))
    store.open_create_modal()

    outcome = coordinator.create(form_factory(3, age=17))

    assert outcome.status is MutationStatus.FAILED
    assert outcome.reached_store is False
    assert outcome.field_errors == {"age": ["年龄不能小于18岁"]}
    assert service.calls == []
    assert session.commits == session.rollbacks == 0
    assert store.modal.field_errors == {"age": ["年龄不能小于18岁"]}
    assert "password" not in store.modal.values


@pytest.mark.unit
def test_create_unexpected_failure_reports_generic_message(records_factory, form_factory) -> None:
    service, store, session, coordinator = _build(records_factory(2))
    service.fail_with = RuntimeError("disk full")

    outcome = coordinator.create(form_factory(5))

    assert outcome.status is MutationStatus.FAILED
    assert outcome.notification is not None
    assert outcome.notification.message == "新增用户失败"
    assert outcome.notification.message_key == "INTERNAL_ERROR"
    assert session.rollbacks == 1
    assert len(store.records) == 2


@pytest.mark.unit
def test_update_merges_fields_and_keeps_password_when_blank(records_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))
    store.open_edit_modal("2")

    outcome = coordinator.update("2", {"first_name": "Renamed", "password": ""})

    assert outcome.succeeded is True
    assert store.find_record("2")["first_name"] == "Renamed"  # type: ignore[index]
    assert "exists_by_email_and_id" not in service.calls
    assert store.modal.is_open is False


@pytest.mark.unit
def test_update_allows_keeping_own_email(records_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))

    outcome = coordinator.update("2", {"email": "USER1@example.com"})

    assert outcome.succeeded is True
    assert service.calls == ["exists_by_email_and_id", "update"]


@pytest.mark.unit
def test_update_with_email_of_other_user_fails(records_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))
    store.open_edit_modal("2")

    outcome = coordinator.update("2", {"email": "user0@example.com"})

    assert outcome.status is MutationStatus.FAILED
    assert outcome.notification is not None
    assert outcome.notification.message == "更新用户失败: 邮箱已被其他用户使用"
    assert "update" not in service.calls
    assert store.find_record("2")["email"] == "user1@example.com"  # type: ignore[index]
    assert store.modal.is_open is True


@pytest.mark.unit
def test_update_missing_record_fails_with_not_found(records_factory) -> None:
    _, _, session, coordinator = _build(records_factory(3))

    outcome = coordinator.update("42", {"age": 30})

    assert outcome.status is MutationStatus.FAILED
    assert outcome.notification is not None
    assert outcome.notification.message_key == "USER_NOT_FOUND"
    assert session.rollbacks == 1


@pytest.mark.unit
def test_delete_one_success_and_missing(records_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))

    assert coordinator.delete_one("2").succeeded is True
    assert [record["id"] for record in store.records] == ["1", "3"]

    missing = coordinator.delete_one("2")
    assert missing.status is MutationStatus.FAILED
    assert missing.notification is not None
    assert missing.notification.message == "用户不存在"


@pytest.mark.unit
def test_delete_selected_removes_rows_and_clears_selection(records_factory) -> None:
    service, store, session, coordinator = _build(records_factory(5))
    store.set_selection([0, 1])

    outcome = coordinator.delete_selected()

    assert outcome.succeeded is True
    assert [record["id"] for record in store.records] == ["3", "4", "5"]
    assert store.selection == set()
    assert session.commits == 1


@pytest.mark.unit
def test_delete_selected_without_selection_does_not_call_store(records_factory) -> None:
    service, store, session, coordinator = _build(records_factory(5))

    outcome = coordinator.delete_selected()

    assert outcome.status is MutationStatus.FAILED
    assert outcome.reached_store is False
    assert outcome.notification is not None
    assert outcome.notification.message_key == "NO_USERS_SELECTED"
    assert service.calls == []


@pytest.mark.unit
def test_delete_many_with_unknown_ids_fails(records_factory) -> None:
    service, store, session, coordinator = _build(records_factory(2))

    outcome = coordinator.delete_many(["98", "99"])

    assert outcome.status is MutationStatus.FAILED
    assert outcome.notification is not None
    assert outcome.notification.message_key == "NO_USERS_MATCHED"
    assert len(store.records) == 2


@pytest.mark.unit
def test_outcome_to_dict_is_serializable(records_factory, form_factory) -> None:
    _, _, _, coordinator = _build(records_factory(1))

    payload = coordinator.create(form_factory(1, age=10)).to_dict()

    assert payload["kind"] == "create"
    assert payload["status"] == "failed"
    assert payload["notification"] is None
    assert payload["field_errors"] == {"age": ["年龄不能小于18岁"]}


@pytest.mark.unit
def test_update_underage_is_rejected_before_store(records_factory, form_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))
    store.open_edit_modal("1")
    before = [dict(record) for record in store.records]

    outcome = coordinator.update("1", form_factory(0, age=17))

    assert outcome.status is MutationStatus.FAILED
    assert outcome.reached_store is False
    assert outcome.field_errors["age"] == ["年龄不能小于18岁"]
    assert service.calls == []
    assert session.commits == session.rollbacks == 0
    assert store.records == before
    assert store.modal.is_open is True


@pytest.mark.unit
def test_update_with_blank_age_is_rejected_before_store(records_factory, form_factory) -> None:
    service, store, session, coordinator = _build(records_factory(3))
    store.open_edit_modal("1")

    outcome = coordinator.update("1", form_factory(0, age=None, password=""))

    assert outcome.status is MutationStatus.FAILED
    assert outcome.reached_store is False
    assert outcome.field_errors == {"age": ["该字段不能为空"]}
    assert service.calls == []
    assert store.find_record("1")["age"] == 18  # type: ignore[index]


@pytest.mark.unit
def test_refresh_failure_after_commit_keeps_outcome_and_marks_store_stale(records_factory) -> None:
    service = _InMemoryUserService(records_factory(3))
    loads = {"count": 0}

    def loader() -> list[UserRecordDict]:
        loads["count"] += 1
        if loads["count"] > 1:
            raise RuntimeError("store unavailable")
        return service.list_records()

    store = UserTableStore(loader, page_size=10, debounce_seconds=0)
    store.refetch()
    session = _FakeSession()
    coordinator = UserMutationCoordinator(store, service, session=session)  # type: ignore[arg-type]

    outcome = coordinator.delete_one("1")

    assert outcome.succeeded is True
    assert outcome.notification is not None
    assert outcome.notification.level is NotificationLevel.WARNING
    assert outcome.notification.message_key == "USERS_REFRESH_FAILED"
    assert session.commits == 1
    assert store.stale is True
    assert coordinator.status(MutationKind.DELETE_ONE) is MutationStatus.SUCCEEDED
    assert coordinator.in_flight_kinds() == set()
