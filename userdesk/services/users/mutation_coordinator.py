"""用户增删改的协调器.

每类操作独立维护状态机 ``idle -> in_flight -> succeeded | failed``:

- 输入先经 schema 校验, 字段错误直接回填到弹窗, 不会调用存储层.
- 成功: 提交事务, 刷新记录, 清空选择, 关闭弹窗, 发出成功通知.
- 失败: 回滚事务, 保持表格状态不变, 弹窗保持打开, 发出带原因的错误通知.

存储层异常不会越过协调器. 不做排队, 以最后完成的响应为准.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from userdesk import db
from userdesk.constants.system_constants import ErrorMessages, SuccessMessages
from userdesk.errors import AppError, NotFoundError, ValidationError
from userdesk.schemas.users import UserCreatePayload, UserUpdatePayload
from userdesk.schemas.validation import validate_or_raise
from userdesk.services.users.user_write_service import UserWriteService
from userdesk.utils.sensitive_data import scrub_sensitive_fields
from userdesk.utils.structlog_config import log_error, log_info, log_warning

if TYPE_CHECKING:
    from userdesk.services.users.table_state import UserTableStore
    from userdesk.types.structures import FieldErrors, PayloadMapping


class MutationKind(Enum):
    """操作类型."""

    CREATE = "create"
    UPDATE = "update"
    DELETE_ONE = "delete_one"
    DELETE_MANY = "delete_many"


class MutationStatus(Enum):
    """单类操作的状态."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class NotificationLevel(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class Notification:
    """一次性提示消息."""

    level: NotificationLevel
    message: str
    message_key: str

    def to_dict(self) -> dict[str, str]:
        return {"level": self.level.value, "message": self.message, "message_key": self.message_key}


@dataclass(slots=True)
class MutationOutcome:
    """一次操作的结果.

    ``reached_store`` 为 False 表示在调用存储层之前就被拒绝(校验失败或未选择记录).
    """

    kind: MutationKind
    status: MutationStatus
    notification: Notification | None = None
    field_errors: FieldErrors = field(default_factory=dict)
    reached_store: bool = False
    record_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is MutationStatus.SUCCEEDED

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "notification": self.notification.to_dict() if self.notification else None,
            "field_errors": {key: list(value) for key, value in self.field_errors.items()},
            "record_id": self.record_id,
        }


class TransactionLike(Protocol):
    """协调器需要的最小事务接口(``db.session`` 满足)."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class UserMutationCoordinator:
    """串联校验、存储调用与表格状态刷新.

    Args:
        store: 表格状态容器.
        service: 用户写服务, 默认使用数据库仓库.
        session: 事务对象, 默认 ``db.session``.

    """

    def __init__(
        self,
        store: UserTableStore,
        service: UserWriteService | None = None,
        *,
        session: TransactionLike | None = None,
    ) -> None:
        self._store = store
        self._service = service or UserWriteService()
        self._session = session
        self._status: dict[MutationKind, MutationStatus] = dict.fromkeys(MutationKind, MutationStatus.IDLE)

    @property
    def session(self) -> TransactionLike:
        return self._session if self._session is not None else db.session

    def status(self, kind: MutationKind) -> MutationStatus:
        return self._status[kind]

    def is_in_flight(self, kind: MutationKind) -> bool:
        return self._status[kind] is MutationStatus.IN_FLIGHT

    def in_flight_kinds(self) -> set[MutationKind]:
        return {kind for kind, status in self._status.items() if status is MutationStatus.IN_FLIGHT}

    def create(self, form: PayloadMapping) -> MutationOutcome:
        """提交新增表单."""
        kind = MutationKind.CREATE
        try:
            params = validate_or_raise(UserCreatePayload, form)
        except ValidationError as exc:
            return self._reject_invalid(kind, exc, form)
        self._remember_form(form)

        def action() -> str:
            return self._service.create_validated(params).id

        return self._run(
            kind,
            action,
            success=(SuccessMessages.USER_CREATED, "USER_CREATED"),
            failure_message=lambda exc: self._create_failure_message(exc),
        )

    def update(self, record_id: str, form: PayloadMapping) -> MutationOutcome:
        """提交编辑表单.

        先确认新邮箱未被其他记录占用, 再提交变更. 密码留空表示沿用原密码.
        """
        kind = MutationKind.UPDATE
        try:
            params = validate_or_raise(UserUpdatePayload, form)
        except ValidationError as exc:
            return self._reject_invalid(kind, exc, form)
        self._remember_form(form)

        def action() -> str:
            if params.email is not None:
                self._service.exists_by_email_and_id(params.email, record_id)
            user = self._service.update_validated(record_id, params)
            if user is None:
                raise NotFoundError(message_key="USER_NOT_FOUND", extra={"user_id": record_id})
            return user.id

        return self._run(
            kind,
            action,
            success=(SuccessMessages.USER_UPDATED, "USER_UPDATED"),
            failure_message=lambda exc: f"{ErrorMessages.USER_UPDATE_FAILED}: {exc.message}",
        )

    def delete_one(self, record_id: str) -> MutationOutcome:
        """删除单条记录; 记录不存在视为失败."""
        kind = MutationKind.DELETE_ONE

        def action() -> str:
            if not self._service.delete_one(record_id):
                raise NotFoundError(message_key="USER_NOT_FOUND", extra={"user_id": record_id})
            return record_id

        return self._run(
            kind,
            action,
            success=(SuccessMessages.USER_DELETED, "USER_DELETED"),
            failure_message=lambda exc: self._delete_failure_message(exc, ErrorMessages.USER_DELETE_FAILED),
        )

    def delete_selected(self) -> MutationOutcome:
        """删除当前页选中的记录; 未选择任何记录时不调用存储层."""
        kind = MutationKind.DELETE_MANY
        record_ids = self._store.selected_ids()
        if not record_ids:
            return MutationOutcome(
                kind=kind,
                status=MutationStatus.FAILED,
                notification=Notification(
                    NotificationLevel.ERROR,
                    ErrorMessages.NO_USERS_SELECTED,
                    "NO_USERS_SELECTED",
                ),
            )
        return self.delete_many(record_ids)

    def delete_many(self, record_ids: list[str]) -> MutationOutcome:
        """批量删除; 一条都未匹配时以 ``NO_USERS_MATCHED`` 失败."""
        kind = MutationKind.DELETE_MANY

        def action() -> str | None:
            if not self._service.delete_many(record_ids):
                raise NotFoundError(message_key="NO_USERS_MATCHED", extra={"user_ids": list(record_ids)})
            return None

        return self._run(
            kind,
            action,
            success=(SuccessMessages.USERS_DELETED, "USERS_DELETED"),
            failure_message=lambda exc: self._delete_failure_message(exc, ErrorMessages.USERS_DELETE_FAILED),
        )

    def _run(
        self,
        kind: MutationKind,
        action: Callable[[], str | None],
        *,
        success: tuple[str, str],
        failure_message: Callable[[AppError], str],
    ) -> MutationOutcome:
        self._status[kind] = MutationStatus.IN_FLIGHT
        try:
            record_id = action()
            self.session.commit()
        except AppError as exc:
            self.session.rollback()
            return self._fail(kind, exc, failure_message(exc))
        except Exception as exc:
            self.session.rollback()
            log_error("用户操作出现未预期异常", module="users", exception=exc, kind=kind.value)
            wrapped = AppError(message_key="INTERNAL_ERROR")
            return self._fail(kind, wrapped, failure_message(wrapped))

        message, message_key = success
        notification = Notification(NotificationLevel.SUCCESS, message, message_key)
        self._store.invalidate()
        try:
            self._store.refetch()
        except Exception as exc:
            # 变更已提交, 刷新失败时保持列表过期, 下次读取前重新加载.
            log_error("用户操作已提交, 刷新列表失败", module="users", exception=exc, kind=kind.value)
            notification = Notification(
                NotificationLevel.WARNING,
                f"{message}, {ErrorMessages.USERS_REFRESH_FAILED}",
                "USERS_REFRESH_FAILED",
            )
        self._store.clear_selection()
        self._store.close_modal()
        self._status[kind] = MutationStatus.SUCCEEDED
        log_info("用户操作成功", module="users", kind=kind.value, record_id=record_id)
        return MutationOutcome(
            kind=kind,
            status=MutationStatus.SUCCEEDED,
            notification=notification,
            reached_store=True,
            record_id=record_id,
        )

    def _fail(self, kind: MutationKind, error: AppError, message: str) -> MutationOutcome:
        self._status[kind] = MutationStatus.FAILED
        field_errors: FieldErrors = error.field_errors if isinstance(error, ValidationError) else {}
        if field_errors:
            self._store.set_modal_errors(field_errors)
        log_warning(
            "用户操作失败",
            module="users",
            kind=kind.value,
            message_key=error.message_key,
            error_message=error.message,
        )
        return MutationOutcome(
            kind=kind,
            status=MutationStatus.FAILED,
            notification=Notification(NotificationLevel.ERROR, message, error.message_key),
            field_errors=field_errors,
            reached_store=True,
        )

    def _reject_invalid(self, kind: MutationKind, error: ValidationError, form: PayloadMapping) -> MutationOutcome:
        self._remember_form(form)
        self._store.set_modal_errors(error.field_errors)
        log_info(
            "用户表单校验未通过",
            module="users",
            kind=kind.value,
            fields=sorted(error.field_errors),
            form=scrub_sensitive_fields(form),  # type: ignore[arg-type]
        )
        return MutationOutcome(kind=kind, status=MutationStatus.FAILED, field_errors=error.field_errors)

    def _remember_form(self, form: PayloadMapping) -> None:
        """把提交的表单回填到弹窗, 失败时用户无需重新输入. 密码不回填."""
        values = dict(self._store.modal.values)
        values.update({key: value for key, value in form.items() if key != "password"})
        self._store.set_modal_values(values)

    @staticmethod
    def _create_failure_message(error: AppError) -> str:
        if error.message_key == UserWriteService.MESSAGE_EMAIL_EXISTS:
            return error.message
        return ErrorMessages.USER_CREATE_FAILED

    @staticmethod
    def _delete_failure_message(error: AppError, default: str) -> str:
        if error.message_key in {"USER_NOT_FOUND", "NO_USERS_MATCHED"}:
            return error.message
        return default
