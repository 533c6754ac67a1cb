"""用户写操作 Service.

职责:
- 处理用户的创建/更新/删除编排
- 负责校验与邮箱唯一性检查
- 调用 repository 执行 add/delete/flush
- 不返回 Response、不 commit
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar

from userdesk.errors import ConflictError, ValidationError
from userdesk.models.user import User
from userdesk.repositories.users_repository import UsersRepository
from userdesk.schemas.users import UserCreatePayload, UserUpdatePayload
from userdesk.schemas.validation import validate_or_raise
from userdesk.utils.structlog_config import log_info

if TYPE_CHECKING:
    from userdesk.types.structures import PayloadMapping


class UserWriteService:
    """用户写操作服务."""

    MESSAGE_EMAIL_EXISTS: ClassVar[str] = "EMAIL_EXISTS"

    def __init__(self, repository: UsersRepository | None = None) -> None:
        """初始化服务并注入用户仓库."""
        self._repository = repository or UsersRepository()

    def create(self, payload: PayloadMapping) -> User:
        """校验 payload 并创建用户."""
        params = validate_or_raise(UserCreatePayload, payload)
        return self.create_validated(params)

    def create_validated(self, params: UserCreatePayload) -> User:
        """创建用户, id 由仓库顺序分配.

        Raises:
            ConflictError: 邮箱已被占用. 此时不会分配新 id.

        """
        self._ensure_email_unique(params.email, exclude_id=None)

        user = User(
            id=self._repository.next_id(),
            first_name=params.first_name,
            last_name=params.last_name,
            email=params.email,
            alternate_email=params.alternate_email,
            age=params.age,
        )
        user.set_password(params.password)
        self._repository.add(user)

        log_info("创建用户成功", module="users", target_user_id=user.id, email=user.email)
        return user

    def update(self, user_id: str, payload: PayloadMapping) -> User | None:
        """校验 payload 并更新用户."""
        params = validate_or_raise(UserUpdatePayload, payload)
        return self.update_validated(user_id, params)

    def update_validated(self, user_id: str, params: UserUpdatePayload) -> User | None:
        """合并提交的字段; 记录不存在时返回 None.

        密码与已存储的哈希相同则不重新哈希.

        Raises:
            ConflictError: 新邮箱属于其他记录.
            ValidationError: 合并后备用邮箱与主邮箱相同.

        """
        user = self._repository.get_by_id(user_id)
        if user is None:
            return None

        changes = params.changes()
        target_email = changes.get("email", user.email)
        target_alternate = changes.get("alternate_email", user.alternate_email)
        self._ensure_alternate_differs(target_email, target_alternate)
        if "email" in changes:
            self._ensure_email_unique(target_email, exclude_id=user.id)

        self._assign(user, changes)
        self._repository.add(user)

        log_info(
            "更新用户成功",
            module="users",
            target_user_id=user.id,
            changed_fields=sorted(key for key in changes if key != "password"),
            password_changed="password" in changes,
        )
        return user

    def delete_one(self, user_id: str) -> bool:
        """删除单个用户; 不存在时返回 False."""
        user = self._repository.get_by_id(user_id)
        if user is None:
            return False
        self._repository.delete(user)
        log_info("删除用户", module="users", deleted_user_id=user_id)
        return True

    def delete_many(self, user_ids: Sequence[str]) -> bool:
        """批量删除; 至少删除一条时返回 True."""
        users = self._repository.get_by_ids(list(dict.fromkeys(user_ids)))
        if not users:
            return False
        deleted = self._repository.delete_many(users)
        log_info(
            "批量删除用户",
            module="users",
            requested=len(user_ids),
            deleted=deleted,
            deleted_user_ids=[user.id for user in users],
        )
        return True

    def exists_by_email(self, email: str) -> bool:
        return self._repository.get_by_email(email) is not None

    def exists_by_email_and_id(self, email: str, user_id: str) -> bool:
        """检查邮箱能否用于指定记录.

        Returns:
            bool: 邮箱已属于该记录时为 True, 无人使用时为 False.

        Raises:
            ConflictError: 邮箱属于其他记录.

        """
        existing = self._repository.get_by_email(email)
        if existing is None:
            return False
        if existing.id != user_id:
            raise ConflictError(message_key=self.MESSAGE_EMAIL_EXISTS, extra={"user_id": user_id})
        return True

    def _ensure_email_unique(self, email: str, *, exclude_id: str | None) -> None:
        existing = self._repository.get_by_email(email)
        if existing and (exclude_id is None or existing.id != exclude_id):
            raise ConflictError(message_key=self.MESSAGE_EMAIL_EXISTS, extra={"email": email})

    @staticmethod
    def _ensure_alternate_differs(email: str, alternate_email: str | None) -> None:
        if alternate_email and alternate_email.lower() == email.lower():
            message = "备用邮箱不能与主邮箱相同"
            raise ValidationError(message, extra={"field_errors": {"alternate_email": [message]}})

    @staticmethod
    def _assign(user: User, changes: dict[str, Any]) -> None:
        for field in ("first_name", "last_name", "email", "alternate_email", "age"):
            if field in changes:
                setattr(user, field, changes[field])

        password_value = changes.get("password")
        if password_value and password_value != user.password:
            user.set_password(password_value)
