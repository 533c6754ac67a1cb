"""用户写路径 schema.

新增与编辑共用同一套字段规则: 姓名至少 2 个字符、邮箱格式、年龄不小于 18、
密码至少 8 位、备用邮箱不得与主邮箱相同.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import StrictStr, ValidationInfo, field_validator

from userdesk.constants.validation_limits import (
    EMAIL_PATTERN,
    USER_EMAIL_MAX_LENGTH,
    USER_MIN_AGE,
    USER_NAME_MAX_LENGTH,
    USER_NAME_MIN_LENGTH,
    USER_PASSWORD_MAX_LENGTH,
    USER_PASSWORD_MIN_LENGTH,
)
from userdesk.schemas.base import PayloadSchema

_EMAIL_RE = re.compile(EMAIL_PATTERN)


def _validate_name(value: str, *, label: str) -> str:
    cleaned = value.strip()
    if len(cleaned) < USER_NAME_MIN_LENGTH:
        raise ValueError(f"{label}至少需要{USER_NAME_MIN_LENGTH}个字符")
    if len(cleaned) > USER_NAME_MAX_LENGTH:
        raise ValueError(f"{label}不能超过{USER_NAME_MAX_LENGTH}个字符")
    return cleaned


def _validate_email(value: str, *, label: str = "邮箱") -> str:
    cleaned = value.strip()
    if len(cleaned) > USER_EMAIL_MAX_LENGTH or not _EMAIL_RE.match(cleaned):
        raise ValueError(f"{label}格式不正确")
    return cleaned


def _parse_optional_email(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _validate_age(value: int) -> int:
    if value < USER_MIN_AGE:
        raise ValueError(f"年龄不能小于{USER_MIN_AGE}岁")
    return value


def _reject_bool(value: Any) -> Any:
    # bool 是 int 的子类,年龄不应接受 bool.
    if isinstance(value, bool):
        raise ValueError("必须为整数")
    return value


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("该字段不能为空")
    return value


def _validate_password(value: str) -> str:
    if len(value) < USER_PASSWORD_MIN_LENGTH:
        raise ValueError(f"密码长度至少{USER_PASSWORD_MIN_LENGTH}位")
    if len(value) > USER_PASSWORD_MAX_LENGTH:
        raise ValueError(f"密码长度不能超过{USER_PASSWORD_MAX_LENGTH}位")
    return value


def _ensure_alternate_differs(alternate_email: str | None, info: ValidationInfo) -> str | None:
    email = info.data.get("email")
    if alternate_email and isinstance(email, str) and alternate_email.lower() == email.lower():
        raise ValueError("备用邮箱不能与主邮箱相同")
    return alternate_email


class UserCreatePayload(PayloadSchema):
    """新增用户 payload."""

    first_name: StrictStr
    last_name: StrictStr
    email: StrictStr
    alternate_email: StrictStr | None = None
    age: int
    password: StrictStr

    @field_validator("first_name")
    @classmethod
    def _validate_first_name(cls, value: str) -> str:
        return _validate_name(value, label="名")

    @field_validator("last_name")
    @classmethod
    def _validate_last_name(cls, value: str) -> str:
        return _validate_name(value, label="姓")

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator("alternate_email", mode="before")
    @classmethod
    def _parse_alternate_email(cls, value: Any) -> Any:
        return _parse_optional_email(value)

    @field_validator("alternate_email")
    @classmethod
    def _validate_alternate_email(cls, value: str | None, info: ValidationInfo) -> str | None:
        if value is None:
            return None
        return _ensure_alternate_differs(_validate_email(value, label="备用邮箱"), info)

    @field_validator("age", mode="before")
    @classmethod
    def _parse_age(cls, value: Any) -> Any:
        return _reject_bool(value)

    @field_validator("age")
    @classmethod
    def _validate_age(cls, value: int) -> int:
        return _validate_age(value)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        return _validate_password(value)


class UserUpdatePayload(PayloadSchema):
    """编辑用户 payload.

    只校验实际提交的字段; 未提交的字段保持原值. 密码留空表示沿用原密码.
    备用邮箱传空字符串表示清空.
    """

    first_name: StrictStr | None = None
    last_name: StrictStr | None = None
    email: StrictStr | None = None
    alternate_email: StrictStr | None = None
    age: int | None = None
    password: StrictStr | None = None

    # 编辑时可以不提交这些字段, 但不能显式提交 null.
    @field_validator("first_name", "last_name", "email", "age", mode="before")
    @classmethod
    def _reject_explicit_null(cls, value: Any) -> Any:
        return _reject_null(value)

    @field_validator("first_name")
    @classmethod
    def _validate_first_name(cls, value: str | None) -> str | None:
        return None if value is None else _validate_name(value, label="名")

    @field_validator("last_name")
    @classmethod
    def _validate_last_name(cls, value: str | None) -> str | None:
        return None if value is None else _validate_name(value, label="姓")

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str | None) -> str | None:
        return None if value is None else _validate_email(value)

    @field_validator("alternate_email", mode="before")
    @classmethod
    def _parse_alternate_email(cls, value: Any) -> Any:
        return _parse_optional_email(value)

    @field_validator("alternate_email")
    @classmethod
    def _validate_alternate_email(cls, value: str | None, info: ValidationInfo) -> str | None:
        if value is None:
            return None
        return _ensure_alternate_differs(_validate_email(value, label="备用邮箱"), info)

    @field_validator("age", mode="before")
    @classmethod
    def _parse_age(cls, value: Any) -> Any:
        return _reject_bool(value)

    @field_validator("age")
    @classmethod
    def _validate_age(cls, value: int | None) -> int | None:
        return None if value is None else _validate_age(value)

    @field_validator("password", mode="before")
    @classmethod
    def _parse_password(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        return value

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str | None) -> str | None:
        return None if value is None else _validate_password(value)

    def changes(self) -> dict[str, Any]:
        """返回实际提交的字段; 空密码不计入."""
        submitted = self.model_dump(include=self.model_fields_set)
        if submitted.get("password") is None:
            submitted.pop("password", None)
        return submitted


class UsersBatchDeletePayload(PayloadSchema):
    """批量删除 payload."""

    ids: list[StrictStr]

    @field_validator("ids")
    @classmethod
    def _normalize_ids(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for item in value:
            normalized = item.strip()
            if normalized and normalized not in cleaned:
                cleaned.append(normalized)
        if not cleaned:
            raise ValueError("请先选择需要删除的用户")
        return cleaned
