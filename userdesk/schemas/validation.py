"""Schema 校验与错误映射."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError
from pydantic_core import ErrorDetails

from userdesk.errors import ValidationError
from userdesk.types.structures import FieldErrors

ModelT = TypeVar("ModelT", bound=BaseModel)

NON_FIELD_ERRORS = "__all__"

_ERROR_TYPE_MESSAGES: dict[str, str] = {
    "missing": "该字段不能为空",
    "string_type": "必须为字符串",
    "int_type": "必须为整数",
    "int_parsing": "必须为整数",
    "int_from_float": "必须为整数",
    "list_type": "必须为列表",
    "extra_forbidden": "不支持的参数",
}


class SchemaMessageKeyError(ValueError):
    """用于从 schema validator 透传 message_key 的错误类型."""

    def __init__(self, message: str, *, message_key: str) -> None:
        super().__init__(message)
        self.message_key = message_key


def validate_or_raise(
    model: type[ModelT],
    payload: object,
    *,
    message_key: str | None = None,
    message_key_by_field: Mapping[str, str] | None = None,
) -> ModelT:
    """执行 schema 校验并抛出项目的 ValidationError.

    首个错误作为异常文案, 所有字段错误按字段名收集到 ``extra["field_errors"]``,
    供表单逐项展示.

    Args:
        model: pydantic model.
        payload: 待校验的 payload.
        message_key: 默认 message_key, 当无法按字段映射时使用.
        message_key_by_field: 按字段映射 message_key 的字典.

    Raises:
        ValidationError: 校验失败时抛出.

    """
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        errors = exc.errors()
        field_errors = collect_field_errors(errors)
        message, field, schema_message_key = _describe_error(errors[0]) if errors else ("参数校验失败", None, None)
        resolved_key = schema_message_key or message_key
        if field and message_key_by_field:
            resolved_key = message_key_by_field.get(field, resolved_key)
        raise ValidationError(
            message,
            message_key=resolved_key,
            extra={"field_errors": field_errors},
        ) from None


def collect_field_errors(errors: list[ErrorDetails]) -> FieldErrors:
    """把 pydantic 错误列表整理为 ``{字段: [文案, ...]}``."""
    collected: FieldErrors = {}
    for error in errors:
        message, field, _ = _describe_error(error)
        collected.setdefault(field or NON_FIELD_ERRORS, []).append(message)
    return collected


def _describe_error(error: ErrorDetails) -> tuple[str, str | None, str | None]:
    field = None
    loc = error.get("loc")
    if isinstance(loc, tuple) and loc and isinstance(loc[0], str):
        field = loc[0]

    ctx = error.get("ctx")
    if isinstance(ctx, dict) and "error" in ctx:
        raw_error = ctx.get("error")
        if isinstance(raw_error, SchemaMessageKeyError):
            return str(raw_error), field, raw_error.message_key
        if isinstance(raw_error, BaseException):
            return str(raw_error), field, None

    mapped = _ERROR_TYPE_MESSAGES.get(str(error.get("type")))
    if mapped:
        return mapped, field, None

    msg = error.get("msg")
    if isinstance(msg, str) and msg.strip():
        return msg, field, None

    return "参数校验失败", field, None
