"""用户台 - 统一异常定义.

集中维护业务异常类型、严重度与 HTTP 状态码映射.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypedDict, Unpack

from werkzeug.exceptions import HTTPException

from userdesk.constants import HttpStatus
from userdesk.constants.system_constants import ErrorCategory, ErrorMessages, ErrorSeverity

if TYPE_CHECKING:
    from userdesk.types.structures import FieldErrors, LoggerExtra


class AppErrorKwargs(TypedDict, total=False):
    """AppError 可选关键字参数结构."""

    message_key: str | None
    extra: LoggerExtra | None
    severity: ErrorSeverity | None
    category: ErrorCategory | None
    status_code: int | None


@dataclass(slots=True)
class ExceptionMetadata:
    """异常的元信息."""

    status_code: int
    category: ErrorCategory
    severity: ErrorSeverity
    default_message_key: str

    @property
    def default_message(self) -> str:
        """根据 message key 获取默认文案."""
        return getattr(ErrorMessages, self.default_message_key, ErrorMessages.INTERNAL_ERROR)


class AppError(Exception):
    """统一的基础业务异常.

    Args:
        message: 自定义错误文案,若为空则根据 ``message_key`` 推导.
        **kwargs: 可覆盖 message_key、extra、severity、category、status_code.

    """

    metadata = ExceptionMetadata(
        status_code=HttpStatus.INTERNAL_SERVER_ERROR,
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
        default_message_key="INTERNAL_ERROR",
    )

    def __init__(self, message: str | None = None, **kwargs: Unpack[AppErrorKwargs]) -> None:
        self.message_key = kwargs.get("message_key") or self.metadata.default_message_key
        self.message = message or getattr(ErrorMessages, self.message_key, ErrorMessages.INTERNAL_ERROR)
        self.extra = dict(kwargs.get("extra") or {})
        self._severity = kwargs.get("severity") or self.metadata.severity
        self._category = kwargs.get("category") or self.metadata.category
        self._status_code = kwargs.get("status_code") or self.metadata.status_code
        super().__init__(self.message)

    @property
    def severity(self) -> ErrorSeverity:
        """返回异常实例对应的严重度."""
        return self._severity

    @property
    def category(self) -> ErrorCategory:
        """返回异常所属的业务分类."""
        return self._category

    @property
    def status_code(self) -> int:
        """返回异常对应的 HTTP 状态码."""
        return self._status_code

    @property
    def recoverable(self) -> bool:
        """表示该异常是否可恢复.

        Returns:
            bool: 严重度为 LOW 或 MEDIUM 时为 True.

        """
        return self.severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM)


class ValidationError(AppError):
    """表示输入参数或请求体验证失败.

    字段级错误保存在 ``extra["field_errors"]`` 中,供表单逐项展示,默认返回 400.
    """

    metadata = ExceptionMetadata(
        status_code=HttpStatus.BAD_REQUEST,
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.LOW,
        default_message_key="VALIDATION_ERROR",
    )

    @property
    def field_errors(self) -> FieldErrors:
        """返回字段名到错误文案列表的映射."""
        raw = self.extra.get("field_errors")
        if not isinstance(raw, dict):
            return {}
        return {str(key): [str(item) for item in value] for key, value in raw.items() if isinstance(value, list)}


class NotFoundError(AppError):
    """表示客户端请求的资源不存在或被删除,默认返回 404."""

    metadata = ExceptionMetadata(
        status_code=HttpStatus.NOT_FOUND,
        category=ErrorCategory.BUSINESS,
        severity=ErrorSeverity.LOW,
        default_message_key="RESOURCE_NOT_FOUND",
    )


class ConflictError(AppError):
    """表示资源状态冲突或违反唯一性约束.

    典型场景为邮箱重复,默认返回 409.
    """

    metadata = ExceptionMetadata(
        status_code=HttpStatus.CONFLICT,
        category=ErrorCategory.BUSINESS,
        severity=ErrorSeverity.MEDIUM,
        default_message_key="CONSTRAINT_VIOLATION",
    )


class SystemError(AppError):
    """表示系统级未知错误或底层故障.

    用于捕获无法归类的异常,默认返回 500.
    """

    metadata = ExceptionMetadata(
        status_code=HttpStatus.INTERNAL_SERVER_ERROR,
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
        default_message_key="INTERNAL_ERROR",
    )


EXCEPTION_STATUS_MAP: dict[type[BaseException], int] = {
    ValidationError: ValidationError.metadata.status_code,
    NotFoundError: NotFoundError.metadata.status_code,
    ConflictError: ConflictError.metadata.status_code,
    SystemError: SystemError.metadata.status_code,
}


def map_exception_to_status(error: Exception, default: int = HttpStatus.INTERNAL_SERVER_ERROR) -> int:
    """根据异常类型推导 HTTP 状态码.

    Args:
        error: 捕获到的异常对象.
        default: 无法匹配时的默认状态码.

    Returns:
        int: 与异常对应的 HTTP 状态码.

    """
    if isinstance(error, AppError):
        return error.status_code

    if isinstance(error, HTTPException):
        code = getattr(error, "code", None)
        if code is not None:
            return int(code)

    for exc_type, status in EXCEPTION_STATUS_MAP.items():
        if isinstance(error, exc_type):
            return status

    return default


__all__ = [
    "EXCEPTION_STATUS_MAP",
    "AppError",
    "ConflictError",
    "NotFoundError",
    "SystemError",
    "ValidationError",
    "map_exception_to_status",
]
