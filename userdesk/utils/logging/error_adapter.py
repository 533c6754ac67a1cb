"""日志系统使用的增强错误处理辅助方法."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import has_request_context, request
from werkzeug.exceptions import HTTPException

from userdesk.constants import HttpStatus
from userdesk.constants.system_constants import ErrorCategory, ErrorMessages, ErrorSeverity
from userdesk.errors import AppError
from userdesk.utils.logging.context_vars import request_id_var


@dataclass(slots=True)
class ErrorContext:
    """异常发生时采集的上下文信息.

    Attributes:
        error: 捕获的异常对象.
        request: Flask 请求对象,可选.
        error_id: 唯一错误标识符,自动生成.
        timestamp: 错误发生时间戳.
        request_id: 请求 ID,从上下文变量获取.
        url: 请求 URL.
        method: HTTP 方法.
        extra: 额外的上下文信息字典.

    """

    error: Exception
    request: Any | None = None
    error_id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    request_id: str | None = field(default_factory=lambda: request_id_var.get())
    url: str | None = None
    method: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def ensure_request(self) -> None:
        """确保请求上下文信息已填充."""
        if self.request is None and has_request_context():
            self.request = request

        if self.request is not None:
            self.url = getattr(self.request, "url", self.url)
            self.method = getattr(self.request, "method", self.method)
            self.extra.setdefault("ip_address", getattr(self.request, "remote_addr", None))


@dataclass(slots=True)
class ErrorMetadata:
    """用于判定错误分类的元数据."""

    status_code: int
    category: ErrorCategory
    severity: ErrorSeverity
    message_key: str
    message: str
    recoverable: bool


def derive_error_metadata(error: Exception) -> ErrorMetadata:
    """从异常对象推导错误元数据.

    支持 AppError、HTTPException 与通用异常; 通用异常一律视为系统错误,
    不向外暴露原始异常文本.

    Args:
        error: 异常对象.

    Returns:
        ErrorMetadata: 包含完整错误元数据的对象.

    """
    if isinstance(error, AppError):
        return ErrorMetadata(
            status_code=error.status_code,
            category=error.category,
            severity=error.severity,
            message_key=error.message_key,
            message=error.message,
            recoverable=error.recoverable,
        )

    if isinstance(error, HTTPException):
        status_code = int(getattr(error, "code", HttpStatus.INTERNAL_SERVER_ERROR) or HttpStatus.INTERNAL_SERVER_ERROR)
        message = getattr(error, "description", ErrorMessages.INTERNAL_ERROR)
        is_server_error = status_code >= HttpStatus.INTERNAL_SERVER_ERROR
        severity = ErrorSeverity.HIGH if is_server_error else ErrorSeverity.MEDIUM
        return ErrorMetadata(
            status_code=status_code,
            category=ErrorCategory.SYSTEM if is_server_error else ErrorCategory.BUSINESS,
            severity=severity,
            message_key="INTERNAL_ERROR" if is_server_error else "INVALID_REQUEST",
            message=message,
            recoverable=severity in (ErrorSeverity.LOW, ErrorSeverity.MEDIUM),
        )

    return ErrorMetadata(
        status_code=HttpStatus.INTERNAL_SERVER_ERROR,
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.HIGH,
        message_key="INTERNAL_ERROR",
        message=ErrorMessages.INTERNAL_ERROR,
        recoverable=False,
    )


def build_public_context(context: ErrorContext) -> dict[str, Any]:
    """构建可对外暴露的错误上下文信息."""
    context.ensure_request()
    payload: dict[str, Any] = {"request_id": context.request_id}
    if context.url:
        payload["url"] = context.url
    if context.method:
        payload["method"] = context.method
    if context.extra:
        payload["meta"] = {key: value for key, value in context.extra.items() if value is not None}
    return payload


def get_error_suggestions(category: ErrorCategory) -> list[str]:
    """根据错误类别获取建议的解决方案."""
    suggestions_map = {
        ErrorCategory.VALIDATION: ["检查输入数据", "根据提示修正请求参数"],
        ErrorCategory.BUSINESS: ["确认业务规则", "刷新列表后重试"],
        ErrorCategory.SYSTEM: ["联系管理员", "查看错误日志"],
    }
    return suggestions_map.get(category, ["联系管理员", "查看错误日志"])


__all__ = [
    "ErrorContext",
    "ErrorMetadata",
    "build_public_context",
    "derive_error_metadata",
    "get_error_suggestions",
]
