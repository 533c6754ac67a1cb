"""用户台的结构化日志配置与辅助函数."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, cast
from uuid import uuid4

import structlog
from flask import Flask, current_app, has_request_context, request

from userdesk.constants.system_constants import ErrorSeverity
from userdesk.errors import ValidationError
from userdesk.settings import APP_VERSION
from userdesk.utils.logging.context_vars import request_id_var
from userdesk.utils.logging.error_adapter import (
    ErrorContext,
    ErrorMetadata,
    build_public_context,
    derive_error_metadata,
    get_error_suggestions,
)

if TYPE_CHECKING:
    from structlog.typing import BindableLogger, Processor

    from userdesk.types.structures import ContextDict, JsonValue, LoggerExtra, StructlogEventDict

    LogField = JsonValue | ContextDict | LoggerExtra
    ErrorPayload = dict[str, LogField]

REQUEST_ID_HEADER = "X-Request-ID"


class StructlogConfig:
    """structlog 配置核心类.

    负责配置处理器链(时间戳、日志级别、请求上下文、全局上下文与控制台渲染).

    Example:
        >>> config = StructlogConfig()
        >>> config.configure(app)
        >>> logger = get_logger('my_module')

    """

    def __init__(self) -> None:
        self.configured = False

    def configure(self, app: Flask | None = None) -> None:
        """初始化 structlog 处理器(幂等).

        Args:
            app: Flask 应用实例,可选.提供时注册请求 ID 钩子.

        """
        if not self.configured:
            processors = [
                structlog.stdlib.filter_by_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                self._add_request_context,
                self._add_global_context,
                self._get_console_renderer(),
            ]
            structlog.configure(
                processors=cast("list[Processor]", processors),
                context_class=dict,
                logger_factory=structlog.stdlib.LoggerFactory(),
                wrapper_class=structlog.stdlib.BoundLogger,
                cache_logger_on_first_use=True,
            )
            self.configured = True

        if app is not None:
            self._attach_app(app)

    @staticmethod
    def _attach_app(app: Flask) -> None:
        @app.before_request
        def bind_request_id() -> None:
            request_id_var.set(request.headers.get(REQUEST_ID_HEADER) or uuid4().hex)

        @app.teardown_request
        def clear_request_id(_exception: BaseException | None) -> None:
            request_id_var.set(None)

    @staticmethod
    def _add_request_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: StructlogEventDict,
    ) -> StructlogEventDict:
        if has_request_context():
            event_dict["request_id"] = request_id_var.get()
            event_dict["path"] = request.path
        return event_dict

    @staticmethod
    def _add_global_context(
        _logger: BindableLogger,
        _method_name: str,
        event_dict: StructlogEventDict,
    ) -> StructlogEventDict:
        """附加应用名、版本等全局上下文."""
        try:
            event_dict["app_name"] = current_app.config["APP_NAME"]
            event_dict["app_version"] = current_app.config["APP_VERSION"]
            event_dict["environment"] = current_app.config.get("ENV", "development")
        except RuntimeError:
            event_dict["app_name"] = "用户台"
            event_dict["app_version"] = APP_VERSION

        event_dict["logger_name"] = getattr(_logger, "name", "unknown")
        return event_dict

    @staticmethod
    def _get_console_renderer() -> Processor:
        """根据终端能力返回渲染器."""
        if sys.stdout.isatty():
            return structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=10),
            )
        return structlog.dev.ConsoleRenderer(colors=False)


structlog_config = StructlogConfig()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """获取结构化日志记录器.

    Args:
        name: 日志记录器名称,通常使用模块名.

    Returns:
        绑定的 structlog 日志记录器实例.

    """
    structlog_config.configure()
    return structlog.get_logger(name)


def configure_structlog(app: Flask) -> None:
    """配置 structlog 并注册 Flask 钩子."""
    structlog_config.configure(app)

    @app.teardown_appcontext
    def log_teardown_error(exception: BaseException | None) -> None:
        if exception:
            get_logger("app").error("应用请求处理异常", module="system", exception=str(exception))


def log_info(message: str, module: str = "app", **kwargs: LogField) -> None:
    """记录信息级别日志.

    Example:
        >>> log_info('用户新增成功', module='users', user_id='3')

    """
    get_logger("app").info(message, module=module, **kwargs)


def log_warning(
    message: str,
    module: str = "app",
    exception: Exception | None = None,
    **kwargs: LogField,
) -> None:
    """记录警告级别日志."""
    logger = get_logger("app")
    if exception:
        logger.warning(message, module=module, exception=str(exception), **kwargs)
    else:
        logger.warning(message, module=module, **kwargs)


def log_error(
    message: str,
    module: str = "app",
    exception: Exception | None = None,
    **kwargs: LogField,
) -> None:
    """记录错误级别日志.

    Args:
        message: 日志消息.
        module: 模块名称,默认为 'app'.
        exception: 可选的异常对象,会记录堆栈信息.
        **kwargs: 额外的上下文信息.

    """
    logger = get_logger("app")
    if exception:
        logger.error(message, module=module, error=str(exception), exc_info=exception, **kwargs)
    else:
        logger.error(message, module=module, **kwargs)


def log_debug(message: str, module: str = "app", **kwargs: LogField) -> None:
    """记录调试级别日志."""
    get_logger("app").debug(message, module=module, **kwargs)


def enhanced_error_handler(
    error: Exception,
    context: ErrorContext | None = None,
    *,
    extra: LoggerExtra | None = None,
) -> ErrorPayload:
    """增强的错误处理器.

    将异常转换为结构化的错误响应,包含错误分类、严重级别和建议,
    并按严重级别输出日志.

    Args:
        error: 异常对象.
        context: 错误上下文,可选.如果未提供会自动创建.
        extra: 额外的上下文信息,可选.

    Returns:
        结构化的错误响应字典.

    """
    context = context or ErrorContext(error)
    context.ensure_request()

    metadata = derive_error_metadata(error)
    payload: ErrorPayload = {
        "error": True,
        "error_id": context.error_id,
        "category": metadata.category.value,
        "severity": metadata.severity.value,
        "message_code": metadata.message_key,
        "message": metadata.message,
        "timestamp": context.timestamp.isoformat(),
        "recoverable": metadata.recoverable,
        "suggestions": get_error_suggestions(metadata.category),
        "context": build_public_context(context),
    }
    public_extra: dict[str, LogField] = dict(extra or {})
    if isinstance(error, ValidationError) and error.field_errors:
        public_extra.setdefault("field_errors", cast("LogField", error.field_errors))
    if public_extra:
        payload["extra"] = public_extra

    _log_enhanced_error(error, metadata, payload)
    return payload


def _log_enhanced_error(error: Exception, metadata: ErrorMetadata, payload: ErrorPayload) -> None:
    log_kwargs: dict[str, LogField] = {
        "error_id": payload["error_id"],
        "category": payload["category"],
        "severity": payload["severity"],
    }
    message_val = payload.get("message", "")
    message_text = message_val if isinstance(message_val, str) else str(message_val)

    if metadata.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
        log_error(message_text, module="error_handler", exception=error, **log_kwargs)
    else:
        log_warning(message_text, module="error_handler", exception=error, **log_kwargs)


__all__ = [
    "ErrorContext",
    "ErrorMetadata",
    "configure_structlog",
    "enhanced_error_handler",
    "get_logger",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
]
