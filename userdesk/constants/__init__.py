"""常量模块.

集中管理系统常量,包括错误/成功消息、HTTP 状态码与输入校验阈值.

主要常量:
- ErrorMessages: 错误消息常量
- SuccessMessages: 成功消息常量
- HttpStatus: HTTP 状态码常量
"""

# 导入HTTP状态码常量(使用Python标准库)
from http import HTTPStatus as HttpStatus

from .system_constants import (
    ErrorCategory,
    ErrorMessages,
    ErrorSeverity,
    SuccessMessages,
)

__all__ = [
    "ErrorCategory",
    "ErrorMessages",
    "ErrorSeverity",
    "HttpStatus",
    "SuccessMessages",
]
