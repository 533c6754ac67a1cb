"""用户台 - 系统常量定义.

统一管理错误分类、严重度与对外提示文案.
"""

from enum import Enum


class ErrorCategory(Enum):
    """错误分类枚举."""

    VALIDATION = "validation"
    BUSINESS = "business"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """错误严重程度枚举."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# 错误消息常量
class ErrorMessages:
    """错误消息常量."""

    # 通用错误
    INTERNAL_ERROR = "服务器内部错误"
    VALIDATION_ERROR = "数据验证失败"
    RESOURCE_NOT_FOUND = "资源不存在"
    INVALID_REQUEST = "无效的请求"
    JSON_REQUIRED = "请求必须是JSON格式"
    REQUEST_DATA_EMPTY = "请求数据不能为空"

    CONSTRAINT_VIOLATION = "数据约束错误"

    # 用户记录
    USER_NOT_FOUND = "用户不存在"
    EMAIL_EXISTS = "邮箱已被其他用户使用"
    USER_CREATE_FAILED = "新增用户失败"
    USER_UPDATE_FAILED = "更新用户失败"
    USER_DELETE_FAILED = "删除用户失败"
    USERS_DELETE_FAILED = "批量删除用户失败"
    NO_USERS_MATCHED = "未找到需要删除的用户"
    NO_USERS_SELECTED = "请先选择需要删除的用户"
    INVALID_AGE_RANGE = "年龄范围无效"
    USERS_REFRESH_FAILED = "用户列表刷新失败, 请稍后重新加载"


# 成功消息常量
class SuccessMessages:
    """成功消息常量."""

    OPERATION_SUCCESS = "操作成功"
    DATA_RETRIEVED = "数据获取成功"

    USER_CREATED = "用户新增成功"
    USER_UPDATED = "用户更新成功"
    USER_DELETED = "用户删除成功"
    USERS_DELETED = "批量删除用户成功"
