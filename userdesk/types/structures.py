"""通用结构化数据类型别名.

统一 JSON/Mapping 风格的类型,方便在视图、服务等模块中共享定义,避免重复声明.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, Sequence
from typing import TYPE_CHECKING, TypeAlias, TypedDict

if TYPE_CHECKING:
    from userdesk.errors import AppError

ScalarValue: TypeAlias = str | int | float | bool | None
PayloadValue: TypeAlias = ScalarValue | Sequence[ScalarValue] | Mapping[str, ScalarValue]
PayloadMapping: TypeAlias = Mapping[str, PayloadValue]
FieldErrors: TypeAlias = dict[str, list[str]]

JsonValue: TypeAlias = ScalarValue | Sequence["JsonValue"] | Mapping[str, "JsonValue"]
JsonDict: TypeAlias = dict[str, JsonValue]
ContextDict: TypeAlias = dict[str, JsonValue]
StructlogEventDict: TypeAlias = MutableMapping[str, JsonValue]
LoggerExtra: TypeAlias = Mapping[str, JsonValue]


class RouteSafetyOptions(TypedDict, total=False):
    """safe_route_call 的扩展配置."""

    context: ContextDict | None
    extra: LoggerExtra | None
    expected_exceptions: tuple[type[BaseException], ...]
    fallback_exception: type["AppError"]
    log_event: str | None


__all__ = [
    "ContextDict",
    "FieldErrors",
    "JsonDict",
    "JsonValue",
    "LoggerExtra",
    "PayloadMapping",
    "PayloadValue",
    "RouteSafetyOptions",
    "ScalarValue",
    "StructlogEventDict",
]
