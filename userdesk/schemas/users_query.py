"""用户表格 query/filter schema.

把搜索词、年龄范围与分页参数的默认值/边界处理收敛到 schema 单入口.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from userdesk.constants.validation_limits import (
    AGE_RANGE_MAX,
    AGE_RANGE_MIN,
    DEFAULT_PAGE_SIZE,
    PAGE_SIZE_MAX,
    SEARCH_MAX_LENGTH,
)
from userdesk.schemas.base import QuerySchema
from userdesk.schemas.validation import SchemaMessageKeyError
from userdesk.types.users import AgeRange, FilterState

_DEFAULT_PAGE = 1


def _parse_int(value: Any, *, default: int) -> int:
    if value is None:
        return default
    # bool 是 int 的子类,分页参数不应接受 bool.
    if isinstance(value, bool):
        raise ValueError("参数必须为整数")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if not value.strip():
            return default
        try:
            return int(value, 10)
        except ValueError as exc:
            raise ValueError("参数必须为整数") from exc
    raise ValueError("参数必须为整数")


class UserTableQuery(QuerySchema):
    """用户表格 query 参数 schema.

    ``search`` 不做去空白处理: 仅含空白的搜索词仍视为非空条件.
    """

    search: str = Field(default="", validation_alias=AliasChoices("search", "q"))
    age_min: int = AGE_RANGE_MIN
    age_max: int = AGE_RANGE_MAX
    page: int = _DEFAULT_PAGE
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, validation_alias=AliasChoices("page_size", "pageSize"))

    @field_validator("search", mode="before")
    @classmethod
    def _parse_search(cls, value: Any) -> str:
        if value is None:
            return ""
        text = value if isinstance(value, str) else str(value)
        if len(text) > SEARCH_MAX_LENGTH:
            raise ValueError(f"搜索词不能超过{SEARCH_MAX_LENGTH}个字符")
        return text

    @field_validator("age_min", mode="before")
    @classmethod
    def _parse_age_min(cls, value: Any) -> int:
        return _parse_int(value, default=AGE_RANGE_MIN)

    @field_validator("age_max", mode="before")
    @classmethod
    def _parse_age_max(cls, value: Any) -> int:
        return _parse_int(value, default=AGE_RANGE_MAX)

    @field_validator("page", mode="before")
    @classmethod
    def _parse_page(cls, value: Any) -> int:
        return max(_parse_int(value, default=_DEFAULT_PAGE), 1)

    @field_validator("page_size", mode="before")
    @classmethod
    def _parse_page_size(cls, value: Any) -> int:
        parsed = _parse_int(value, default=DEFAULT_PAGE_SIZE)
        return max(min(parsed, PAGE_SIZE_MAX), 1)

    @model_validator(mode="after")
    def _validate_age_range(self) -> UserTableQuery:
        if not AgeRange(self.age_min, self.age_max).is_valid:
            raise SchemaMessageKeyError(
                f"年龄范围必须位于 {AGE_RANGE_MIN}-{AGE_RANGE_MAX} 且下限不大于上限",
                message_key="INVALID_AGE_RANGE",
            )
        return self

    @property
    def page_index(self) -> int:
        """0-based 页码."""
        return self.page - 1

    def to_filter_state(self) -> FilterState:
        return FilterState(query=self.search, age_range=AgeRange(self.age_min, self.age_max))
