"""用户表格相关类型."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict

from userdesk.constants.validation_limits import AGE_RANGE_MAX, AGE_RANGE_MIN


class UserRecordDict(TypedDict):
    """对外暴露的用户记录结构(不含密码哈希)."""

    id: str
    first_name: str
    last_name: str
    email: str
    alternate_email: str | None
    age: int


@dataclass(slots=True, frozen=True)
class AgeRange:
    """闭区间年龄范围 ``[minimum, maximum]``."""

    minimum: int = AGE_RANGE_MIN
    maximum: int = AGE_RANGE_MAX

    @property
    def is_valid(self) -> bool:
        """范围位于 0..100 且 minimum <= maximum."""
        return AGE_RANGE_MIN <= self.minimum <= self.maximum <= AGE_RANGE_MAX

    def contains(self, age: int) -> bool:
        return self.minimum <= age <= self.maximum

    def as_list(self) -> list[int]:
        return [self.minimum, self.maximum]


@dataclass(slots=True, frozen=True)
class FilterState:
    """表格过滤条件: 自由文本 + 年龄范围."""

    query: str = ""
    age_range: AgeRange = AgeRange()
