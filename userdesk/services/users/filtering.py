"""用户记录过滤.

纯函数, 不修改输入, 保持原有顺序.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TypeVar

from userdesk.types.users import AgeRange

RecordT = TypeVar("RecordT", bound=Mapping[str, object])


def matches_query(record: Mapping[str, object], query: str) -> bool:
    """空搜索词恒为真; 否则任一字符串字段(忽略大小写)包含搜索词即为真."""
    if not query:
        return True
    needle = query.lower()
    return any(isinstance(value, str) and needle in value.lower() for value in record.values())


def filter_users(records: Sequence[RecordT], query: str, age_range: AgeRange) -> list[RecordT]:
    """计算可见记录子集.

    记录需同时满足: ``age`` 位于闭区间 ``age_range`` 内, 且匹配搜索词.
    搜索词不做去空白处理.

    Args:
        records: 对外记录(不含密码哈希)的有序序列.
        query: 自由文本搜索词.
        age_range: 闭区间年龄范围.

    Returns:
        list: 保持原顺序的子集.

    """
    return [
        record
        for record in records
        if isinstance(record.get("age"), int)
        and age_range.contains(int(record["age"]))  # type: ignore[call-overload]
        and matches_query(record, query)
    ]
