"""分页工具.

包含请求分页参数解析与内存分页切片两部分. 过滤后的全量集合在内存中分页,
不下推到存储层.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import TypeVar

from userdesk.constants.validation_limits import DEFAULT_PAGE_SIZE, PAGE_SIZE_MAX
from userdesk.types.listing import PageSlice
from userdesk.utils.structlog_config import log_info

T = TypeVar("T")

_LEGACY_PAGE_SIZE_KEYS: tuple[str, ...] = ("pageSize", "limit")


def _safe_int(value: str | None, *, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def resolve_page(
    args: Mapping[str, str | None],
    *,
    default: int = 1,
    minimum: int = 1,
) -> int:
    """解析分页页码(1-based).

    Args:
        args: 请求参数映射.
        default: 缺省页码.
        minimum: 最小页码.

    Returns:
        解析后的页码(已做下限保护).

    """
    page = _safe_int(args.get("page"), default=default)
    return max(page, minimum)


def resolve_page_size(
    args: Mapping[str, str | None],
    *,
    default: int = DEFAULT_PAGE_SIZE,
    minimum: int = 1,
    maximum: int = PAGE_SIZE_MAX,
    module: str | None = None,
    action: str | None = None,
) -> int:
    """解析分页每页数量,兼容旧字段.

    兼容顺序: page_size -> pageSize -> limit.

    Returns:
        解析后的每页数量(已做范围裁剪).

    """
    raw = args.get("page_size")
    legacy_key: str | None = None

    if raw is None:
        for key in _LEGACY_PAGE_SIZE_KEYS:
            candidate = args.get(key)
            if candidate is None:
                continue
            raw = candidate
            legacy_key = key
            break

    page_size = _safe_int(raw, default=default)
    page_size = min(max(page_size, minimum), maximum)

    if legacy_key and module and action:
        log_info(
            "检测到旧分页参数字段",
            module=module,
            action=action,
            legacy_key=legacy_key,
            page_size=page_size,
        )

    return page_size


def count_pages(total: int, page_size: int) -> int:
    """计算总页数,空集合也算一页."""
    if page_size <= 0:
        raise ValueError("page_size 必须为正整数")
    return max(1, math.ceil(total / page_size))


def clamp_page_index(page_index: int, total: int, page_size: int) -> int:
    """把 0-based 页码限制在 ``[0, total_pages - 1]`` 内."""
    return min(max(page_index, 0), count_pages(total, page_size) - 1)


def paginate(subset: Sequence[T], page_index: int, page_size: int) -> PageSlice[T]:
    """对过滤后的集合做内存分页.

    ``page_index`` 不在这里修正: 越界页返回空切片, 由调用方先行 ``clamp_page_index``.

    Args:
        subset: 过滤后的有序集合.
        page_index: 0-based 页码.
        page_size: 每页数量,必须为正.

    Returns:
        PageSlice: 当前页数据及总数、总页数.

    """
    total_pages = count_pages(len(subset), page_size)
    start = max(page_index, 0) * page_size
    items = list(subset[start : start + page_size])
    return PageSlice(
        items=items,
        page_index=page_index,
        page_size=page_size,
        total=len(subset),
        total_pages=total_pages,
    )
