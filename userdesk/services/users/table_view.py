"""用户表格视图模型.

把状态容器中的当前页转换为可直接渲染/序列化的结构: 表头、行、勾选框、
行内操作、分页摘要与按钮可用状态.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, TypedDict

if TYPE_CHECKING:
    from userdesk.services.users.mutation_coordinator import UserMutationCoordinator
    from userdesk.services.users.table_state import UserTableStore
    from userdesk.types.users import UserRecordDict

HeaderCheckboxState = Literal["checked", "unchecked", "indeterminate"]


class ColumnDict(TypedDict):
    key: str
    label: str


class RowActionDict(TypedDict):
    action: str
    label: str
    record_id: str


class RowDict(TypedDict):
    index: int
    id: str
    selected: bool
    cells: UserRecordDict
    actions: list[RowActionDict]


class PaginationDict(TypedDict):
    page: int
    page_index: int
    page_size: int
    total: int
    total_pages: int
    first_row: int
    last_row: int
    summary: str
    previous_disabled: bool
    next_disabled: bool


class TableViewDict(TypedDict):
    columns: list[ColumnDict]
    rows: list[RowDict]
    empty: bool
    header_checkbox: HeaderCheckboxState
    selected_count: int
    delete_selected_disabled: bool
    filters: dict[str, object]
    pagination: PaginationDict
    modal: dict[str, object]
    submit_disabled: dict[str, bool]


COLUMNS: list[ColumnDict] = [
    {"key": "select", "label": ""},
    {"key": "first_name", "label": "名"},
    {"key": "last_name", "label": "姓"},
    {"key": "email", "label": "邮箱"},
    {"key": "alternate_email", "label": "备用邮箱"},
    {"key": "age", "label": "年龄"},
    {"key": "actions", "label": "操作"},
]


def _header_checkbox_state(selected_count: int, page_length: int) -> HeaderCheckboxState:
    if page_length == 0 or selected_count == 0:
        return "unchecked"
    if selected_count >= page_length:
        return "checked"
    return "indeterminate"


def _row_actions(record_id: str) -> list[RowActionDict]:
    return [
        {"action": "edit", "label": "编辑", "record_id": record_id},
        {"action": "delete", "label": "删除", "record_id": record_id},
    ]


def format_summary(first_row: int, last_row: int, total: int) -> str:
    """生成 "显示第 X 到 Y 条, 共 Z 条" 摘要."""
    return f"显示第 {first_row} 到 {last_row} 条, 共 {total} 条"


def build_table_view(
    store: UserTableStore,
    coordinator: UserMutationCoordinator | None = None,
) -> TableViewDict:
    """根据状态容器生成表格视图.

    Args:
        store: 表格状态容器, 记录过期时会先刷新.
        coordinator: 可选的操作协调器, 用于计算提交按钮是否禁用.

    Returns:
        TableViewDict: 可直接 JSON 序列化的视图结构.

    """
    store.ensure_fresh()
    page = store.current_page()
    selection = {index for index in store.selection if index < len(page.items)}

    rows: list[RowDict] = [
        {
            "index": index,
            "id": record["id"],
            "selected": index in selection,
            "cells": record,
            "actions": _row_actions(record["id"]),
        }
        for index, record in enumerate(page.items)
    ]

    in_flight = {kind.value for kind in coordinator.in_flight_kinds()} if coordinator else set()
    age_range = store.filter_state.age_range

    return {
        "columns": list(COLUMNS),
        "rows": rows,
        "empty": not rows,
        "header_checkbox": _header_checkbox_state(len(selection), len(page.items)),
        "selected_count": len(selection),
        "delete_selected_disabled": not selection or "delete_many" in in_flight,
        "filters": {"query": store.filter_state.query, "age_range": age_range.as_list()},
        "pagination": {
            "page": page.page_index + 1,
            "page_index": page.page_index,
            "page_size": page.page_size,
            "total": page.total,
            "total_pages": page.total_pages,
            "first_row": page.first_row_number,
            "last_row": page.last_row_number,
            "summary": format_summary(page.first_row_number, page.last_row_number, page.total),
            "previous_disabled": not page.has_previous,
            "next_disabled": not page.has_next,
        },
        "modal": store.modal.to_dict(),
        "submit_disabled": {
            "create": "create" in in_flight,
            "update": "update" in in_flight,
        },
    }
