"""用户台 - 用户管理页面路由.

页面本身无状态: 每个请求根据 query/body 中的过滤条件、页码与选中行重建
``UserTableStore``, 再交由 ``UserMutationCoordinator`` 执行增删改并返回最新表格视图.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from flask import Blueprint, Response, current_app, render_template, request

from userdesk.errors import NotFoundError, ValidationError
from userdesk.schemas.users_query import UserTableQuery
from userdesk.schemas.validation import validate_or_raise
from userdesk.services.users import (
    MutationOutcome,
    UserMutationCoordinator,
    UsersListService,
    UserTableStore,
    build_table_view,
)
from userdesk.types.structures import PayloadMapping
from userdesk.utils.pagination_utils import resolve_page, resolve_page_size
from userdesk.utils.response_utils import jsonify_unified_success
from userdesk.utils.route_safety import safe_route_call
from userdesk.utils.sensitive_data import scrub_sensitive_fields
from userdesk.utils.structlog_config import log_info

# 创建蓝图
users_bp = Blueprint("users", __name__)

_FILTER_KEYS = ("search", "q", "age_min", "age_max")
_PAGING_KEYS = ("page", "page_size", "pageSize", "limit")


def _parse_selection(raw: object) -> list[int]:
    """解析选中行下标, 支持列表或逗号分隔字符串; 非法项直接忽略."""
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else raw if isinstance(raw, list) else [raw]
    indexes: list[int] = []
    for item in items:
        text = str(item).strip()
        if text.isdigit():
            indexes.append(int(text))
    return indexes


def _build_store(state: Mapping[str, object]) -> UserTableStore:
    """根据请求携带的表格状态重建状态容器."""
    query = validate_or_raise(UserTableQuery, {key: state[key] for key in _FILTER_KEYS if key in state})
    args = {key: None if state.get(key) is None else str(state[key]) for key in _PAGING_KEYS}
    page = resolve_page(args)
    page_size = resolve_page_size(
        args,
        default=current_app.config["USERS_PAGE_SIZE"],
        module="users",
        action="table",
    )

    # 服务端没有连续输入, 防抖时长为 0 即同步应用.
    store = UserTableStore(UsersListService().list_records, page_size=page_size, debounce_seconds=0)
    store.refetch()
    store.apply_filters(query.to_filter_state())
    store.go_to_page(page - 1)
    store.set_selection(_parse_selection(state.get("selected")))
    return store


def _get_json_body() -> dict[str, object]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError(message_key="JSON_REQUIRED")
    return payload


def _as_mapping(value: object) -> PayloadMapping:
    return value if isinstance(value, dict) else {}


@users_bp.route("/")
def index() -> str:
    """用户管理首页."""

    def _execute() -> str:
        store = _build_store(request.args)
        return render_template(
            "users/list.html",
            table=build_table_view(store),
            debounce_ms=current_app.config["FILTER_DEBOUNCE_MS"],
        )

    return safe_route_call(
        _execute,
        module="users",
        action="index",
        public_error="加载用户管理页面失败",
        context={"endpoint": "users_index"},
    )


@users_bp.route("/table")
def table() -> tuple[Response, int]:
    """返回当前过滤条件与页码下的表格视图.

    Query Parameters:
        search: 搜索词(兼容 q), 不去除首尾空白.
        age_min/age_max: 年龄范围, 默认 0-100.
        page: 页码(1-based), 越界时修正到最后一页.
        page_size: 每页数量, 默认取配置 USERS_PAGE_SIZE.
        selected: 当前页选中行下标, 逗号分隔.

    """

    def _execute() -> tuple[Response, int]:
        store = _build_store(request.args)
        return jsonify_unified_success(data={"table": build_table_view(store)})

    return safe_route_call(
        _execute,
        module="users",
        action="table",
        public_error="获取用户表格失败",
        context={"endpoint": "users_table"},
    )


@users_bp.route("/actions/<string:action>", methods=["POST"])
def perform_action(action: str) -> tuple[Response, int]:
    """执行表格上的增删改操作.

    请求体::

        {"state": {...表格状态...}, "record_id": "3", "form": {...表单字段...}}

    操作失败(校验失败、邮箱冲突、记录不存在)同样返回 200,
    结果与提示放在 ``data.outcome`` / ``data.notification`` 中, 表格保持原状态.
    """
    handler = _ACTIONS.get(action)
    if handler is None:
        raise NotFoundError(message_key="RESOURCE_NOT_FOUND", extra={"action": action})

    body = _get_json_body()
    form = _as_mapping(body.get("form"))
    record_id = str(body.get("record_id") or "").strip()
    log_info(
        "用户表格操作请求",
        module="users",
        action=action,
        record_id=record_id or None,
        form=scrub_sensitive_fields(form),  # type: ignore[arg-type]
    )

    def _execute() -> tuple[Response, int]:
        store = _build_store(_as_mapping(body.get("state")))
        coordinator = UserMutationCoordinator(store)
        outcome = handler(store, coordinator, record_id, form)
        return jsonify_unified_success(
            data={
                "outcome": outcome.to_dict(),
                "notification": outcome.notification.to_dict() if outcome.notification else None,
                "table": build_table_view(store, coordinator),
            },
        )

    return safe_route_call(
        _execute,
        module="users",
        action=f"action_{action}",
        public_error="执行用户操作失败",
        context={"action": action, "record_id": record_id or None},
    )


def _require_record_id(record_id: str) -> str:
    if not record_id:
        raise ValidationError(message_key="INVALID_REQUEST", extra={"field_errors": {"record_id": ["缺少用户 ID"]}})
    return record_id


def _create(
    store: UserTableStore,
    coordinator: UserMutationCoordinator,
    _record_id: str,
    form: PayloadMapping,
) -> MutationOutcome:
    store.open_create_modal()
    return coordinator.create(form)


def _update(
    store: UserTableStore,
    coordinator: UserMutationCoordinator,
    record_id: str,
    form: PayloadMapping,
) -> MutationOutcome:
    resolved_id = _require_record_id(record_id)
    store.open_edit_modal(resolved_id)
    return coordinator.update(resolved_id, form)


def _delete(
    _store: UserTableStore,
    coordinator: UserMutationCoordinator,
    record_id: str,
    _form: PayloadMapping,
) -> MutationOutcome:
    return coordinator.delete_one(_require_record_id(record_id))


def _delete_selected(
    _store: UserTableStore,
    coordinator: UserMutationCoordinator,
    _record_id: str,
    _form: PayloadMapping,
) -> MutationOutcome:
    return coordinator.delete_selected()


_ACTIONS: dict[str, Callable[[UserTableStore, UserMutationCoordinator, str, PayloadMapping], MutationOutcome]] = {
    "create": _create,
    "update": _update,
    "delete": _delete,
    "delete-selected": _delete_selected,
}
