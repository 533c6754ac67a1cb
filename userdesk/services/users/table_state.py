"""用户表格状态容器.

集中持有记录列表、过滤条件、页码、行选择与弹窗状态. 由调用方显式创建与传递,
不作为全局单例. 记录列表通过 ``invalidate()`` / ``refetch()`` 整体刷新.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Literal

from userdesk.constants.validation_limits import DEFAULT_PAGE_SIZE
from userdesk.services.users.filtering import filter_users
from userdesk.types.listing import PageSlice
from userdesk.types.structures import FieldErrors
from userdesk.types.users import AgeRange, FilterState, UserRecordDict
from userdesk.utils.debounce import Debouncer, TimerFactory, thread_timer
from userdesk.utils.pagination_utils import clamp_page_index, paginate
from userdesk.utils.structlog_config import log_debug, log_warning

RecordLoader = Callable[[], list[UserRecordDict]]
ModalKind = Literal["create", "edit"]

DEFAULT_DEBOUNCE_SECONDS = 0.05


@dataclass(slots=True)
class ModalState:
    """新增/编辑弹窗状态."""

    kind: ModalKind | None = None
    record_id: str | None = None
    values: dict[str, object] = field(default_factory=dict)
    field_errors: FieldErrors = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.kind is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "open": self.is_open,
            "kind": self.kind,
            "record_id": self.record_id,
            "values": dict(self.values),
            "field_errors": {key: list(value) for key, value in self.field_errors.items()},
        }


class UserTableStore:
    """用户表格的显式状态容器.

    行选择保存的是当前页内的行下标, 翻页、过滤条件变化或记录刷新后清空.

    ``request_query`` / ``request_age_range`` 走防抖, 供长生命周期的交互会话使用;
    无状态的页面请求每次重建容器, 以 ``debounce_seconds=0`` 构造并直接调用
    ``apply_filters``, 输入防抖由页面脚本完成.

    Args:
        loader: 读取全量对外记录的函数.
        page_size: 每页数量.
        debounce_seconds: 搜索词与年龄范围输入的防抖时长.
        timer_factory: 防抖定时器工厂, 测试时可注入假定时器.

    """

    def __init__(
        self,
        loader: RecordLoader,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        timer_factory: TimerFactory = thread_timer,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size 必须为正整数")
        self._loader = loader
        self._lock = threading.RLock()
        self.page_size = page_size
        self.records: list[UserRecordDict] = []
        self.filter_state = FilterState()
        self.page_index = 0
        self.selection: set[int] = set()
        self.modal = ModalState()
        self.stale = True
        self._query_debouncer: Debouncer[str] = Debouncer(
            debounce_seconds,
            self.set_query,
            timer_factory=timer_factory,
        )
        self._age_debouncer: Debouncer[tuple[int, int]] = Debouncer(
            debounce_seconds,
            self._apply_age_range,
            timer_factory=timer_factory,
        )

    # 记录集合 -------------------------------------------------------------

    def invalidate(self) -> None:
        """标记记录列表已过期, 下次读取前需要刷新."""
        with self._lock:
            self.stale = True

    def refetch(self) -> list[UserRecordDict]:
        """整体重新加载记录列表."""
        records = self._loader()
        with self._lock:
            self.records = list(records)
            self.stale = False
            self.page_index = clamp_page_index(self.page_index, len(self.filtered_records()), self.page_size)
            self.selection.clear()
        log_debug("用户表格已刷新", module="users", total=len(records))
        return list(self.records)

    def ensure_fresh(self) -> None:
        if self.stale:
            self.refetch()

    def find_record(self, record_id: str) -> UserRecordDict | None:
        with self._lock:
            return next((record for record in self.records if record["id"] == record_id), None)

    # 过滤与分页 -----------------------------------------------------------

    def filtered_records(self) -> list[UserRecordDict]:
        with self._lock:
            return filter_users(self.records, self.filter_state.query, self.filter_state.age_range)

    def current_page(self) -> PageSlice[UserRecordDict]:
        with self._lock:
            subset = self.filtered_records()
            self.page_index = clamp_page_index(self.page_index, len(subset), self.page_size)
            return paginate(subset, self.page_index, self.page_size)

    def set_query(self, query: str) -> None:
        """立即应用搜索词, 回到第一页."""
        with self._lock:
            if query == self.filter_state.query:
                return
            self.filter_state = replace(self.filter_state, query=query)
            self._reset_position()

    def set_age_range(self, minimum: int, maximum: int) -> bool:
        """立即应用年龄范围.

        范围越界或下限大于上限时拒绝更新, 原状态保持不变.

        Returns:
            bool: 是否已应用.

        """
        candidate = AgeRange(minimum, maximum)
        if not candidate.is_valid:
            log_warning("拒绝无效的年龄范围", module="users", age_min=minimum, age_max=maximum)
            return False
        with self._lock:
            if candidate != self.filter_state.age_range:
                self.filter_state = replace(self.filter_state, age_range=candidate)
                self._reset_position()
        return True

    def apply_filters(self, filters: FilterState) -> bool:
        """一次性应用搜索词与年龄范围; 年龄范围无效时整体不生效."""
        if not filters.age_range.is_valid:
            return False
        with self._lock:
            self.set_query(filters.query)
            self.set_age_range(filters.age_range.minimum, filters.age_range.maximum)
        return True

    def request_query(self, query: str) -> None:
        """防抖提交搜索词, 只有最后一次输入生效."""
        self._query_debouncer.call(query)

    def request_age_range(self, minimum: int, maximum: int) -> None:
        """防抖提交年龄范围."""
        self._age_debouncer.call((minimum, maximum))

    def flush_pending(self) -> None:
        """立即应用尚未触发的防抖输入."""
        self._query_debouncer.flush()
        self._age_debouncer.flush()

    @property
    def has_pending_input(self) -> bool:
        return self._query_debouncer.pending or self._age_debouncer.pending

    def reset_filters(self) -> None:
        """恢复默认过滤条件, 丢弃挂起的输入."""
        self._query_debouncer.cancel()
        self._age_debouncer.cancel()
        with self._lock:
            self.filter_state = FilterState()
            self._reset_position()

    def go_to_page(self, page_index: int) -> int:
        """跳转到指定页(0-based), 越界时修正到有效范围."""
        with self._lock:
            resolved = clamp_page_index(page_index, len(self.filtered_records()), self.page_size)
            if resolved != self.page_index:
                self.page_index = resolved
                self.selection.clear()
            return self.page_index

    def next_page(self) -> int:
        return self.go_to_page(self.page_index + 1)

    def previous_page(self) -> int:
        return self.go_to_page(self.page_index - 1)

    # 行选择 ---------------------------------------------------------------

    def toggle_row(self, row_index: int) -> bool:
        """切换当前页某一行的选中状态; 下标不在当前页内时忽略.

        Returns:
            bool: 切换后该行是否被选中.

        """
        with self._lock:
            page = self.current_page()
            if not 0 <= row_index < len(page.items):
                return False
            if row_index in self.selection:
                self.selection.discard(row_index)
                return False
            self.selection.add(row_index)
            return True

    def set_selection(self, row_indexes: set[int] | list[int]) -> None:
        """整体替换选择, 丢弃不在当前页内的下标."""
        with self._lock:
            page_length = len(self.current_page().items)
            self.selection = {index for index in row_indexes if 0 <= index < page_length}

    def toggle_all_on_page(self, *, checked: bool | None = None) -> None:
        """全选/取消全选当前页. ``checked`` 为空时根据当前状态取反."""
        with self._lock:
            page_indexes = set(range(len(self.current_page().items)))
            target = checked if checked is not None else not self.all_on_page_selected()
            self.selection = page_indexes if target else set()

    def all_on_page_selected(self) -> bool:
        with self._lock:
            page_length = len(self.current_page().items)
            return page_length > 0 and self.selection >= set(range(page_length))

    def clear_selection(self) -> None:
        with self._lock:
            self.selection.clear()

    def selected_ids(self) -> list[str]:
        """把页内选中行解析为记录 id, 按行顺序返回."""
        with self._lock:
            items = self.current_page().items
            return [items[index]["id"] for index in sorted(self.selection) if index < len(items)]

    # 弹窗 -----------------------------------------------------------------

    def open_create_modal(self) -> None:
        with self._lock:
            self.modal = ModalState(kind="create")

    def open_edit_modal(self, record_id: str) -> bool:
        """打开编辑弹窗并预填记录; 记录不存在时返回 False. 密码字段留空."""
        record = self.find_record(record_id)
        if record is None:
            return False
        with self._lock:
            values: dict[str, object] = {key: value for key, value in record.items() if key != "id"}
            values["password"] = ""
            self.modal = ModalState(kind="edit", record_id=record_id, values=values)
        return True

    def set_modal_values(self, values: dict[str, object]) -> None:
        with self._lock:
            self.modal.values = dict(values)

    def set_modal_errors(self, field_errors: FieldErrors) -> None:
        with self._lock:
            self.modal.field_errors = {key: list(value) for key, value in field_errors.items()}

    def close_modal(self) -> None:
        with self._lock:
            self.modal = ModalState()

    def _apply_age_range(self, bounds: tuple[int, int]) -> None:
        self.set_age_range(*bounds)

    def _reset_position(self) -> None:
        self.page_index = 0
        self.selection.clear()
