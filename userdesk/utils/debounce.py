"""基于定时器的输入防抖.

新输入到达时取消尚未触发的旧定时器,只以最后一次输入调用回调,
最后一次输入不会被丢弃.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")


class TimerLike(Protocol):
    """``threading.Timer`` 的最小接口,便于测试注入假定时器."""

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerLike]


def thread_timer(interval: float, function: Callable[[], None]) -> TimerLike:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class Debouncer(Generic[T]):
    """合并短时间内的连续输入.

    Args:
        wait_seconds: 静默等待时长,0 表示同步立即触发.
        callback: 静默期结束后以最后一次输入调用的函数.
        timer_factory: 定时器工厂,默认使用 ``threading.Timer``.

    """

    def __init__(
        self,
        wait_seconds: float,
        callback: Callable[[T], None],
        *,
        timer_factory: TimerFactory = thread_timer,
    ) -> None:
        if wait_seconds < 0:
            raise ValueError("wait_seconds 不能为负数")
        self.wait_seconds = wait_seconds
        self._callback = callback
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: TimerLike | None = None
        self._pending_value: T | None = None
        self._has_pending = False

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._has_pending

    def call(self, value: T) -> None:
        """提交一次输入,取消尚未触发的上一次."""
        if self.wait_seconds == 0:
            self.cancel()
            self._callback(value)
            return

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending_value = value
            self._has_pending = True
            timer = self._timer_factory(self.wait_seconds, self._fire)
            self._timer = timer
        timer.start()

    def flush(self) -> None:
        """立即以挂起的输入触发回调; 无挂起输入时不做任何事."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
        self._fire()

    def cancel(self) -> None:
        """丢弃挂起的输入."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending_value = None
            self._has_pending = False

    def _fire(self) -> None:
        with self._lock:
            if not self._has_pending:
                return
            value = self._pending_value
            self._timer = None
            self._pending_value = None
            self._has_pending = False
        self._callback(value)  # type: ignore[arg-type]
