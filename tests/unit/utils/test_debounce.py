from __future__ import annotations

from collections.abc import Callable

import pytest

from userdesk.utils.debounce import Debouncer


class _FakeTimer:
    def __init__(self, interval: float, function: Callable[[], None]) -> None:
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function()


class _TimerRecorder:
    def __init__(self) -> None:
        self.timers: list[_FakeTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> _FakeTimer:
        timer = _FakeTimer(interval, function)
        self.timers.append(timer)
        return timer


@pytest.mark.unit
def test_debouncer_only_applies_last_value() -> None:
    received: list[str] = []
    timers = _TimerRecorder()
    debouncer = Debouncer(0.05, received.append, timer_factory=timers)

    debouncer.call("s")
    debouncer.call("sm")
    debouncer.call("smith")

    assert received == []
    assert debouncer.pending is True
    assert [timer.cancelled for timer in timers.timers] == [True, True, False]

    for timer in timers.timers:
        timer.fire()

    assert received == ["smith"]
    assert debouncer.pending is False


@pytest.mark.unit
def test_debouncer_flush_applies_pending_value_immediately() -> None:
    received: list[int] = []
    debouncer = Debouncer(0.05, received.append, timer_factory=_TimerRecorder())

    debouncer.call(1)
    debouncer.call(2)
    debouncer.flush()
    debouncer.flush()

    assert received == [2]


@pytest.mark.unit
def test_debouncer_cancel_discards_pending_value() -> None:
    received: list[int] = []
    timers = _TimerRecorder()
    debouncer = Debouncer(0.05, received.append, timer_factory=timers)

    debouncer.call(1)
    debouncer.cancel()
    timers.timers[0].fire()

    assert received == []
    assert debouncer.pending is False


@pytest.mark.unit
def test_debouncer_with_zero_wait_is_synchronous() -> None:
    received: list[str] = []
    debouncer = Debouncer(0, received.append)

    debouncer.call("a")
    debouncer.call("b")

    assert received == ["a", "b"]


@pytest.mark.unit
def test_debouncer_rejects_negative_wait() -> None:
    with pytest.raises(ValueError):
        Debouncer(-1, print)
