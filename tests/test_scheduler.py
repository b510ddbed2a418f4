from __future__ import annotations

import threading

import pytest

from hybridbench.scheduler import TickScheduler


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class FakeEvent:
    """Stop event whose ``wait`` advances the fake clock instead of sleeping."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.flag = False
        self.waits: list[float] = []

    def is_set(self) -> bool:
        return self.flag

    def set(self) -> None:
        self.flag = True

    def wait(self, timeout: float) -> bool:
        self.waits.append(timeout)
        self.clock.now += timeout
        return self.flag


def test_ticks_are_sequential_and_spaced() -> None:
    clock = FakeClock()
    event = FakeEvent(clock)
    fired = []
    sched = TickScheduler(lambda t: fired.append((t, clock.now)), 1.0, clock=clock, stop_event=event)
    assert sched.run(max_ticks=3) == 3
    assert [t for t, _ in fired] == [1, 2, 3]
    assert [at for _, at in fired] == [101.0, 102.0, 103.0]
    assert sched.coalesced == 0


def test_overrun_coalesces_missed_firings() -> None:
    clock = FakeClock()
    event = FakeEvent(clock)
    fired = []

    def slow_tick(t: int) -> None:
        fired.append((t, clock.now))
        if t == 1:
            clock.now += 3.5  # blocks through three and a half periods

    sched = TickScheduler(slow_tick, 1.0, clock=clock, stop_event=event)
    sched.run(max_ticks=3)
    starts = [at for _, at in fired]
    # Tick 2 runs right after tick 1, never concurrently; tick 3 is one period later.
    assert starts == [101.0, 104.5, 105.5]
    assert sched.coalesced == 2


def test_callback_errors_do_not_stop_the_loop() -> None:
    clock = FakeClock()
    calls = []

    def flaky(t: int) -> None:
        calls.append(t)
        if t == 2:
            raise RuntimeError("boom")

    sched = TickScheduler(flaky, 0.5, clock=clock, stop_event=FakeEvent(clock))
    assert sched.run(max_ticks=4) == 4
    assert calls == [1, 2, 3, 4]


def test_stop_from_callback() -> None:
    clock = FakeClock()
    sched = TickScheduler(lambda t: None, 1.0, clock=clock, stop_event=FakeEvent(clock))
    sched.callback = lambda t: sched.stop() if t == 2 else None
    assert sched.run() == 2
    assert sched.stopped


def test_stop_interrupts_wait() -> None:
    event = threading.Event()
    sched = TickScheduler(lambda t: None, 60.0, stop_event=event)
    timer = threading.Timer(0.05, sched.stop)
    timer.start()
    try:
        assert sched.run() == 0
    finally:
        timer.cancel()


@pytest.mark.parametrize("interval", [0, -1.0, float("inf")])
def test_interval_validation(interval: float) -> None:
    with pytest.raises(ValueError):
        TickScheduler(lambda t: None, interval)


def test_zero_max_ticks_runs_nothing() -> None:
    clock = FakeClock()
    event = FakeEvent(clock)
    calls = []
    sched = TickScheduler(calls.append, 1.0, clock=clock, stop_event=event)
    assert sched.run(max_ticks=0) == 0
    assert calls == []
    assert event.waits == []
