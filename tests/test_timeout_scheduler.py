"""Tests for the deadline index."""

import asyncio
from datetime import timedelta

import pytest

from chatflow.engine.timeout_scheduler import TimeoutScheduler
from tests.helpers import T0, FakeClock

pytestmark = pytest.mark.unit


class RecordingExpire:
    def __init__(self, result: bool = True, fail_on: str | None = None) -> None:
        self.calls: list[str] = []
        self.result = result
        self.fail_on = fail_on

    async def __call__(self, execution_id: str) -> bool:
        self.calls.append(execution_id)
        if execution_id == self.fail_on:
            raise RuntimeError("boom")
        return self.result


def at(seconds: float):
    return T0 + timedelta(seconds=seconds)


class TestTimeoutScheduler:
    """Tests for scheduling, cancelling and firing deadlines."""

    def test_pop_due_in_deadline_order(self):
        scheduler = TimeoutScheduler(RecordingExpire())
        scheduler.schedule("late", at(30))
        scheduler.schedule("early", at(10))
        scheduler.schedule("future", at(60))

        assert scheduler.pop_due(at(30)) == ["early", "late"]
        assert len(scheduler) == 1
        assert scheduler.pop_due(at(30)) == []

    def test_cancel_and_reschedule_skip_stale_entries(self):
        scheduler = TimeoutScheduler(RecordingExpire())
        scheduler.schedule("a", at(5))
        scheduler.schedule("b", at(5))
        scheduler.cancel("a")
        scheduler.schedule("b", at(50))

        assert scheduler.pop_due(at(10)) == []
        assert scheduler.deadline("b") == at(50)
        assert scheduler.pop_due(at(50)) == ["b"]

    def test_rebuild_replaces_index(self):
        scheduler = TimeoutScheduler(RecordingExpire())
        scheduler.schedule("old", at(1))

        scheduler.rebuild([("x", at(20)), ("y", at(5))])

        assert scheduler.deadline("old") is None
        assert scheduler.pop_due(at(100)) == ["y", "x"]

    async def test_tick_fires_due_and_survives_errors(self):
        expire = RecordingExpire(fail_on="a")
        clock = FakeClock()
        scheduler = TimeoutScheduler(expire, clock=clock)
        scheduler.schedule("a", at(1))
        scheduler.schedule("b", at(2))
        scheduler.schedule("c", at(100))
        clock.advance(5)

        started = await scheduler.tick()
        await scheduler.join()

        assert started == 2
        assert expire.calls == ["a", "b"]
        assert scheduler.inflight == 0
        assert scheduler.deadline("c") == at(100)

    async def test_background_loop_start_stop(self):
        expire = RecordingExpire()
        scheduler = TimeoutScheduler(expire, tick_seconds=0.01, clock=FakeClock(at(10)))
        scheduler.schedule("due", at(1))

        scheduler.start()
        for _ in range(50):
            if expire.calls:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()

        assert expire.calls == ["due"]


class GatedExpire:
    """Expiry callback that blocks on `release` for the ids in `slow`."""

    def __init__(self, *slow: str) -> None:
        self.slow = set(slow)
        self.release = asyncio.Event()
        self.finished: list[str] = []

    async def __call__(self, execution_id: str) -> bool:
        if execution_id in self.slow:
            await self.release.wait()
        self.finished.append(execution_id)
        return True


class TestConcurrentExpiry:
    """Each due execution expires on its own task."""

    async def test_slow_expiry_does_not_delay_others(self):
        expire = GatedExpire("slow")
        clock = FakeClock()
        scheduler = TimeoutScheduler(expire, clock=clock)
        scheduler.schedule("slow", at(1))
        scheduler.schedule("fast", at(2))
        clock.advance(5)

        assert await scheduler.tick() == 2
        await asyncio.sleep(0.01)

        assert expire.finished == ["fast"]
        assert scheduler.inflight == 1

        expire.release.set()
        await scheduler.join()
        assert expire.finished == ["fast", "slow"]

    async def test_in_flight_id_is_retried_not_doubled(self):
        expire = GatedExpire("a")
        clock = FakeClock()
        scheduler = TimeoutScheduler(expire, clock=clock)
        scheduler.schedule("a", at(1))
        clock.advance(5)
        await scheduler.tick()

        scheduler.schedule("a", at(2))
        assert await scheduler.tick() == 0
        assert scheduler.deadline("a") == clock()

        expire.release.set()
        await scheduler.join()
        assert await scheduler.tick() == 1
        await scheduler.join()
        assert expire.finished == ["a", "a"]

    async def test_stop_cancels_in_flight_expiries(self):
        expire = GatedExpire("stuck")
        clock = FakeClock()
        scheduler = TimeoutScheduler(expire, clock=clock)
        scheduler.schedule("stuck", at(1))
        clock.advance(5)
        await scheduler.tick()

        await asyncio.wait_for(scheduler.stop(), timeout=1)

        assert scheduler.inflight == 0
        assert expire.finished == []
