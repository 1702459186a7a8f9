"""Tests for the request dispatcher and min-interval gate."""

import asyncio
import time

import pytest

from conftest import FakeClock
from insights.dispatcher import MinIntervalGate, RequestDispatcher


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrency_bound(self):
        dispatcher = RequestDispatcher(max_concurrent=3)
        running = 0
        peak = 0

        async def work():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.2)
            running -= 1
            return "ok"

        start = time.monotonic()
        results = await asyncio.gather(*(dispatcher.submit(work) for _ in range(10)))
        elapsed = time.monotonic() - start

        assert results == ["ok"] * 10
        assert peak == 3
        # ceil(10 / 3) rounds of 200ms
        assert elapsed >= 0.8 - 0.02

    @pytest.mark.asyncio
    async def test_fifo_start_order(self):
        dispatcher = RequestDispatcher(max_concurrent=1)
        started = []

        def make(i):
            async def work():
                started.append(i)
                await asyncio.sleep(0)
                return i

            return work

        results = await asyncio.gather(*(dispatcher.submit(make(i)) for i in range(6)))

        assert started == list(range(6))
        assert results == list(range(6))

    @pytest.mark.asyncio
    async def test_error_propagates_and_frees_slot(self):
        dispatcher = RequestDispatcher(max_concurrent=1)

        async def boom():
            raise RuntimeError("remote down")

        async def fine():
            return 42

        with pytest.raises(RuntimeError, match="remote down"):
            await dispatcher.submit(boom)
        assert await dispatcher.submit(fine) == 42
        assert dispatcher.stats["running"] == 0

    def test_rejects_zero_limits(self):
        with pytest.raises(ValueError):
            RequestDispatcher(max_concurrent=0)
        with pytest.raises(ValueError):
            RequestDispatcher(max_requests=0)


class TestRateWindow:
    @pytest.mark.asyncio
    async def test_extra_start_waits_for_window(self):
        clock = FakeClock()
        dispatcher = RequestDispatcher(
            max_concurrent=10, max_requests=3, window_seconds=60.0, clock=clock, sleep=clock.sleep
        )
        start_times = []

        async def work():
            start_times.append(clock())

        await asyncio.gather(*(dispatcher.submit(work) for _ in range(3 + 5)))

        assert start_times[:3] == [0.0, 0.0, 0.0]
        assert start_times[3] >= 60.0
        assert len(start_times) == 8
        # Never more than 3 starts inside any 60s window
        for i, t in enumerate(start_times):
            assert sum(1 for s in start_times[i:] if s < t + 60.0) <= 3

    @pytest.mark.asyncio
    async def test_stats_reports_recent_starts(self):
        clock = FakeClock()
        dispatcher = RequestDispatcher(max_requests=5, window_seconds=10.0, clock=clock, sleep=clock.sleep)

        async def work():
            return None

        for _ in range(2):
            await dispatcher.submit(work)
        assert dispatcher.stats == {"running": 0, "queued": 0, "recent_starts": 2}

        clock.now += 10.0
        assert dispatcher.stats["recent_starts"] == 0


class TestMinIntervalGate:
    @pytest.mark.asyncio
    async def test_first_call_passes(self):
        clock = FakeClock()
        gate = MinIntervalGate(1.0, clock=clock, sleep=clock.sleep)
        await gate.wait()
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_spacing_enforced(self):
        clock = FakeClock()
        gate = MinIntervalGate(1.0, clock=clock, sleep=clock.sleep)

        await gate.wait()
        clock.now += 0.25
        await gate.wait()

        assert clock.sleeps == [pytest.approx(0.75)]
        assert clock.now == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_no_wait_after_interval(self):
        clock = FakeClock()
        gate = MinIntervalGate(0.5, clock=clock, sleep=clock.sleep)
        await gate.wait()
        clock.now += 2.0
        await gate.wait()
        assert clock.sleeps == []
