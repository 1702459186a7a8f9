"""Bounded-concurrency, rate-limited dispatcher for remote-bound async work."""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class _WorkItem:
    work: Callable[[], Awaitable[Any]]
    future: asyncio.Future


class RequestDispatcher:
    """Runs submitted coroutines under a concurrency cap and a sliding-window rate cap.

    Items start in submission order. At most ``max_concurrent`` run at once and
    at most ``max_requests`` start within any ``window_seconds`` window. The
    queue is unbounded and items are never dropped or retried.
    """

    def __init__(
        self,
        max_concurrent: int = 3,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_concurrent < 1 or max_requests < 1:
            raise ValueError("max_concurrent and max_requests must be >= 1")
        self.max_concurrent = max_concurrent
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._queue: deque[_WorkItem] = deque()
        self._start_times: deque[float] = deque()
        self._running = 0
        self._slot_freed = asyncio.Event()
        self._starter: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    async def submit(self, work: Callable[[], Awaitable[T]]) -> T:
        """Queue ``work`` and return exactly what it returns or raises."""
        loop = asyncio.get_running_loop()
        item = _WorkItem(work=work, future=loop.create_future())
        self._queue.append(item)
        if self._starter is None or self._starter.done():
            self._starter = loop.create_task(self._drain())
        return await item.future

    @property
    def stats(self) -> dict:
        """Current queue/slot state (for monitoring)."""
        self._prune(self._clock())
        return {
            "running": self._running,
            "queued": len(self._queue),
            "recent_starts": len(self._start_times),
        }

    async def _drain(self) -> None:
        # Single starter keeps start order FIFO
        while self._queue:
            if self._queue[0].future.done():
                self._queue.popleft()
                continue

            while self._running >= self.max_concurrent:
                self._slot_freed.clear()
                await self._slot_freed.wait()

            await self._wait_for_window()

            item = self._queue.popleft()
            if item.future.done():
                continue
            self._start_times.append(self._clock())
            self._running += 1
            task = asyncio.ensure_future(self._run(item))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, item: _WorkItem) -> None:
        try:
            result = await item.work()
        except asyncio.CancelledError:
            item.future.cancel()
            raise
        except Exception as e:
            if not item.future.done():
                item.future.set_exception(e)
        else:
            if not item.future.done():
                item.future.set_result(result)
        finally:
            self._running -= 1
            self._slot_freed.set()

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._start_times and self._start_times[0] <= cutoff:
            self._start_times.popleft()

    async def _wait_for_window(self) -> None:
        while True:
            now = self._clock()
            self._prune(now)
            if len(self._start_times) < self.max_requests:
                return
            wait = max(0.0, self.window_seconds - (now - self._start_times[0]))
            logger.info("dispatcher_rate_limited", wait_seconds=round(wait, 3), queued=len(self._queue))
            await self._sleep(wait)


class MinIntervalGate:
    """Enforces a minimum spacing between call starts to one endpoint."""

    def __init__(
        self,
        min_interval: float,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_start: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Wait until ``min_interval`` has passed since the previous start."""
        async with self._lock:
            if self._last_start is not None:
                elapsed = self._clock() - self._last_start
                if elapsed < self.min_interval:
                    wait_time = self.min_interval - elapsed
                    logger.debug("min_interval_wait", wait_seconds=round(wait_time, 3))
                    await self._sleep(wait_time)
            self._last_start = self._clock()
