"""
Sequential pacing for calls against a rate-limited external service.

The inference service enforces a shared rate limit, so chunked analysis runs
its calls one at a time with a minimum gap between the end of one call and the
start of the next. The first call never waits and nothing waits after the
last call.
"""
import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional

from worship_assistant.core.logging import get_logger

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class MinIntervalPacer:
    """
    Minimum-interval gate for sequential tasks.

    One pacer belongs to one batch run; it is not shared between requests.

    Usage:
        pacer = MinIntervalPacer(1.0)
        for chunk in chunks:
            async with pacer.slot():
                await call(chunk)
    """

    def __init__(
        self,
        min_interval_seconds: float,
        sleep: Optional[SleepFunc] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        self.min_interval_seconds = min_interval_seconds
        self._sleep = sleep or asyncio.sleep
        self._clock = clock
        self._last_finished_at: Optional[float] = None
        self._active = False

    async def wait_turn(self) -> float:
        """
        Wait until the minimum interval since the previous task has elapsed.

        Returns:
            Seconds slept (0.0 for the first task).
        """
        if self._last_finished_at is None or self.min_interval_seconds == 0:
            return 0.0

        elapsed = self._clock() - self._last_finished_at
        remaining = self.min_interval_seconds - elapsed
        if remaining <= 0:
            return 0.0

        logger.debug("pacer_waiting", seconds=round(remaining, 3))
        await self._sleep(remaining)
        return remaining

    def mark_finished(self) -> None:
        self._last_finished_at = self._clock()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Run one task inside the pacing window (failures count as finished too)."""
        if self._active:
            raise RuntimeError("MinIntervalPacer runs tasks sequentially only")
        await self.wait_turn()
        self._active = True
        try:
            yield
        finally:
            self._active = False
            self.mark_finished()
