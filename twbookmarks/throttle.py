import asyncio
import time
from typing import Awaitable, Callable


class Throttle:
    """Minimum wall-clock gap between two consecutive outbound calls.

    `wait_turn` must be awaited right before the request it guards, so the
    recorded time follows issue order rather than completion order.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self.last_issue: float | None = None
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()

    async def wait_turn(self) -> float:
        async with self._lock:
            if self.last_issue is not None:
                delta = self.min_interval - (self._clock() - self.last_issue)
                if delta > 0:
                    await self._sleep(delta)

            self.last_issue = self._clock()
            return self.last_issue
