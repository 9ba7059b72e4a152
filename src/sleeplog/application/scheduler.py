"""
Periodic polling loops.

Each loop runs its body, logs any failure, sleeps for its interval and goes
again. Loops stop only when cancelled at shutdown.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    A named coroutine function run every ``interval`` seconds in its own task.

    The first run happens immediately on start.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], Awaitable[object]],
    ):
        self.name = name
        self.interval = interval
        self.func = func
        self.runs = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        """Run the body once; a failing cycle never stops later cycles."""
        self.runs += 1
        try:
            await self.func()
        except Exception as e:
            logger.error(f"{self.name} cycle failed: {e}", exc_info=True)

    async def _loop(self) -> None:
        logger.info(f"Starting {self.name} loop (interval: {self.interval:g}s)")
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Stopped {self.name} loop")
