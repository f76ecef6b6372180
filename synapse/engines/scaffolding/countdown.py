"""
Scaffold countdown - a single cancellable ticker owned by one scaffolding task.
"""

import asyncio
from typing import Optional

from synapse.logging_config import get_logger

logger = get_logger(__name__)


class ScaffoldCountdown:
    """
    Decrements remaining_seconds once per tick until it reaches zero.

    Reaching zero stops the ticker but never completes the task; only an
    explicit completion does that.
    """

    def __init__(self, task_id: str, duration_seconds: int, tick_seconds: float = 1.0):
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")
        self.task_id = task_id
        self.duration_seconds = duration_seconds
        self.tick_seconds = tick_seconds
        self.remaining_seconds = duration_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self.remaining_seconds == 0

    def start(self) -> None:
        """Begin ticking. Starting an already running countdown is a no-op."""
        if self.running or self.expired:
            return
        self._task = asyncio.create_task(self._run(), name=f"scaffold-countdown-{self.task_id}")

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def stop(self) -> None:
        """Cancel and wait until the ticker has actually exited."""
        task = self._task
        self.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        while self.remaining_seconds > 0:
            await asyncio.sleep(self.tick_seconds)
            self.remaining_seconds -= 1
        logger.info("Scaffold countdown expired", extra={"task_id": self.task_id})
