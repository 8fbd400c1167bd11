"""
Periodic Job

In-process timer that runs an async action once on start and then every
interval until stopped.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicJob:
    """
    Business Rules:
    - interval_minutes == 0 disables the job
    - A tick is skipped while the previous run is still in flight
    - Failures are logged and never stop the loop
    """

    def __init__(
        self,
        name: str,
        interval_minutes: int,
        action: Callable[[], Awaitable[object]],
    ):
        self.name = name
        self.interval_minutes = interval_minutes
        self.action = action
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_minutes > 0

    @property
    def in_flight(self) -> bool:
        return self._running

    async def run_once(self) -> bool:
        """
        Run the action unless a previous run is still going.

        Returns:
            True if the action ran and succeeded, False if skipped or failed
        """
        if self._running:
            logger.warning("Job %s still running, skipping tick", self.name)
            return False

        self._running = True
        try:
            await self.action()
            return True
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Job %s failed", self.name)
            return False
        finally:
            self._running = False

    async def _loop(self):
        interval = self.interval_minutes * 60
        try:
            while True:
                await self.run_once()
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("Job %s cancelled", self.name)

    def start(self) -> Optional[asyncio.Task]:
        if not self.enabled:
            logger.info("Job %s disabled (interval 0)", self.name)
            return None
        if self._task is None:
            logger.info("Job %s scheduled every %s minute(s)", self.name, self.interval_minutes)
            self._task = asyncio.create_task(self._loop())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
