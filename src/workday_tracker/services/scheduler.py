"""Periodic driver for the notification sweep."""

import asyncio
import logging
from dataclasses import dataclass, field

from workday_tracker.services.notifier import NotifierService

logger = logging.getLogger(__name__)


@dataclass
class NotificationScheduler:
    """Runs one sweep per period; a sweep always finishes before the next."""

    notifier_service: NotifierService
    period_seconds: float = 60
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="notification-sweep")
        logger.info("Notification scheduler started (every %ss)", self.period_seconds)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info("Notification scheduler stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.period_seconds)
            try:
                await self.notifier_service.sweep()
            except Exception:
                logger.exception("Notification sweep failed")
