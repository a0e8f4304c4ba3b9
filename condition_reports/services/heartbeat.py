from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .. import config as app_config
from ..repositories import build_repositories
from .activity import log_activity, prune_activity

logger = logging.getLogger(__name__)


def record_heartbeat() -> None:
    """Write a heartbeat activity row and trim the activity log to the retention limit."""
    session = app_config.SessionLocal()
    try:
        repos = build_repositories(session)
        log_activity(repos, "heartbeat", None, {"source": "scheduler"})
        prune_activity(repos, app_config.settings.activity_log_retention)
    finally:
        session.close()


class Heartbeat:
    """Periodic background task bound to the application lifespan."""

    def __init__(self, interval_seconds: float, beat: Callable[[], None] = record_heartbeat) -> None:
        self.interval_seconds = interval_seconds
        self.beat = beat
        self._task: Optional[asyncio.Task] = None
        self.beats = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="heartbeat")
        logger.info("Heartbeat started", extra={"interval_seconds": self.interval_seconds})

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Heartbeat stopped", extra={"beats": self.beats})

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.to_thread(self.beat)
                self.beats += 1
            except Exception:
                logger.exception("Heartbeat failed; will retry next interval")
            await asyncio.sleep(self.interval_seconds)
