"""Periodic removal of users idle for longer than the retention threshold."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta
from typing import Callable

from anyio import to_thread

from teamgit.domain.entities import UserRecord
from teamgit.utils.datetime import ensure_utc, utc_now

from .activity import ActivityStore

logger = logging.getLogger(__name__)

RETENTION_THRESHOLD = timedelta(days=7)
DEFAULT_SWEEP_INTERVAL_SECONDS = 3600.0


def is_expired(
    record: UserRecord,
    *,
    now: datetime,
    threshold: timedelta = RETENTION_THRESHOLD,
) -> bool:
    """Return ``True`` once the user has been idle for more than ``threshold``."""

    return now - ensure_utc(record.last_activity) > threshold


class RetentionSweeper:
    """Delete whole user records once they exceed the retention threshold.

    The sweeper is a cancellable background task: :meth:`start` schedules it on
    the running event loop and :meth:`stop` cancels it, which the application
    lifespan does on shutdown. Each run happens in a worker thread because the
    storage backends block.
    """

    def __init__(
        self,
        store: ActivityStore,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        threshold: timedelta = RETENTION_THRESHOLD,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._store = store
        self._interval_seconds = interval_seconds
        self._threshold = threshold
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def find_expired(self, now: datetime | None = None) -> list[UserRecord]:
        """Return the users a sweep at ``now`` would delete."""

        now = now or self._clock()
        return [
            record
            for record in self._store.scan_all_users()
            if is_expired(record, now=now, threshold=self._threshold)
        ]

    def sweep_once(self, now: datetime | None = None) -> int:
        """Delete every expired user across all tenants and return the count."""

        now = now or self._clock()
        cutoff = now - self._threshold
        deleted = 0
        for record in self.find_expired(now):
            if self._store.delete_user_if_idle(record.tenant, record.user_email, cutoff):
                deleted += 1
        logger.info("Retention sweep removed %s idle user(s)", deleted)
        return deleted

    def start(self) -> None:
        """Schedule the recurring sweep on the running event loop."""

        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name="retention-sweeper")

    async def stop(self) -> None:
        """Cancel the recurring sweep and wait for it to finish."""

        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_seconds)
            try:
                await to_thread.run_sync(self.sweep_once)
            except Exception:
                logger.exception("Retention sweep failed")


__all__ = [
    "DEFAULT_SWEEP_INTERVAL_SECONDS",
    "RETENTION_THRESHOLD",
    "RetentionSweeper",
    "is_expired",
]
