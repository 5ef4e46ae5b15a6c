"""Maintenance services for scheduled background cleanup tasks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from app.notifications.trigger_repo import NotificationTriggerRepository

logger = logging.getLogger(__name__)


class TriggerRetentionSweeper:
  """Delete notification triggers older than the retention window.

  How/Why:
    - Intended to run once a day (UTC) from Cloud Scheduler.
    - Each run deletes at most `batch_limit` records so it stays within request deadlines; the
      remainder is picked up by later runs.
    - Only one run proceeds at a time per process; overlapping calls return immediately.
    - Failures are logged and swallowed because expired records simply wait for the next run.
  """

  def __init__(self, *, triggers: NotificationTriggerRepository, retention_days: int = 7, batch_limit: int = 500, clock: Callable[[], datetime] | None = None) -> None:
    self._triggers = triggers
    self._retention = timedelta(days=retention_days)
    self._batch_limit = batch_limit
    self._clock = clock or (lambda: datetime.now(timezone.utc))
    self._lock = asyncio.Lock()

  async def run(self) -> int:
    """Run one cleanup pass and return the number of deleted triggers."""
    if self._lock.locked():
      logger.info("Trigger cleanup already running; skipping overlapping run")
      return 0

    async with self._lock:
      cutoff = self._clock() - self._retention
      try:
        logger.info("Starting cleanup of old notification triggers cutoff=%s", cutoff.isoformat())
        expired = await self._triggers.list_created_before(cutoff=cutoff, limit=self._batch_limit)
        if not expired:
          logger.info("No old triggers to clean up")
          return 0

        deleted = await self._triggers.delete_all(expired)
        logger.info("Cleaned up %s old notification triggers", deleted)
        return deleted
      except Exception as exc:  # noqa: BLE001
        logger.error("Error cleaning up old triggers: %s", exc, exc_info=True)
        return 0
