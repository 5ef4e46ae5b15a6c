"""State machine that turns one notification trigger into a push delivery."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone, tzinfo
from typing import Any

from app.notifications.contracts import DEFAULT_BODY, DEFAULT_TITLE, ProcessingStatus, SkipReason, TriggerRecord
from app.notifications.dispatcher import DeliveryDispatcher
from app.notifications.endpoint_repo import PushEndpointRepository
from app.notifications.preferences import PreferenceResolver
from app.notifications.quiet_hours import is_quiet_hours
from app.notifications.trigger_repo import NotificationTriggerRepository

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
  return datetime.now(timezone.utc)


class TriggerProcessor:
  """Processes newly created notification triggers.

  Event delivery is at-least-once, so a record whose `sent` flag is already set
  is ignored. The flag is a best-effort guard, not a transaction: two
  concurrent redeliveries of the same event can both pass it.
  """

  def __init__(
    self,
    *,
    preferences: PreferenceResolver,
    endpoints: PushEndpointRepository,
    dispatcher: DeliveryDispatcher,
    triggers: NotificationTriggerRepository,
    quiet_hours_tz: tzinfo = timezone.utc,
    max_concurrent: int = 10,
    clock: Callable[[], datetime] = _utc_now,
  ) -> None:
    self._preferences = preferences
    self._endpoints = endpoints
    self._dispatcher = dispatcher
    self._triggers = triggers
    self._quiet_hours_tz = quiet_hours_tz
    self._slots = asyncio.Semaphore(max_concurrent)
    self._clock = clock

  async def process(self, trigger_id: str, data: Mapping[str, Any] | None) -> ProcessingStatus:
    """Handle one trigger-created event, bounded by the concurrency limit."""
    async with self._slots:
      return await self._process(trigger_id, data)

  async def _process(self, trigger_id: str, data: Mapping[str, Any] | None) -> ProcessingStatus:
    if data is None:
      logger.error("Trigger data is null for %s", trigger_id)
      return ProcessingStatus.MISSING_DATA

    trigger = TriggerRecord.from_snapshot(trigger_id, data)
    if trigger.sent:
      logger.info("Trigger %s already sent, skipping", trigger_id)
      return ProcessingStatus.ALREADY_SENT

    # A trigger without a recipient is a producer defect; leave it untouched.
    if not trigger.recipient_user_id:
      logger.error("Missing recipientUserId in trigger %s", trigger_id)
      return ProcessingStatus.MISSING_RECIPIENT

    logger.info("Processing notification trigger %s type=%s recipient=%s", trigger_id, trigger.raw_type, trigger.recipient_user_id)
    try:
      return await self._deliver(trigger, trigger.recipient_user_id)
    except Exception:
      # Leave the record non-terminal so the redelivered event retries it.
      logger.error("Error processing notification trigger %s", trigger_id, exc_info=True)
      raise

  async def _deliver(self, trigger: TriggerRecord, recipient: str) -> ProcessingStatus:
    settings = await self._preferences.load(recipient)

    if not settings.is_type_enabled(trigger.notification_type):
      logger.info("Notification type %s disabled for user %s", trigger.raw_type, recipient)
      return await self._skip(trigger, SkipReason.NOTIFICATION_TYPE_DISABLED)

    if is_quiet_hours(settings, self._clock().astimezone(self._quiet_hours_tz)):
      logger.info("Quiet hours active for user %s, skipping notification", recipient)
      return await self._skip(trigger, SkipReason.QUIET_HOURS)

    tokens = await self._endpoints.list_active_tokens(user_id=recipient)
    if not tokens:
      logger.warning("No active tokens for user %s", recipient)
      return await self._skip(trigger, SkipReason.NO_ACTIVE_TOKENS)

    await self._dispatcher.dispatch(tokens=tokens, title=trigger.title or DEFAULT_TITLE, body=trigger.body or DEFAULT_BODY, data=trigger.data)
    # tokensCount records tokens attempted, not tokens that succeeded.
    await self._triggers.mark_sent(trigger_id=trigger.trigger_id, tokens_count=len(tokens))
    logger.info("Successfully processed notification trigger %s", trigger.trigger_id)
    return ProcessingStatus.SENT

  async def _skip(self, trigger: TriggerRecord, reason: SkipReason) -> ProcessingStatus:
    await self._triggers.mark_skipped(trigger_id=trigger.trigger_id, reason=reason)
    return ProcessingStatus.SKIPPED
