"""Quiet-hours evaluation for notification settings."""

from __future__ import annotations

import logging
from datetime import datetime

from app.notifications.contracts import NotificationSettings

logger = logging.getLogger(__name__)


def _parse_clock(value: str) -> int:
  """Convert an "HH:MM" string into minutes since midnight."""
  hour_text, minute_text = value.strip().split(":")
  hour = int(hour_text)
  minute = int(minute_text)
  if not (0 <= hour <= 23 and 0 <= minute <= 59):
    raise ValueError(f"clock value out of range: {value!r}")
  return hour * 60 + minute


def is_quiet_hours(settings: NotificationSettings | None, now: datetime) -> bool:
  """Return True when `now` falls inside the recipient's quiet-hours window.

  Windows whose end is not after their start wrap past midnight (22:00-08:00).
  Malformed boundaries fail open so a bad setting never silences a recipient.
  """
  if settings is None or not settings.quiet_hours_start or not settings.quiet_hours_end:
    return False

  try:
    start = _parse_clock(settings.quiet_hours_start)
    end = _parse_clock(settings.quiet_hours_end)
  except (AttributeError, TypeError, ValueError) as exc:
    logger.error("Invalid quiet hours start=%r end=%r: %s", settings.quiet_hours_start, settings.quiet_hours_end, exc)
    return False

  current = now.hour * 60 + now.minute
  if end <= start:
    return current >= start or current < end

  return start <= current < end
