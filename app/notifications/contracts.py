"""Contracts for the notification trigger pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

DEFAULT_TITLE = "Notification"
DEFAULT_BODY = "You have a new notification"


class NotificationType(str, Enum):
  FRIEND_REQUEST = "friend_request"
  FRIEND_ACCEPT = "friend_accept"
  DM_MESSAGE = "dm_message"
  CLOTH_LIKE = "cloth_like"
  CLOTH_COMMENT = "cloth_comment"

  @classmethod
  def parse(cls, raw: Any) -> NotificationType | None:
    """Return the matching type, or None for unrecognized values."""
    try:
      return cls(raw)
    except ValueError:
      return None


class SkipReason(str, Enum):
  NOTIFICATION_TYPE_DISABLED = "notification_type_disabled"
  QUIET_HOURS = "quiet_hours"
  NO_ACTIVE_TOKENS = "no_active_tokens"


class ProcessingStatus(str, Enum):
  """Branch taken by a single trigger invocation."""

  MISSING_DATA = "missing_data"
  ALREADY_SENT = "already_sent"
  MISSING_RECIPIENT = "missing_recipient"
  SKIPPED = "skipped"
  SENT = "sent"


@dataclass(frozen=True)
class NotificationSettings:
  """Per-recipient notification preferences stored under the user profile.

  Every per-type flag counts as enabled unless it is explicitly ``False`` in the
  stored map, so an absent settings object enables everything.
  """

  friend_requests: bool = True
  friend_accepts: bool = True
  dm_messages: bool = True
  cloth_likes: bool = True
  cloth_comments: bool = True
  quiet_hours_start: str | None = None
  quiet_hours_end: str | None = None

  @classmethod
  def from_mapping(cls, raw: Mapping[str, Any] | None) -> NotificationSettings:
    """Build settings from the Firestore map, applying enable-by-default."""
    if not raw:
      return cls()

    return cls(
      friend_requests=raw.get("friendRequests") is not False,
      friend_accepts=raw.get("friendAccepts") is not False,
      dm_messages=raw.get("dmMessages") is not False,
      cloth_likes=raw.get("clothLikes") is not False,
      cloth_comments=raw.get("clothComments") is not False,
      quiet_hours_start=raw.get("quietHoursStart") or None,
      quiet_hours_end=raw.get("quietHoursEnd") or None,
    )

  def is_type_enabled(self, notification_type: NotificationType | None) -> bool:
    """Unknown types are always enabled."""
    flags = {
      NotificationType.FRIEND_REQUEST: self.friend_requests,
      NotificationType.FRIEND_ACCEPT: self.friend_accepts,
      NotificationType.DM_MESSAGE: self.dm_messages,
      NotificationType.CLOTH_LIKE: self.cloth_likes,
      NotificationType.CLOTH_COMMENT: self.cloth_comments,
    }
    if notification_type is None:
      return True
    return flags[notification_type]


@dataclass(frozen=True)
class TriggerRecord:
  """Snapshot of one notificationTriggers document."""

  trigger_id: str
  recipient_user_id: str | None
  raw_type: str | None
  title: str | None
  body: str | None
  data: dict[str, Any] = field(default_factory=dict)
  created_at: datetime | None = None
  sent: bool = False

  @classmethod
  def from_snapshot(cls, trigger_id: str, data: Mapping[str, Any]) -> TriggerRecord:
    payload = data.get("data")
    return cls(
      trigger_id=trigger_id,
      recipient_user_id=data.get("recipientUserId") or None,
      raw_type=data.get("type"),
      title=data.get("title"),
      body=data.get("body"),
      data=dict(payload) if isinstance(payload, Mapping) else {},
      created_at=data.get("createdAt"),
      sent=data.get("sent") is True,
    )

  @property
  def notification_type(self) -> NotificationType | None:
    return NotificationType.parse(self.raw_type)


@dataclass(frozen=True)
class PushMessage:
  """One multicast push addressed to a batch of FCM tokens."""

  tokens: list[str]
  title: str
  body: str
  data: dict[str, str]


@dataclass(frozen=True)
class SendOutcome:
  """Delivery result for a single token within a multicast send."""

  token: str
  success: bool
  message_id: str | None = None
  error_code: str | None = None
  error_message: str | None = None


@dataclass(frozen=True)
class MulticastResult:
  outcomes: list[SendOutcome]

  @property
  def success_count(self) -> int:
    return sum(1 for outcome in self.outcomes if outcome.success)

  @property
  def failure_count(self) -> int:
    return sum(1 for outcome in self.outcomes if not outcome.success)


@dataclass(frozen=True)
class EmailNotification:
  """Represents an email notification payload."""

  to_address: str
  to_name: str | None
  subject: str
  text: str
  html: str


class NotificationError(Exception):
  """Base class for all notification delivery failures."""


class NotificationProviderError(NotificationError):
  """Exception raised when a delivery provider (FCM, MailerSend) rejects a call."""


class PushTransportError(NotificationProviderError):
  """Exception raised when the multicast call itself fails rather than a single token."""


class EmailSender(Protocol):
  """Delivery contract for sending email notifications."""

  def send(self, notification: EmailNotification) -> dict[str, str | None]:
    """Send an email notification synchronously and return provider identifiers."""


class PushSender(Protocol):
  """Delivery contract for multicast push notifications."""

  def send_multicast(self, message: PushMessage) -> MulticastResult:
    """Send one multicast message synchronously and report per-token outcomes."""
