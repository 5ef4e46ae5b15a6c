"""Push notification delivery implementations."""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import exceptions, messaging

from app.notifications.contracts import MulticastResult, PushMessage, PushSender, PushTransportError, SendOutcome

logger = logging.getLogger(__name__)

ANDROID_CHANNEL_ID = "scheduled_notifications"
ANDROID_ACCENT_COLOR = "#7C3AED"
DEFAULT_SOUND = "default"
APNS_BADGE_INCREMENT = 1

INVALID_REGISTRATION_TOKEN = "invalid-registration-token"
REGISTRATION_TOKEN_NOT_REGISTERED = "registration-token-not-registered"


def build_multicast_message(message: PushMessage) -> messaging.MulticastMessage:
  """Build the FCM multicast payload with the fixed platform hints."""
  return messaging.MulticastMessage(
    tokens=list(message.tokens),
    notification=messaging.Notification(title=message.title, body=message.body),
    data=dict(message.data),
    android=messaging.AndroidConfig(priority="high", notification=messaging.AndroidNotification(channel_id=ANDROID_CHANNEL_ID, sound=DEFAULT_SOUND, color=ANDROID_ACCENT_COLOR)),
    apns=messaging.APNSConfig(payload=messaging.APNSPayload(aps=messaging.Aps(sound=DEFAULT_SOUND, badge=APNS_BADGE_INCREMENT))),
  )


def classify_send_error(exc: BaseException | None) -> str | None:
  """Map a per-token FCM exception onto a stable error code."""
  if exc is None:
    return None

  if isinstance(exc, messaging.UnregisteredError):
    return REGISTRATION_TOKEN_NOT_REGISTERED

  # INVALID_ARGUMENT also covers message-level faults (oversized payload, bad
  # field); only a complaint about the registration token marks the token dead.
  if isinstance(exc, exceptions.InvalidArgumentError) and "registration token" in str(exc).lower():
    return INVALID_REGISTRATION_TOKEN

  code = getattr(exc, "code", None)
  if isinstance(code, str) and code:
    return code.lower().replace("_", "-")

  return type(exc).__name__


class FcmPushSender(PushSender):
  """`firebase_admin.messaging` backed multicast sender."""

  def __init__(self, *, app: firebase_admin.App | None = None) -> None:
    self._app = app

  def send_multicast(self, message: PushMessage) -> MulticastResult:
    """Send one multicast message; per-token failures are reported, not raised."""
    try:
      response = messaging.send_each_for_multicast(build_multicast_message(message), app=self._app)
    except exceptions.FirebaseError as exc:
      raise PushTransportError(f"FCM multicast failed (code={exc.code})") from exc

    outcomes = []
    for token, send_response in zip(message.tokens, response.responses, strict=True):
      error = send_response.exception
      outcomes.append(SendOutcome(token=token, success=bool(send_response.success), message_id=send_response.message_id, error_code=classify_send_error(error), error_message=str(error) if error else None))

    return MulticastResult(outcomes=outcomes)


class NullPushSender(PushSender):
  """No-op push sender used when push notifications are disabled or unconfigured."""

  def send_multicast(self, message: PushMessage) -> MulticastResult:
    """Drop the message while recording a debug log."""
    logger.debug("Push notifications disabled; dropping push tokens=%s title=%s", len(message.tokens), message.title)
    return MulticastResult(outcomes=[SendOutcome(token=token, success=True) for token in message.tokens])
