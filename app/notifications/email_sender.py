"""Email delivery implementations.

MailerSend is called through its HTTP API with the standard library client.
Until a provider is configured the service runs with `NullEmailSender`, which
only logs the alert.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass

from app.notifications.contracts import EmailNotification, EmailSender, NotificationProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailerSendConfig:
  """MailerSend configuration needed to send emails."""

  api_key: str
  from_address: str
  from_name: str | None
  timeout_seconds: int
  base_url: str = "https://api.mailersend.com/v1"


class MailerSendEmailSender(EmailSender):
  """MailerSend-backed email sender using the provider API."""

  def __init__(self, *, config: MailerSendConfig) -> None:
    self._config = config

  def _build_request(self, notification: EmailNotification) -> urllib.request.Request:
    sender: dict[str, str] = {"email": self._config.from_address}
    if self._config.from_name:
      sender["name"] = self._config.from_name

    recipient: dict[str, str] = {"email": notification.to_address}
    if notification.to_name:
      recipient["name"] = notification.to_name

    payload = {"from": sender, "to": [recipient], "subject": notification.subject, "text": notification.text, "html": notification.html}
    headers = {"Authorization": f"Bearer {self._config.api_key}", "Content-Type": "application/json", "Accept": "application/json"}
    return urllib.request.Request(url=f"{self._config.base_url.rstrip('/')}/email", data=json.dumps(payload).encode("utf-8"), method="POST", headers=headers)

  def send(self, notification: EmailNotification) -> dict[str, str | None]:
    """Send an email using the MailerSend API and return provider identifiers."""
    request = self._build_request(notification)
    try:
      with urllib.request.urlopen(request, timeout=self._config.timeout_seconds) as response:
        headers = dict(response.headers.items())
    except urllib.error.HTTPError as exc:
      raw_error = exc.read().decode("utf-8") if exc.fp else ""
      logger.error("MailerSend email request failed status=%s body=%s", exc.code, raw_error)
      raise NotificationProviderError(f"HTTP Error {exc.code}: {exc.reason}") from exc
    except urllib.error.URLError as exc:
      logger.error("MailerSend email request failed: %s", exc)
      raise NotificationProviderError(f"MailerSend unreachable: {exc.reason}") from exc

    # MailerSend answers 202 with identifiers in headers only.
    return {"provider": "mailersend", "message_id": headers.get("X-Message-Id") or headers.get("X-Message-ID"), "request_id": headers.get("X-Request-Id") or headers.get("X-Request-ID")}


class NullEmailSender(EmailSender):
  """Logging stub used while outbound email is disabled."""

  def send(self, notification: EmailNotification) -> dict[str, str | None]:
    """Log the alert instead of delivering it."""
    logger.info("Email delivery disabled; would send to=%s subject=%s", notification.to_address, notification.subject)
    return {"provider": None, "message_id": None, "request_id": None}
