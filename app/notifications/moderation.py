"""Best-effort support alerts for user reports and blocks."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from starlette.concurrency import run_in_threadpool

from app.notifications.contracts import EmailNotification, EmailSender, NotificationProviderError
from app.notifications.template_renderer import render_email_template

logger = logging.getLogger(__name__)


def summarize_record(data: Mapping[str, Any] | None) -> str:
  """Render a record snapshot as sorted `key: value` lines."""
  if not data:
    return "(no fields)"
  return "\n".join(f"{key}: {data[key]}" for key in sorted(data, key=str))


class ModerationAlertService:
  """Emails the support inbox when reports or blocks are created."""

  def __init__(self, *, email_sender: EmailSender, support_email: str) -> None:
    self._email_sender = email_sender
    self._support_email = support_email

  async def notify_report_created(self, *, report_id: str, data: Mapping[str, Any] | None) -> bool:
    reason = (data or {}).get("reason") or "unspecified"
    return await self._send(template_id="report_created_v1", placeholders={"record_id": report_id, "reason": reason, "summary": summarize_record(data)})

  async def notify_block_created(self, *, block_id: str, data: Mapping[str, Any] | None) -> bool:
    return await self._send(template_id="block_created_v1", placeholders={"record_id": block_id, "summary": summarize_record(data)})

  async def _send(self, *, template_id: str, placeholders: dict[str, Any]) -> bool:
    """Render and send an alert; returns False instead of raising on any failure."""
    try:
      subject, text_body, html_body = render_email_template(template_id=template_id, placeholders=placeholders)
      notification = EmailNotification(to_address=self._support_email, to_name=None, subject=subject, text=text_body, html=html_body)
      await run_in_threadpool(self._email_sender.send, notification)
    except NotificationProviderError as exc:
      logger.error("Moderation alert delivery failed (provider error) template_id=%s: %s", template_id, exc)
      return False
    except Exception as exc:  # noqa: BLE001
      logger.error("Moderation alert delivery failed template_id=%s: %s", template_id, exc, exc_info=True)
      return False

    logger.info("Moderation alert sent template_id=%s record_id=%s", template_id, placeholders.get("record_id"))
    return True
