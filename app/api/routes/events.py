"""Internal endpoints receiving Firestore document-created events."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import get_notification_runtime
from app.core.security import require_task_secret
from app.notifications.factory import NotificationRuntime

router = APIRouter(prefix="/events", tags=["events"], dependencies=[Depends(require_task_secret)])
logger = logging.getLogger(__name__)


class DocumentCreatedEvent(BaseModel):
  """A created document's id and field snapshot, as forwarded by the event bridge."""

  document_id: str = Field(alias="documentId", min_length=1, max_length=1500)
  data: dict[str, Any] | None = None
  model_config = ConfigDict(extra="ignore", populate_by_name=True)


@router.post("/notification-triggers", status_code=status.HTTP_200_OK)
async def handle_notification_trigger(event: DocumentCreatedEvent, runtime: Annotated[NotificationRuntime, Depends(get_notification_runtime)]) -> dict[str, str]:
  """Process one notificationTriggers/{triggerId} creation.

  A 5xx answer makes the event source redeliver; the processor ignores records
  that already reached a terminal state, so redelivery is safe.
  """
  try:
    outcome = await runtime.processor.process(event.document_id, event.data)
  except Exception as exc:
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Trigger processing failed.") from exc

  return {"status": outcome.value}


@router.post("/reports", status_code=status.HTTP_202_ACCEPTED)
async def handle_report_created(event: DocumentCreatedEvent, runtime: Annotated[NotificationRuntime, Depends(get_notification_runtime)]) -> dict[str, str]:
  """Forward a new report to the support inbox; email failures never fail the event."""
  delivered = await runtime.moderation.notify_report_created(report_id=event.document_id, data=event.data)
  return {"status": "accepted", "email": "sent" if delivered else "failed"}


@router.post("/blocks", status_code=status.HTTP_202_ACCEPTED)
async def handle_block_created(event: DocumentCreatedEvent, runtime: Annotated[NotificationRuntime, Depends(get_notification_runtime)]) -> dict[str, str]:
  """Forward a new block to the support inbox; email failures never fail the event."""
  delivered = await runtime.moderation.notify_block_created(block_id=event.document_id, data=event.data)
  return {"status": "accepted", "email": "sent" if delivered else "failed"}
