"""Scheduler-invoked maintenance endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import get_notification_runtime
from app.core.security import require_task_secret
from app.notifications.factory import NotificationRuntime

router = APIRouter(prefix="/maintenance", tags=["maintenance"], dependencies=[Depends(require_task_secret)])


@router.post("/cleanup-triggers", status_code=status.HTTP_200_OK)
async def cleanup_notification_triggers(runtime: Annotated[NotificationRuntime, Depends(get_notification_runtime)]) -> dict[str, int]:
  """Daily (UTC) sweep of expired notification triggers; never fails the scheduler."""
  deleted = await runtime.sweeper.run()
  return {"deleted": deleted}
