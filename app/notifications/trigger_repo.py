"""Repository helpers for notificationTriggers documents."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from google.cloud.firestore import SERVER_TIMESTAMP, AsyncClient
from google.cloud.firestore_v1.base_query import FieldFilter

from app.notifications.contracts import SkipReason


class NotificationTriggerRepository:
  """Terminal-state writes and retention queries for trigger records."""

  def __init__(self, *, client: AsyncClient, collection: str = "notificationTriggers") -> None:
    self._client = client
    self._collection = collection

  async def _update(self, trigger_id: str, fields: dict[str, Any]) -> None:
    await self._client.collection(self._collection).document(trigger_id).update(fields)

  async def mark_skipped(self, *, trigger_id: str, reason: SkipReason) -> None:
    """Record a suppressed trigger so redelivered events become no-ops."""
    await self._update(trigger_id, {"sent": True, "skipped": True, "skipReason": reason.value})

  async def mark_sent(self, *, trigger_id: str, tokens_count: int) -> None:
    """Record a delivered trigger with the number of tokens attempted."""
    await self._update(trigger_id, {"sent": True, "sentAt": SERVER_TIMESTAMP, "tokensCount": tokens_count})

  async def list_created_before(self, *, cutoff: datetime, limit: int) -> list:
    """Return up to `limit` trigger snapshots created strictly before `cutoff`."""
    query = self._client.collection(self._collection).where(filter=FieldFilter("createdAt", "<", cutoff)).limit(limit)
    return list(await query.get())

  async def delete_all(self, snapshots: list) -> int:
    """Delete the given trigger documents in one atomic batch."""
    batch = self._client.batch()
    for snapshot in snapshots:
      batch.delete(snapshot.reference)
    await batch.commit()
    return len(snapshots)
