"""Repository helpers for FCM endpoint (device token) records."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from google.cloud.firestore import SERVER_TIMESTAMP, AsyncClient
from google.cloud.firestore_v1.base_query import FieldFilter

logger = logging.getLogger(__name__)


def _extract_tokens(snapshots: Iterable) -> list[str]:
  """Pull non-empty `fcmToken` values out of endpoint documents."""
  tokens: list[str] = []
  for snapshot in snapshots:
    token = (snapshot.to_dict() or {}).get("fcmToken")
    if isinstance(token, str) and token:
      tokens.append(token)
  return tokens


def mask_token(token: str) -> str:
  """Shorten a token for log lines."""
  return f"{token[:20]}..."


class PushEndpointRepository:
  """Resolve and deactivate push endpoints stored in Firestore.

  Modern endpoints live in a top-level collection keyed by owner. Older app
  builds registered devices under `users/{uid}/devices`; that location is read
  only when the primary query raises, never merged with it.
  """

  def __init__(self, *, client: AsyncClient, tokens_collection: str = "fcmTokens", users_collection: str = "users", legacy_devices_collection: str = "devices") -> None:
    self._client = client
    self._tokens_collection = tokens_collection
    self._users_collection = users_collection
    self._legacy_devices_collection = legacy_devices_collection

  async def list_active_tokens(self, *, user_id: str) -> list[str]:
    """Return the active FCM tokens registered for a user."""
    try:
      query = self._client.collection(self._tokens_collection).where(filter=FieldFilter("userId", "==", user_id)).where(filter=FieldFilter("isActive", "==", True))
      tokens = _extract_tokens(await query.get())
    except Exception as exc:  # noqa: BLE001
      logger.error("Active token lookup failed user_id=%s error=%s; trying legacy devices", user_id, exc, exc_info=True)
      return await self._list_legacy_tokens(user_id=user_id)

    logger.info("Found %s active FCM tokens for user %s", len(tokens), user_id)
    return tokens

  async def _list_legacy_tokens(self, *, user_id: str) -> list[str]:
    try:
      devices = self._client.collection(self._users_collection).document(user_id).collection(self._legacy_devices_collection)
      return _extract_tokens(await devices.where(filter=FieldFilter("isActive", "==", True)).get())
    except Exception as exc:  # noqa: BLE001
      logger.error("Legacy device token lookup failed user_id=%s error=%s", user_id, exc, exc_info=True)
      return []

  async def deactivate_token(self, *, token: str) -> int:
    """Mark every endpoint holding `token` inactive in a single batched write."""
    snapshots = await self._client.collection(self._tokens_collection).where(filter=FieldFilter("fcmToken", "==", token)).get()
    if not snapshots:
      logger.info("No endpoint records hold token %s", mask_token(token))
      return 0

    batch = self._client.batch()
    for snapshot in snapshots:
      batch.update(snapshot.reference, {"isActive": False, "lastActiveAt": SERVER_TIMESTAMP})
    await batch.commit()
    logger.info("Marked token as inactive: %s (%s records)", mask_token(token), len(snapshots))
    return len(snapshots)
