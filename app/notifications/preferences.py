"""Loads recipient notification preferences from the user profile document."""

from __future__ import annotations

import logging

from google.cloud.firestore import AsyncClient

from app.notifications.contracts import NotificationSettings

logger = logging.getLogger(__name__)


class PreferenceResolver:
  """Reads `settings.notifications` from `users/{uid}`."""

  def __init__(self, *, client: AsyncClient, users_collection: str = "users") -> None:
    self._client = client
    self._users_collection = users_collection

  async def load(self, user_id: str) -> NotificationSettings:
    """Return the user's settings, or enable-everything defaults when unavailable."""
    try:
      snapshot = await self._client.collection(self._users_collection).document(user_id).get()
    except Exception as exc:  # noqa: BLE001
      # Lookup failures fall back to defaults so delivery still proceeds.
      logger.error("Failed loading notification settings user_id=%s error=%s", user_id, exc, exc_info=True)
      return NotificationSettings()

    if not snapshot.exists:
      logger.warning("User document not found user_id=%s", user_id)
      return NotificationSettings()

    profile = snapshot.to_dict() or {}
    settings = profile.get("settings")
    raw = settings.get("notifications") if isinstance(settings, dict) else None
    return NotificationSettings.from_mapping(raw if isinstance(raw, dict) else None)
