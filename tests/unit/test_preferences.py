from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from app.notifications.contracts import NotificationSettings, NotificationType
from app.notifications.preferences import PreferenceResolver


def _document(firestore_client):
  return firestore_client.collection.return_value.document.return_value


@pytest.mark.anyio
async def test_load_reads_nested_notification_settings(firestore_client, snapshot_factory):
  _document(firestore_client).get = AsyncMock(return_value=snapshot_factory({"displayName": "Ana", "settings": {"notifications": {"dmMessages": False, "quietHoursStart": "22:00", "quietHoursEnd": "08:00"}}}))

  settings = await PreferenceResolver(client=firestore_client).load("user-1")

  firestore_client.collection.assert_called_with("users")
  firestore_client.collection.return_value.document.assert_called_with("user-1")
  assert settings.is_type_enabled(NotificationType.DM_MESSAGE) is False
  assert settings.is_type_enabled(NotificationType.CLOTH_LIKE) is True
  assert (settings.quiet_hours_start, settings.quiet_hours_end) == ("22:00", "08:00")


@pytest.mark.anyio
async def test_missing_user_document_yields_defaults(firestore_client, snapshot_factory, caplog):
  _document(firestore_client).get = AsyncMock(return_value=snapshot_factory(None, exists=False))

  settings = await PreferenceResolver(client=firestore_client).load("ghost")

  assert settings == NotificationSettings()
  assert "User document not found" in caplog.text


@pytest.mark.anyio
async def test_profile_without_settings_yields_defaults(firestore_client, snapshot_factory):
  _document(firestore_client).get = AsyncMock(return_value=snapshot_factory({"settings": "legacy-string"}))

  assert await PreferenceResolver(client=firestore_client).load("user-2") == NotificationSettings()


@pytest.mark.anyio
async def test_lookup_error_is_logged_and_defaults_apply(firestore_client, caplog):
  _document(firestore_client).get = AsyncMock(side_effect=RuntimeError("deadline exceeded"))

  settings = await PreferenceResolver(client=firestore_client).load("user-3")

  assert settings == NotificationSettings()
  assert "Failed loading notification settings" in caplog.text
