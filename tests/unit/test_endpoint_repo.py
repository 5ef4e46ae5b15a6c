from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from app.notifications.endpoint_repo import PushEndpointRepository
from google.cloud.firestore import SERVER_TIMESTAMP


def _primary_query(firestore_client):
  return firestore_client.collection.return_value.where.return_value.where.return_value


def _legacy_query(firestore_client):
  return firestore_client.collection.return_value.document.return_value.collection.return_value.where.return_value


@pytest.mark.anyio
async def test_list_active_tokens_filters_empty_tokens(firestore_client, snapshot_factory):
  _primary_query(firestore_client).get = AsyncMock(return_value=[snapshot_factory({"fcmToken": "tok-a"}), snapshot_factory({"fcmToken": ""}), snapshot_factory({"userId": "u1"}), snapshot_factory({"fcmToken": "tok-b"})])

  tokens = await PushEndpointRepository(client=firestore_client).list_active_tokens(user_id="u1")

  assert tokens == ["tok-a", "tok-b"]
  firestore_client.collection.assert_called_with("fcmTokens")


@pytest.mark.anyio
async def test_empty_primary_result_does_not_fall_back(firestore_client, snapshot_factory):
  _primary_query(firestore_client).get = AsyncMock(return_value=[])
  _legacy_query(firestore_client).get = AsyncMock(return_value=[snapshot_factory({"fcmToken": "legacy"})])

  tokens = await PushEndpointRepository(client=firestore_client).list_active_tokens(user_id="u1")

  assert tokens == []
  _legacy_query(firestore_client).get.assert_not_awaited()


@pytest.mark.anyio
async def test_primary_error_falls_back_to_legacy_devices(firestore_client, snapshot_factory):
  _primary_query(firestore_client).get = AsyncMock(side_effect=RuntimeError("index missing"))
  _legacy_query(firestore_client).get = AsyncMock(return_value=[snapshot_factory({"fcmToken": "legacy-1"}), snapshot_factory({"fcmToken": None})])

  tokens = await PushEndpointRepository(client=firestore_client, legacy_devices_collection="devices").list_active_tokens(user_id="u9")

  assert tokens == ["legacy-1"]
  firestore_client.collection.return_value.document.assert_called_with("u9")
  firestore_client.collection.return_value.document.return_value.collection.assert_called_with("devices")


@pytest.mark.anyio
async def test_fallback_error_yields_empty_list(firestore_client, caplog):
  _primary_query(firestore_client).get = AsyncMock(side_effect=RuntimeError("primary down"))
  _legacy_query(firestore_client).get = AsyncMock(side_effect=RuntimeError("legacy down"))

  tokens = await PushEndpointRepository(client=firestore_client).list_active_tokens(user_id="u1")

  assert tokens == []
  assert "Legacy device token lookup failed" in caplog.text


@pytest.mark.anyio
async def test_deactivate_token_updates_every_matching_record_in_one_batch(firestore_client, snapshot_factory):
  first, second = snapshot_factory({"fcmToken": "dead"}), snapshot_factory({"fcmToken": "dead"})
  firestore_client.collection.return_value.where.return_value.get = AsyncMock(return_value=[first, second])
  batch = firestore_client.batch.return_value

  updated = await PushEndpointRepository(client=firestore_client).deactivate_token(token="dead")

  assert updated == 2
  assert batch.update.call_count == 2
  batch.update.assert_any_call(first.reference, {"isActive": False, "lastActiveAt": SERVER_TIMESTAMP})
  batch.update.assert_any_call(second.reference, {"isActive": False, "lastActiveAt": SERVER_TIMESTAMP})
  batch.commit.assert_awaited_once()


@pytest.mark.anyio
async def test_deactivate_unknown_token_skips_commit(firestore_client):
  firestore_client.collection.return_value.where.return_value.get = AsyncMock(return_value=[])

  assert await PushEndpointRepository(client=firestore_client).deactivate_token(token="nobody") == 0
  firestore_client.batch.return_value.commit.assert_not_awaited()
