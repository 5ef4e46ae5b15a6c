"""Shared fixtures for the notification service tests."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.config import Settings, get_settings

TASK_SECRET = "test-task-secret"


def _make_snapshot(data: dict | None, *, exists: bool = True) -> MagicMock:
  """Build a Firestore DocumentSnapshot stand-in."""
  snapshot = MagicMock()
  snapshot.exists = exists
  snapshot.to_dict.return_value = data
  snapshot.reference = MagicMock(name="reference")
  return snapshot


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def settings() -> Settings:
  return replace(get_settings(), task_secret=TASK_SECRET, push_notifications_enabled=False, email_notifications_enabled=False)


@pytest.fixture
def firestore_client():
  client = MagicMock()
  batch = MagicMock()
  batch.commit = AsyncMock()
  client.batch.return_value = batch
  return client


@pytest.fixture
def snapshot_factory():
  return _make_snapshot
