from __future__ import annotations

from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from app.api.deps import get_notification_runtime
from app.config import get_settings
from app.main import app
from app.notifications.contracts import ProcessingStatus, PushTransportError
from fastapi.testclient import TestClient

TASK_SECRET = "test-task-secret"

_AUTH = {"X-Wardrobe-Task-Secret": TASK_SECRET}
_TRIGGER_EVENT = {"documentId": "trigger-1", "data": {"recipientUserId": "user-1", "type": "friend_request", "sent": False}}


@pytest.fixture
def runtime():
  return SimpleNamespace(processor=AsyncMock(), dispatcher=AsyncMock(), sweeper=AsyncMock(), moderation=AsyncMock())


@pytest.fixture
def client(settings, runtime):
  app.dependency_overrides[get_settings] = lambda: settings
  app.dependency_overrides[get_notification_runtime] = lambda: runtime
  try:
    yield TestClient(app)
  finally:
    app.dependency_overrides.clear()


def test_internal_routes_require_task_secret(client):
  response = client.post("/internal/events/notification-triggers", json=_TRIGGER_EVENT)
  assert response.status_code == 403

  response = client.post("/internal/events/notification-triggers", json=_TRIGGER_EVENT, headers={"X-Wardrobe-Task-Secret": "wrong"})
  assert response.status_code == 403


def test_internal_routes_closed_when_secret_unconfigured(settings, runtime):
  app.dependency_overrides[get_settings] = lambda: replace(settings, task_secret=None)
  app.dependency_overrides[get_notification_runtime] = lambda: runtime
  try:
    response = TestClient(app).post("/internal/maintenance/cleanup-triggers", headers=_AUTH)
    assert response.status_code == 403
  finally:
    app.dependency_overrides.clear()


def test_trigger_event_reports_processing_status(client, runtime):
  runtime.processor.process.return_value = ProcessingStatus.SENT

  response = client.post("/internal/events/notification-triggers", json=_TRIGGER_EVENT, headers={"Authorization": f"Bearer {TASK_SECRET}"})

  assert response.status_code == 200
  assert response.json() == {"status": "sent"}
  runtime.processor.process.assert_awaited_once_with("trigger-1", _TRIGGER_EVENT["data"])


def test_dispatch_failure_returns_500_so_event_is_redelivered(client, runtime):
  runtime.processor.process.side_effect = PushTransportError("fcm down")

  response = client.post("/internal/events/notification-triggers", json=_TRIGGER_EVENT, headers=_AUTH)

  assert response.status_code == 500
  assert response.json()["detail"] == "Internal Server Error"
  assert "requestId" in response.json()


def test_event_without_document_id_is_rejected(client):
  response = client.post("/internal/events/notification-triggers", json={"data": {}}, headers=_AUTH)
  assert response.status_code == 422


def test_report_and_block_events_are_accepted_even_when_email_fails(client, runtime):
  runtime.moderation.notify_report_created.return_value = True
  runtime.moderation.notify_block_created.return_value = False

  report = client.post("/internal/events/reports", json={"documentId": "r1", "data": {"reason": "spam"}}, headers=_AUTH)
  block = client.post("/internal/events/blocks", json={"documentId": "b1", "data": None}, headers=_AUTH)

  assert report.status_code == 202
  assert report.json() == {"status": "accepted", "email": "sent"}
  assert block.status_code == 202
  assert block.json() == {"status": "accepted", "email": "failed"}
  runtime.moderation.notify_report_created.assert_awaited_once_with(report_id="r1", data={"reason": "spam"})


def test_cleanup_route_returns_deleted_count(client, runtime):
  runtime.sweeper.run.return_value = 42

  response = client.post("/internal/maintenance/cleanup-triggers", headers=_AUTH)

  assert response.status_code == 200
  assert response.json() == {"deleted": 42}


def test_missing_runtime_answers_503(settings):
  app.dependency_overrides[get_settings] = lambda: settings
  try:
    response = TestClient(app).post("/internal/maintenance/cleanup-triggers", headers=_AUTH)
    assert response.status_code == 503
  finally:
    app.dependency_overrides.clear()


def test_health_check_tags_request_id():
  response = TestClient(app).get("/health")

  assert response.status_code == 200
  assert response.json()["status"] == "ok"
  assert response.headers["x-request-id"]
