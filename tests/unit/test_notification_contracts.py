from __future__ import annotations

import pytest
from app.notifications.contracts import MulticastResult, NotificationSettings, NotificationType, SendOutcome, TriggerRecord


def test_settings_default_to_enabled_when_absent():
  settings = NotificationSettings.from_mapping(None)
  assert all(settings.is_type_enabled(t) for t in NotificationType)
  assert settings.quiet_hours_start is None


@pytest.mark.parametrize(
  ("flag", "notification_type"),
  [("friendRequests", NotificationType.FRIEND_REQUEST), ("friendAccepts", NotificationType.FRIEND_ACCEPT), ("dmMessages", NotificationType.DM_MESSAGE), ("clothLikes", NotificationType.CLOTH_LIKE), ("clothComments", NotificationType.CLOTH_COMMENT)],
)
def test_only_explicit_false_disables_a_type(flag, notification_type):
  assert NotificationSettings.from_mapping({flag: False}).is_type_enabled(notification_type) is False
  assert NotificationSettings.from_mapping({flag: True}).is_type_enabled(notification_type) is True
  # Falsy values that are not literally False keep the type enabled.
  assert NotificationSettings.from_mapping({flag: None}).is_type_enabled(notification_type) is True
  assert NotificationSettings.from_mapping({flag: 0}).is_type_enabled(notification_type) is True


def test_unknown_type_is_always_enabled():
  settings = NotificationSettings.from_mapping({key: False for key in ("friendRequests", "friendAccepts", "dmMessages", "clothLikes", "clothComments")})
  assert NotificationType.parse("outfit_of_the_day") is None
  assert settings.is_type_enabled(NotificationType.parse("outfit_of_the_day")) is True


def test_trigger_record_from_snapshot():
  record = TriggerRecord.from_snapshot("t1", {"recipientUserId": "u1", "type": "dm_message", "title": "Hi", "data": {"chatId": 7}, "sent": False})

  assert record.trigger_id == "t1"
  assert record.recipient_user_id == "u1"
  assert record.notification_type is NotificationType.DM_MESSAGE
  assert record.data == {"chatId": 7}
  assert record.body is None
  assert record.sent is False


def test_trigger_record_tolerates_missing_fields():
  record = TriggerRecord.from_snapshot("t2", {"data": "not-a-map", "sent": "yes"})

  assert record.recipient_user_id is None
  assert record.data == {}
  # Only a literal True counts as sent.
  assert record.sent is False


def test_multicast_result_counts():
  result = MulticastResult(outcomes=[SendOutcome(token="a", success=True), SendOutcome(token="b", success=False, error_code="x")])
  assert result.success_count == 1
  assert result.failure_count == 1
