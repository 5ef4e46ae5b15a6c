"""Factory helpers for notification services."""

from __future__ import annotations

from dataclasses import dataclass
from zoneinfo import ZoneInfo

import firebase_admin
from google.cloud.firestore import AsyncClient

from app.config import Settings
from app.notifications.contracts import EmailSender, PushSender
from app.notifications.dispatcher import DeliveryDispatcher
from app.notifications.email_sender import MailerSendConfig, MailerSendEmailSender, NullEmailSender
from app.notifications.endpoint_repo import PushEndpointRepository
from app.notifications.moderation import ModerationAlertService
from app.notifications.preferences import PreferenceResolver
from app.notifications.processor import TriggerProcessor
from app.notifications.push_sender import FcmPushSender, NullPushSender
from app.notifications.trigger_repo import NotificationTriggerRepository
from app.services.maintenance import TriggerRetentionSweeper


@dataclass(frozen=True)
class NotificationRuntime:
  """Process-wide service handles, built once at startup and shared by every request."""

  processor: TriggerProcessor
  dispatcher: DeliveryDispatcher
  sweeper: TriggerRetentionSweeper
  moderation: ModerationAlertService


def build_email_sender(settings: Settings) -> EmailSender:
  """Email is disabled by default so alerts are only logged in dev/test."""
  if not settings.email_notifications_enabled:
    return NullEmailSender()

  config = MailerSendConfig(
    api_key=settings.mailersend_api_key or "", from_address=settings.email_from_address or "", from_name=settings.email_from_name, timeout_seconds=settings.mailersend_timeout_seconds, base_url=settings.mailersend_base_url
  )
  return MailerSendEmailSender(config=config)


def build_push_sender(settings: Settings, *, firebase_app: firebase_admin.App | None = None) -> PushSender:
  if settings.push_notifications_enabled:
    return FcmPushSender(app=firebase_app)
  return NullPushSender()


def build_notification_runtime(settings: Settings, *, firestore_client: AsyncClient, firebase_app: firebase_admin.App | None = None) -> NotificationRuntime:
  """Construct the trigger pipeline and its collaborators from configuration."""
  triggers = NotificationTriggerRepository(client=firestore_client, collection=settings.triggers_collection)
  endpoints = PushEndpointRepository(client=firestore_client, tokens_collection=settings.tokens_collection, users_collection=settings.users_collection, legacy_devices_collection=settings.legacy_devices_collection)
  dispatcher = DeliveryDispatcher(push_sender=build_push_sender(settings, firebase_app=firebase_app), endpoint_repo=endpoints)
  processor = TriggerProcessor(
    preferences=PreferenceResolver(client=firestore_client, users_collection=settings.users_collection),
    endpoints=endpoints,
    dispatcher=dispatcher,
    triggers=triggers,
    quiet_hours_tz=ZoneInfo(settings.quiet_hours_timezone),
    max_concurrent=settings.max_concurrent_triggers,
  )
  sweeper = TriggerRetentionSweeper(triggers=triggers, retention_days=settings.trigger_retention_days, batch_limit=settings.trigger_cleanup_batch_size)
  moderation = ModerationAlertService(email_sender=build_email_sender(settings), support_email=settings.support_email)
  return NotificationRuntime(processor=processor, dispatcher=dispatcher, sweeper=sweeper, moderation=moderation)
