"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the Wardrobe notification service."""

  environment: str
  debug: bool
  region: str
  log_max_bytes: int
  log_backup_count: int
  firebase_project_id: str | None
  firebase_service_account_json_path: str | None
  task_secret: str | None
  push_notifications_enabled: bool
  max_concurrent_triggers: int
  quiet_hours_timezone: str
  triggers_collection: str
  users_collection: str
  tokens_collection: str
  legacy_devices_collection: str
  trigger_retention_days: int
  trigger_cleanup_batch_size: int
  support_email: str
  email_notifications_enabled: bool
  email_from_address: str | None
  email_from_name: str | None
  mailersend_api_key: str | None
  mailersend_timeout_seconds: int
  mailersend_base_url: str


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _parse_positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("WARDROBE_ENV", "development").lower()
  debug = _parse_bool(os.getenv("WARDROBE_DEBUG"))

  log_max_bytes = _parse_positive_int("WARDROBE_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("WARDROBE_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("WARDROBE_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Mirrors the hosting instance cap; each process runs at most this many triggers at once.
  max_concurrent_triggers = _parse_positive_int("WARDROBE_MAX_CONCURRENT_TRIGGERS", "10")

  quiet_hours_timezone = (os.getenv("WARDROBE_QUIET_HOURS_TIMEZONE") or "UTC").strip()
  try:
    ZoneInfo(quiet_hours_timezone)
  except (ZoneInfoNotFoundError, ValueError) as exc:
    raise ValueError(f"WARDROBE_QUIET_HOURS_TIMEZONE is not a known timezone: {quiet_hours_timezone}") from exc

  trigger_retention_days = _parse_positive_int("WARDROBE_TRIGGER_RETENTION_DAYS", "7")
  trigger_cleanup_batch_size = _parse_positive_int("WARDROBE_TRIGGER_CLEANUP_BATCH_SIZE", "500")
  # Firestore batched writes accept at most 500 operations.
  if trigger_cleanup_batch_size > 500:
    raise ValueError("WARDROBE_TRIGGER_CLEANUP_BATCH_SIZE must not exceed 500.")

  email_notifications_enabled = _parse_bool(os.getenv("WARDROBE_EMAIL_NOTIFICATIONS_ENABLED"))
  email_from_address = _optional_str(os.getenv("WARDROBE_EMAIL_FROM_ADDRESS"))
  email_from_name = _optional_str(os.getenv("WARDROBE_EMAIL_FROM_NAME"))
  mailersend_api_key = _optional_str(os.getenv("WARDROBE_MAILERSEND_API_KEY"))
  mailersend_timeout_seconds = int(os.getenv("WARDROBE_MAILERSEND_TIMEOUT_SECONDS", "10"))
  mailersend_base_url = (os.getenv("WARDROBE_MAILERSEND_BASE_URL") or "https://api.mailersend.com/v1").strip()

  # Validate email settings only when outbound email is switched on.
  if email_notifications_enabled:
    if not email_from_address:
      raise ValueError("WARDROBE_EMAIL_FROM_ADDRESS must be set when email notifications are enabled.")

    if not mailersend_api_key:
      raise ValueError("WARDROBE_MAILERSEND_API_KEY must be set when email notifications are enabled.")

    if mailersend_timeout_seconds <= 0:
      raise ValueError("WARDROBE_MAILERSEND_TIMEOUT_SECONDS must be a positive integer.")

  return Settings(
    environment=environment,
    debug=debug,
    region=(os.getenv("WARDROBE_REGION") or "us-central1").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_service_account_json_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON_PATH")),
    task_secret=_optional_str(os.getenv("WARDROBE_TASK_SECRET")),
    push_notifications_enabled=_parse_bool(os.getenv("WARDROBE_PUSH_NOTIFICATIONS_ENABLED")),
    max_concurrent_triggers=max_concurrent_triggers,
    quiet_hours_timezone=quiet_hours_timezone,
    triggers_collection=os.getenv("WARDROBE_TRIGGERS_COLLECTION", "notificationTriggers"),
    users_collection=os.getenv("WARDROBE_USERS_COLLECTION", "users"),
    tokens_collection=os.getenv("WARDROBE_TOKENS_COLLECTION", "fcmTokens"),
    legacy_devices_collection=os.getenv("WARDROBE_LEGACY_DEVICES_COLLECTION", "devices"),
    trigger_retention_days=trigger_retention_days,
    trigger_cleanup_batch_size=trigger_cleanup_batch_size,
    support_email=(os.getenv("WARDROBE_SUPPORT_EMAIL") or "support@wardrobechat.app").strip(),
    email_notifications_enabled=email_notifications_enabled,
    email_from_address=email_from_address,
    email_from_name=email_from_name,
    mailersend_api_key=mailersend_api_key,
    mailersend_timeout_seconds=mailersend_timeout_seconds,
    mailersend_base_url=mailersend_base_url,
  )
