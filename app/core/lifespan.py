import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.core.firebase import get_firestore_client, initialize_firebase
from app.core.logging import _initialize_logging
from app.notifications.factory import build_notification_runtime


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, Firebase and the notification runtime for the process."""
  settings = get_settings()
  logger = logging.getLogger("app.core.lifespan")

  _initialize_logging(settings)
  logger.info("Starting notification service environment=%s region=%s", settings.environment, settings.region)

  firebase_app = initialize_firebase()
  firestore_client = get_firestore_client()
  if firestore_client is None:
    # Routes answer 503 until Firestore is reachable; the health check stays up.
    logger.error("Firestore client unavailable; notification endpoints are disabled.")
    app.state.notifications = None
  else:
    app.state.notifications = build_notification_runtime(settings, firestore_client=firestore_client, firebase_app=firebase_app)
    logger.info("Notification runtime ready push_enabled=%s email_enabled=%s", settings.push_notifications_enabled, settings.email_notifications_enabled)

  yield

  runtime = getattr(app.state, "notifications", None)
  if runtime is not None:
    # Let in-flight token invalidations finish before the process exits.
    await runtime.dispatcher.wait_for_background_tasks()
