import logging

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud.firestore import AsyncClient

from app.config import get_settings

logger = logging.getLogger(__name__)


def initialize_firebase() -> firebase_admin.App | None:
  """Initialize the Firebase Admin SDK once per process and return the default app.

  A service-account file is used when configured; otherwise the SDK falls back to
  Application Default Credentials, which is what Cloud Run provides.
  """
  if firebase_admin._apps:
    return firebase_admin.get_app()

  settings = get_settings()
  options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
  try:
    if settings.firebase_service_account_json_path:
      app = firebase_admin.initialize_app(credentials.Certificate(settings.firebase_service_account_json_path), options)
      logger.info("Firebase Admin SDK initialized from service account file project=%s", settings.firebase_project_id)
    else:
      app = firebase_admin.initialize_app(options=options)
      logger.info("Firebase Admin SDK initialized with application default credentials project=%s", settings.firebase_project_id)
  except Exception as e:
    logger.error("Failed to initialize Firebase Admin SDK: %s", e)
    return None
  return app


def get_firestore_client() -> AsyncClient | None:
  """Return the async Firestore client bound to the default app."""
  if initialize_firebase() is None:
    return None

  try:
    return firestore_async.client()
  except Exception as e:
    logger.error("Failed to get Firestore client: %s", e)
    return None
