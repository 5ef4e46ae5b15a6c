import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


def require_task_secret(
  settings: Annotated[Settings, Depends(get_settings)], authorization: str | None = Header(default=None), x_wardrobe_task_secret: str | None = Header(default=None)
) -> None:
  """Authenticate internal event and scheduler callers with the shared task secret."""
  # Secure-by-default: internal endpoints stay closed until a secret is configured.
  if not settings.task_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task authentication is not configured.")

  # Eventarc/Scheduler OIDC tokens occupy Authorization, so the dedicated header is checked first.
  shared_secret_valid = secrets.compare_digest((x_wardrobe_task_secret or ""), settings.task_secret)
  bearer_valid = secrets.compare_digest((authorization or ""), f"Bearer {settings.task_secret}")
  if not shared_secret_valid and not bearer_valid:
    logger.warning("Rejected internal request with invalid task secret")
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")
