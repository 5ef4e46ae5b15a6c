from fastapi import HTTPException, Request, status

from app.notifications.factory import NotificationRuntime


def get_notification_runtime(request: Request) -> NotificationRuntime:
  """Return the process-wide runtime built during startup."""
  runtime = getattr(request.app.state, "notifications", None)
  if runtime is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Notification runtime is not available.")
  return runtime
