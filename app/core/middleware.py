import logging
import time
import uuid
from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("app.core.middleware")

# Eventarc forwards the CloudEvent id in binary mode; reusing it ties retries of one event together in the logs.
_CLOUDEVENT_ID_HEADER = "ce-id"


def _resolve_request_id(scope: Scope) -> str:
  headers = Headers(scope=scope)
  incoming = headers.get("x-request-id") or headers.get(_CLOUDEVENT_ID_HEADER)
  if incoming and len(incoming) <= 128:
    return incoming
  return str(uuid.uuid4())


class RequestLoggingMiddleware:
  """Log each HTTP request with timing and echo its id in `x-request-id`."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    request_id = _resolve_request_id(scope)
    scope.setdefault("state", {})["request_id"] = request_id
    started = time.perf_counter()
    logger.info("Incoming request request_id=%s %s %s", request_id, scope.get("method", "UNKNOWN"), scope.get("path", ""))

    response_status: dict[str, Any] = {"code": 0}

    async def send_with_request_id(message: Message) -> None:
      if message["type"] == "http.response.start":
        response_status["code"] = message.get("status", 0)
        MutableHeaders(scope=message).setdefault("x-request-id", request_id)
      await send(message)

    try:
      await self.app(scope, receive, send_with_request_id)
    finally:
      elapsed_ms = (time.perf_counter() - started) * 1000
      logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, response_status["code"], elapsed_ms)
