"""Multicast push dispatch with dead-token invalidation."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

from starlette.concurrency import run_in_threadpool

from app.notifications.contracts import MulticastResult, PushMessage, PushSender
from app.notifications.endpoint_repo import PushEndpointRepository, mask_token
from app.notifications.push_sender import INVALID_REGISTRATION_TOKEN, REGISTRATION_TOKEN_NOT_REGISTERED

logger = logging.getLogger(__name__)

# FCM rejects multicast messages addressed to more than 500 tokens.
MAX_MULTICAST_TOKENS = 500
PERMANENT_TOKEN_ERRORS = frozenset({INVALID_REGISTRATION_TOKEN, REGISTRATION_TOKEN_NOT_REGISTERED})


def stringify_data(data: Mapping[str, Any]) -> dict[str, str]:
  """Coerce payload values to strings; FCM data maps only carry strings."""
  result: dict[str, str] = {}
  for key, value in data.items():
    if isinstance(value, str):
      result[str(key)] = value
    elif value is None or isinstance(value, bool | int | float | dict | list):
      result[str(key)] = json.dumps(value, default=str, separators=(",", ":"))
    else:
      result[str(key)] = str(value)
  return result


class DeliveryDispatcher:
  """Sends push payloads and retires tokens FCM reports as permanently dead.

  Token invalidation runs as detached tasks: dispatch returns without waiting
  for them and their failures are only logged.

  Recipients with more than 500 tokens are sent in several multicast calls. A
  transport failure on a later batch propagates after earlier batches were
  delivered, so the redelivered event sends those batches again.
  """

  def __init__(self, *, push_sender: PushSender, endpoint_repo: PushEndpointRepository) -> None:
    self._push_sender = push_sender
    self._endpoint_repo = endpoint_repo
    self._background_tasks: set[asyncio.Task[int]] = set()

  async def dispatch(self, *, tokens: list[str], title: str, body: str, data: Mapping[str, Any]) -> list[MulticastResult]:
    """Send one multicast per token batch; transport failures propagate."""
    if not tokens:
      logger.warning("No active tokens found, skipping notification")
      return []

    string_data = stringify_data(data)
    results: list[MulticastResult] = []
    for start in range(0, len(tokens), MAX_MULTICAST_TOKENS):
      batch = tokens[start : start + MAX_MULTICAST_TOKENS]
      message = PushMessage(tokens=batch, title=title, body=body, data=string_data)
      result = await run_in_threadpool(self._push_sender.send_multicast, message)
      self._handle_result(result)
      results.append(result)

    return results

  def _handle_result(self, result: MulticastResult) -> None:
    logger.info("Successfully sent %s notification(s)", result.success_count)
    if result.failure_count == 0:
      return

    logger.warning("Failed to send %s notification(s)", result.failure_count)
    for outcome in result.outcomes:
      if outcome.success:
        continue
      logger.error("Failed token %s: code=%s error=%s", mask_token(outcome.token), outcome.error_code, outcome.error_message)
      if outcome.error_code in PERMANENT_TOKEN_ERRORS:
        self._schedule_invalidation(outcome.token)

  def _schedule_invalidation(self, token: str) -> None:
    task = asyncio.create_task(self._endpoint_repo.deactivate_token(token=token))
    # Hold a reference until completion so the task is not garbage collected mid-flight.
    self._background_tasks.add(task)
    task.add_done_callback(self._background_tasks.discard)
    task.add_done_callback(self._log_task_error)

  @staticmethod
  def _log_task_error(task: asyncio.Task[int]) -> None:
    """Log background invalidation failures so they are never silent."""
    if task.cancelled():
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Failed to mark token as inactive: %s", exc, exc_info=exc)

  async def wait_for_background_tasks(self) -> None:
    """Await outstanding invalidations; used at shutdown and in tests."""
    if self._background_tasks:
      await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
