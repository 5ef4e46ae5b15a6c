"""Unit tests for API exception sanitization behavior."""

from __future__ import annotations

from app.core.exceptions import _error_payload, _sanitize_validation_errors


def test_sanitize_validation_errors_removes_input_and_ctx() -> None:
  """Ensure validation errors stay JSON-serializable and redact raw request payloads."""
  errors = [{"type": "missing", "loc": ("body", "documentId"), "msg": "Field required", "input": {"data": {"token": "secret"}}, "ctx": {"error": ValueError("boom")}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert "ctx" not in sanitized[0]
  assert sanitized[0]["loc"] == ["body", "documentId"]


def test_error_payload_includes_request_id_only_when_known() -> None:
  assert _error_payload("Forbidden") == {"detail": "Forbidden"}
  assert _error_payload("Forbidden", request_id="abc") == {"detail": "Forbidden", "requestId": "abc"}
