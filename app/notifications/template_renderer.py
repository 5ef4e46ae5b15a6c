"""Moderation alert email rendering.

Templates are stored on disk next to this module and rendered with
`{{placeholder}}` substitution; values are HTML-escaped for the HTML part.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")
_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


@dataclass(frozen=True)
class EmailTemplate:
  """Template metadata and file locations for one alert email."""

  template_id: str
  subject_template: str
  html_filename: str
  text_filename: str
  required_placeholders: frozenset[str]


TEMPLATES: dict[str, EmailTemplate] = {
  "report_created_v1": EmailTemplate(
    template_id="report_created_v1",
    subject_template="New report {{record_id}}: {{reason}}",
    html_filename="report_created_v1.html",
    text_filename="report_created_v1.txt",
    required_placeholders=frozenset({"record_id", "reason", "summary"}),
  ),
  "block_created_v1": EmailTemplate(
    template_id="block_created_v1",
    subject_template="New block {{record_id}}",
    html_filename="block_created_v1.html",
    text_filename="block_created_v1.txt",
    required_placeholders=frozenset({"record_id", "summary"}),
  ),
}


def render_email_template(*, template_id: str, placeholders: dict[str, Any]) -> tuple[str, str, str]:
  """Render subject/text/html for a template id using escaped placeholders."""
  template = TEMPLATES.get(template_id)
  if template is None:
    raise ValueError(f"Unknown email template: {template_id}")

  missing = sorted(template.required_placeholders - set(placeholders))
  if missing:
    raise ValueError(f"Missing placeholders for template '{template_id}': {', '.join(missing)}")

  subject = _render_text(template.subject_template, placeholders=placeholders, escape_html=False)
  text_payload = _render_text(_load_template_file(template.text_filename), placeholders=placeholders, escape_html=False)
  html_payload = _render_text(_load_template_file(template.html_filename), placeholders=placeholders, escape_html=True)
  return subject, text_payload, html_payload


def _render_text(raw_template: str, *, placeholders: dict[str, Any], escape_html: bool) -> str:
  def _replace(match: re.Match[str]) -> str:
    value = placeholders.get(match.group(1))
    rendered = "" if value is None else str(value)
    return html.escape(rendered, quote=True) if escape_html else rendered

  return _PLACEHOLDER_RE.sub(_replace, raw_template)


@lru_cache(maxsize=8)
def _load_template_file(filename: str) -> str:
  return (_TEMPLATE_DIR / filename).read_text(encoding="utf-8")
