"""Timestamp helpers shared by API responses and message payloads."""

from __future__ import annotations

import time
from datetime import UTC, datetime


def utc_now_iso() -> str:
  """Return the current UTC time as ISO-8601 with milliseconds and a Z suffix."""
  return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_millis() -> str:
  """Return the current epoch time in milliseconds as text."""
  return str(int(time.time() * 1000))
