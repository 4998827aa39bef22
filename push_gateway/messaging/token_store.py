"""Device token registration stores."""

from __future__ import annotations

import logging

from push_gateway.messaging.contracts import TokenRegistration, TokenStore

logger = logging.getLogger(__name__)


def token_preview(token: str, length: int = 12) -> str:
  """Return a short prefix of a device token that is safe to log."""
  if len(token) <= length:
    return token
  return f"{token[:length]}..."


class LoggingTokenStore:
  """Records registrations in the log without persisting them."""

  async def save(self, registration: TokenRegistration) -> None:
    logger.info(
      "Device token registered token=%s platform=%s user_id=%s app=%s timestamp=%s",
      token_preview(registration.token),
      registration.platform or "unknown",
      registration.user_id or "unknown",
      registration.app_name or "unknown",
      registration.timestamp or "unknown",
    )


class InMemoryTokenStore:
  """Keeps registrations in process memory, keyed by token."""

  def __init__(self) -> None:
    self._registrations: dict[str, TokenRegistration] = {}

  async def save(self, registration: TokenRegistration) -> None:
    # Re-registering a token replaces the previous metadata.
    self._registrations[registration.token] = registration

  def get(self, token: str) -> TokenRegistration | None:
    return self._registrations.get(token)

  def __len__(self) -> int:
    return len(self._registrations)


def build_token_store(kind: str) -> TokenStore:
  """Construct the configured token store."""
  if kind == "memory":
    return InMemoryTokenStore()
  if kind == "log":
    return LoggingTokenStore()
  raise ValueError(f"Unknown token store: {kind}")
