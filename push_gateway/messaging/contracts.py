"""Contracts for push notification delivery through the messaging provider."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from firebase_admin import messaging


@dataclass(frozen=True)
class NotificationRequest:
  """Caller intent for a send operation before normalization."""

  title: str
  body: str
  token: str | None = None
  tokens: tuple[str, ...] | None = None
  topic: str | None = None
  image_url: str | None = None
  sound: str = "default"
  badge: int | None = None
  click_action: str | None = None
  deep_link: str | None = None
  web_link: str | None = None
  data: dict[str, Any] = field(default_factory=dict)

  def __post_init__(self) -> None:
    targets = [target for target in (self.token, self.tokens, self.topic) if target is not None]
    if len(targets) != 1:
      raise ValueError("NotificationRequest needs exactly one of token, tokens or topic.")


@dataclass(frozen=True)
class SendReceipt:
  """Provider acknowledgement for a single-target send."""

  message_id: str
  sent_at: str
  topic: str | None = None


@dataclass(frozen=True)
class DeliveryOutcome:
  """Per-token result of a multicast send."""

  success: bool
  message_id: str | None = None
  error: str | None = None


@dataclass(frozen=True)
class MulticastOutcome:
  """Ordered per-token results of a multicast send."""

  responses: tuple[DeliveryOutcome, ...]

  @property
  def success_count(self) -> int:
    return sum(1 for outcome in self.responses if outcome.success)

  @property
  def failure_count(self) -> int:
    return len(self.responses) - self.success_count


@dataclass(frozen=True)
class TopicMembershipError:
  """A token the provider refused to add to a topic."""

  index: int
  reason: str


@dataclass(frozen=True)
class TopicMembershipOutcome:
  """Result of a topic subscription call."""

  success_count: int
  failure_count: int
  errors: tuple[TopicMembershipError, ...] = ()


@dataclass(frozen=True)
class TokenCheck:
  """Result of a token liveness probe."""

  valid: bool
  token: str
  checked_at: str
  error: str | None = None


@dataclass(frozen=True)
class TokenRegistration:
  """Device token details reported by a client app."""

  token: str
  platform: str | None = None
  user_id: str | None = None
  app_name: str | None = None
  timestamp: str | None = None


@dataclass(frozen=True)
class ProviderDescription:
  """Diagnostic details about the configured provider client."""

  project_id: str | None
  service_account: str | None
  messaging_permissions: str


@dataclass(frozen=True)
class ProviderUnavailable:
  """Marks a provider client that failed to initialize at startup."""

  reason: str


class GatewayError(Exception):
  """Base class for errors surfaced to API callers."""

  status_code = 500

  def __init__(self, error: str, *, details: str | None = None) -> None:
    super().__init__(error if details is None else f"{error}: {details}")
    self.error = error
    self.details = details


class ValidationError(GatewayError):
  """Raised when required request fields are missing or malformed."""

  status_code = 400

  def __init__(self, error: str, *, details: str | None = None, missing: Sequence[str] = ()) -> None:
    super().__init__(error, details=details)
    self.missing = tuple(missing)

  @classmethod
  def missing_fields(cls, names: Sequence[str]) -> ValidationError:
    return cls(f"Missing required fields: {', '.join(names)}", missing=names)


class NotInitializedError(GatewayError):
  """Raised when the provider client is not available."""

  def __init__(self, reason: str | None = None) -> None:
    super().__init__("Firebase not initialized", details=reason or "Please configure Firebase service account")


class DeliveryError(GatewayError):
  """Raised when the provider rejects or fails to deliver a message."""

  def __init__(self, error: str, *, details: str | None = None, code: str | None = None) -> None:
    super().__init__(error, details=details)
    self.code = code


class ProviderError(Exception):
  """Raised by a provider adapter when an SDK call fails."""

  def __init__(self, message: str, *, code: str | None = None) -> None:
    super().__init__(message)
    self.message = message
    self.code = code


class MessagingProvider(Protocol):
  """Delivery contract for the push messaging provider."""

  def send(self, message: messaging.Message, *, dry_run: bool = False) -> str:
    """Send one message and return the provider message id."""

  def send_multicast(self, message: messaging.MulticastMessage) -> MulticastOutcome:
    """Send one message to many tokens and return per-token outcomes in order."""

  def subscribe_to_topic(self, tokens: list[str], topic: str) -> TopicMembershipOutcome:
    """Subscribe tokens to a topic."""

  def describe(self) -> ProviderDescription:
    """Return diagnostic details about the provider client."""


class TokenStore(Protocol):
  """Storage contract for device token registrations."""

  async def save(self, registration: TokenRegistration) -> None:
    """Persist or replace a registration keyed by token."""
