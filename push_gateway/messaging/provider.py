"""Firebase Cloud Messaging provider backed by ``firebase_admin``."""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import exceptions, messaging
from google.auth import exceptions as auth_exceptions

from push_gateway.messaging.contracts import DeliveryOutcome, MulticastOutcome, ProviderDescription, ProviderError, TopicMembershipError, TopicMembershipOutcome, ValidationError

logger = logging.getLogger(__name__)

CREDENTIAL_ERROR_CODE = "credential-error"


class FirebaseMessagingProvider:
  """Thin adapter over the ``firebase_admin.messaging`` module for one app."""

  def __init__(self, app: firebase_admin.App) -> None:
    self._app = app

  @property
  def project_id(self) -> str | None:
    return self._app.project_id

  def send(self, message: messaging.Message, *, dry_run: bool = False) -> str:
    """Send a single message and return its provider id."""
    try:
      return messaging.send(message, dry_run=dry_run, app=self._app)
    except (exceptions.FirebaseError, auth_exceptions.GoogleAuthError) as exc:
      raise _provider_error(exc) from exc
    except (ValueError, TypeError) as exc:
      # The SDK rejects malformed message fields before any network call.
      raise ValidationError("Invalid message", details=str(exc)) from exc

  def send_multicast(self, message: messaging.MulticastMessage) -> MulticastOutcome:
    """Send one message to every token and keep the per-token outcomes in input order."""
    try:
      batch = messaging.send_each_for_multicast(message, app=self._app)
    except (exceptions.FirebaseError, auth_exceptions.GoogleAuthError) as exc:
      raise _provider_error(exc) from exc
    except (ValueError, TypeError) as exc:
      raise ValidationError("Invalid message", details=str(exc)) from exc

    outcomes = tuple(DeliveryOutcome(success=response.success, message_id=response.message_id, error=str(response.exception) if response.exception else None) for response in batch.responses)
    return MulticastOutcome(responses=outcomes)

  def subscribe_to_topic(self, tokens: list[str], topic: str) -> TopicMembershipOutcome:
    """Subscribe device tokens to a topic."""
    try:
      response = messaging.subscribe_to_topic(tokens, topic, app=self._app)
    except (exceptions.FirebaseError, auth_exceptions.GoogleAuthError) as exc:
      raise _provider_error(exc) from exc
    except (ValueError, TypeError) as exc:
      raise ValidationError("Invalid topic subscription", details=str(exc)) from exc

    errors = tuple(TopicMembershipError(index=error.index, reason=error.reason) for error in response.errors)
    return TopicMembershipOutcome(success_count=response.success_count, failure_count=response.failure_count, errors=errors)

  def describe(self) -> ProviderDescription:
    """Report project and credential details for diagnostics.

    Messaging only needs a project id on the app, so this is checked locally
    without a network call.
    """
    service_account = getattr(self._app.credential, "service_account_email", None)
    permissions = "Available"
    if not self.project_id:
      permissions = "Error: Project ID is required to access Cloud Messaging service."
      logger.warning("Messaging service unavailable: %s", permissions)
    return ProviderDescription(project_id=self.project_id, service_account=service_account, messaging_permissions=permissions)


def _provider_error(exc: exceptions.FirebaseError | auth_exceptions.GoogleAuthError) -> ProviderError:
  """Keep the provider's error code and message verbatim.

  Credential failures (revoked keys, an unreachable token endpoint) come from
  ``google.auth`` and carry no Firebase code.
  """
  if isinstance(exc, auth_exceptions.GoogleAuthError):
    return ProviderError(str(exc), code=CREDENTIAL_ERROR_CODE)
  return ProviderError(str(exc), code=exc.code)
