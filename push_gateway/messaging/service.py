"""Notification gateway operations."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from starlette.concurrency import run_in_threadpool

from push_gateway.messaging.contracts import (
  DeliveryError,
  MessagingProvider,
  MulticastOutcome,
  NotificationRequest,
  NotInitializedError,
  ProviderDescription,
  ProviderError,
  ProviderUnavailable,
  SendReceipt,
  TokenCheck,
  TokenRegistration,
  TokenStore,
  TopicMembershipOutcome,
  ValidationError,
)
from push_gateway.messaging.normalizer import MessageNormalizer
from push_gateway.messaging.token_store import token_preview
from push_gateway.utils.clock import utc_now_iso

logger = logging.getLogger(__name__)

MAX_MULTICAST_TOKENS = 500
MAX_TOPIC_MEMBERSHIP_TOKENS = 1000


def _require(fields: Mapping[str, Any]) -> None:
  """Raise when any named field is absent or empty."""
  missing = [name for name, value in fields.items() if value is None or value == ""]
  if missing:
    raise ValidationError.missing_fields(missing)


class NotificationGateway:
  """Validates requests, normalizes them and makes exactly one provider call."""

  def __init__(
    self,
    *,
    provider: MessagingProvider | ProviderUnavailable,
    token_store: TokenStore,
    normalizer: MessageNormalizer | None = None,
    validate_dry_run: bool = False,
    clock: Callable[[], str] = utc_now_iso,
  ) -> None:
    self._provider = provider
    self._token_store = token_store
    self._normalizer = normalizer or MessageNormalizer()
    self._validate_dry_run = validate_dry_run
    self._clock = clock

  @property
  def provider_ready(self) -> bool:
    return not isinstance(self._provider, ProviderUnavailable)

  def _require_provider(self) -> MessagingProvider:
    if isinstance(self._provider, ProviderUnavailable):
      raise NotInitializedError(self._provider.reason)
    return self._provider

  async def send_single(
    self,
    *,
    token: str | None,
    title: str | None,
    body: str | None,
    data: Mapping[str, Any] | None = None,
    image_url: str | None = None,
    sound: str | None = None,
    badge: int | None = None,
    click_action: str | None = None,
    deep_link: str | None = None,
    web_link: str | None = None,
  ) -> SendReceipt:
    """Send one notification to one device token."""
    provider = self._require_provider()
    _require({"token": token, "title": title, "body": body})

    request = NotificationRequest(
      token=token, title=title, body=body, data=dict(data or {}), image_url=image_url, sound=sound or "default", badge=badge, click_action=click_action, deep_link=deep_link, web_link=web_link
    )
    message = self._normalizer.single(request)
    logger.info("Sending notification token=%s", token_preview(token))

    try:
      message_id = await run_in_threadpool(provider.send, message)
    except ProviderError as exc:
      logger.error("Notification delivery failed code=%s error=%s", exc.code, exc.message)
      raise DeliveryError("Failed to send notification", details=exc.message, code=exc.code) from exc

    logger.info("Notification sent message_id=%s", message_id)
    return SendReceipt(message_id=message_id, sent_at=self._clock())

  async def send_bulk(
    self,
    *,
    tokens: list[str] | None,
    title: str | None,
    body: str | None,
    data: Mapping[str, Any] | None = None,
    image_url: str | None = None,
    sound: str | None = None,
  ) -> MulticastOutcome:
    """Send one notification to many tokens; per-token failures are reported, not raised."""
    provider = self._require_provider()
    if not tokens:
      raise ValidationError("Missing or invalid tokens array")

    if len(tokens) > MAX_MULTICAST_TOKENS:
      raise ValidationError("Too many tokens", details=f"At most {MAX_MULTICAST_TOKENS} tokens are allowed per request")

    _require({"title": title, "body": body})

    request = NotificationRequest(tokens=tuple(tokens), title=title, body=body, data=dict(data or {}), image_url=image_url, sound=sound or "default")
    message = self._normalizer.multicast(request)

    try:
      outcome = await run_in_threadpool(provider.send_multicast, message)
    except ProviderError as exc:
      logger.error("Bulk notification delivery failed code=%s error=%s", exc.code, exc.message)
      raise DeliveryError("Failed to send bulk notifications", details=exc.message, code=exc.code) from exc

    logger.info("Bulk notifications sent: %s/%s", outcome.success_count, len(tokens))
    return outcome

  async def send_topic(
    self,
    *,
    topic: str | None,
    title: str | None,
    body: str | None,
    data: Mapping[str, Any] | None = None,
    image_url: str | None = None,
    sound: str | None = None,
    deep_link: str | None = None,
    web_link: str | None = None,
  ) -> SendReceipt:
    """Broadcast one notification to every subscriber of a topic."""
    provider = self._require_provider()
    _require({"topic": topic, "title": title, "body": body})

    request = NotificationRequest(topic=topic, title=title, body=body, data=dict(data or {}), image_url=image_url, sound=sound or "default", deep_link=deep_link, web_link=web_link)
    message = self._normalizer.topic(request)

    try:
      message_id = await run_in_threadpool(provider.send, message)
    except ProviderError as exc:
      logger.error("Topic notification delivery failed topic=%s code=%s error=%s", topic, exc.code, exc.message)
      raise DeliveryError("Failed to send topic notification", details=exc.message, code=exc.code) from exc

    logger.info("Topic notification sent topic=%s message_id=%s", topic, message_id)
    return SendReceipt(message_id=message_id, sent_at=self._clock(), topic=topic)

  async def validate_token(self, *, token: str | None) -> TokenCheck:
    """Probe a token by sending a minimal data message; provider failures mean invalid.

    Unless dry-run validation is configured, the probe is a real message and
    reaches the device.
    """
    provider = self._require_provider()
    if not token:
      raise ValidationError("Token is required")

    message = self._normalizer.probe(token)
    try:
      await run_in_threadpool(provider.send, message, dry_run=self._validate_dry_run)
    except (ProviderError, ValidationError) as exc:
      logger.warning("Token validation failed token=%s error=%s", token_preview(token), exc)
      return TokenCheck(valid=False, token=token, checked_at=self._clock(), error=str(exc))

    return TokenCheck(valid=True, token=token, checked_at=self._clock())

  async def register_token(
    self,
    *,
    token: str | None,
    platform: str | None = None,
    user_id: str | None = None,
    app_name: str | None = None,
    timestamp: str | None = None,
  ) -> str:
    """Hand a device token to the token store and return the registration time."""
    if not token:
      raise ValidationError("Token is required")

    await self._token_store.save(TokenRegistration(token=token, platform=platform, user_id=user_id, app_name=app_name, timestamp=timestamp or self._clock()))
    return self._clock()

  async def subscribe_to_topic(self, *, tokens: str | list[str] | None, topic: str | None) -> TopicMembershipOutcome:
    """Subscribe one or many tokens to a topic."""
    provider = self._require_provider()
    _require({"tokens": tokens or None, "topic": topic})

    token_list = [tokens] if isinstance(tokens, str) else list(tokens)
    if len(token_list) > MAX_TOPIC_MEMBERSHIP_TOKENS:
      raise ValidationError("Too many tokens", details=f"At most {MAX_TOPIC_MEMBERSHIP_TOKENS} tokens are allowed per request")

    try:
      outcome = await run_in_threadpool(provider.subscribe_to_topic, token_list, topic)
    except ProviderError as exc:
      logger.error("Topic subscription failed topic=%s code=%s error=%s", topic, exc.code, exc.message)
      raise DeliveryError("Failed to subscribe to topic", details=exc.message, code=exc.code) from exc

    logger.info("Subscribed %s tokens to topic: %s", outcome.success_count, topic)
    return outcome

  def describe_provider(self) -> ProviderDescription:
    """Return provider diagnostics; requires an initialized provider."""
    return self._require_provider().describe()
