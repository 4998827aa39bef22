"""Shared fixtures: a recording provider stub and gateways built around it."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from firebase_admin import messaging

from push_gateway.api.deps import get_gateway
from push_gateway.main import app
from push_gateway.messaging.contracts import DeliveryOutcome, MulticastOutcome, ProviderDescription, ProviderUnavailable, TopicMembershipOutcome
from push_gateway.messaging.normalizer import MessageNormalizer
from push_gateway.messaging.service import NotificationGateway
from push_gateway.messaging.token_store import InMemoryTokenStore

FIXED_SENT_AT = "2026-01-01T00:00:00.000Z"


class StubProvider:
  """Records every call and answers with canned provider results."""

  def __init__(self) -> None:
    self.message_id = "msg-1"
    self.send_error: Exception | None = None
    self.multicast_outcome: MulticastOutcome | None = None
    self.multicast_error: Exception | None = None
    self.topic_outcome: TopicMembershipOutcome | None = None
    self.sent: list[tuple[messaging.Message, bool]] = []
    self.multicasts: list[messaging.MulticastMessage] = []
    self.subscriptions: list[tuple[list[str], str]] = []

  def send(self, message: messaging.Message, *, dry_run: bool = False) -> str:
    self.sent.append((message, dry_run))
    if self.send_error is not None:
      raise self.send_error
    return self.message_id

  def send_multicast(self, message: messaging.MulticastMessage) -> MulticastOutcome:
    self.multicasts.append(message)
    if self.multicast_error is not None:
      raise self.multicast_error
    if self.multicast_outcome is not None:
      return self.multicast_outcome
    return MulticastOutcome(responses=tuple(DeliveryOutcome(success=True, message_id=f"msg-{index}") for index, _ in enumerate(message.tokens)))

  def subscribe_to_topic(self, tokens: list[str], topic: str) -> TopicMembershipOutcome:
    self.subscriptions.append((tokens, topic))
    if self.topic_outcome is not None:
      return self.topic_outcome
    return TopicMembershipOutcome(success_count=len(tokens), failure_count=0)

  def describe(self) -> ProviderDescription:
    return ProviderDescription(project_id="demo-project", service_account="push@demo-project.iam.gserviceaccount.com", messaging_permissions="Available")

  @property
  def call_count(self) -> int:
    return len(self.sent) + len(self.multicasts) + len(self.subscriptions)


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def stub_provider() -> StubProvider:
  return StubProvider()


@pytest.fixture
def token_store() -> InMemoryTokenStore:
  return InMemoryTokenStore()


@pytest.fixture
def gateway(stub_provider, token_store) -> NotificationGateway:
  normalizer = MessageNormalizer(clock=lambda: "1767225600000")
  return NotificationGateway(provider=stub_provider, token_store=token_store, normalizer=normalizer, clock=lambda: FIXED_SENT_AT)


@pytest.fixture
def unavailable_gateway(token_store) -> NotificationGateway:
  return NotificationGateway(provider=ProviderUnavailable(reason="No Firebase credentials configured"), token_store=token_store, clock=lambda: FIXED_SENT_AT)


@pytest.fixture
def client(gateway) -> Iterator[TestClient]:
  app.dependency_overrides[get_gateway] = lambda: gateway
  try:
    yield TestClient(app)
  finally:
    app.dependency_overrides.clear()


@pytest.fixture
def unavailable_client(unavailable_gateway) -> Iterator[TestClient]:
  app.dependency_overrides[get_gateway] = lambda: unavailable_gateway
  try:
    yield TestClient(app)
  finally:
    app.dependency_overrides.clear()
