from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
  """Base model that reads and writes camelCase JSON keys."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests. Required fields are optional at the schema level so the gateway can
# report every missing field in one message.


class SendNotificationRequest(CamelModel):
  """Payload for a notification to one device token."""

  token: StrictStr | None = None
  title: StrictStr | None = None
  body: StrictStr | None = None
  data: dict[str, Any] | None = None
  image_url: StrictStr | None = None
  sound: StrictStr | None = None
  badge: StrictInt | None = Field(default=None, ge=0)
  click_action: StrictStr | None = None
  deep_link: StrictStr | None = None
  web_link: StrictStr | None = None


class SendBulkNotificationsRequest(CamelModel):
  """Payload for one notification fanned out to many device tokens."""

  tokens: list[StrictStr] | None = None
  title: StrictStr | None = None
  body: StrictStr | None = None
  data: dict[str, Any] | None = None
  image_url: StrictStr | None = None
  sound: StrictStr | None = None


class SendTopicNotificationRequest(CamelModel):
  """Payload for a notification broadcast to a topic."""

  topic: StrictStr | None = None
  title: StrictStr | None = None
  body: StrictStr | None = None
  data: dict[str, Any] | None = None
  image_url: StrictStr | None = None
  sound: StrictStr | None = None
  deep_link: StrictStr | None = None
  web_link: StrictStr | None = None


class ValidateTokenRequest(CamelModel):
  token: StrictStr | None = None


class RegisterTokenRequest(CamelModel):
  """Device token registration reported by a client app."""

  token: StrictStr | None = None
  platform: StrictStr | None = None
  user_id: StrictStr | None = None
  app_name: StrictStr | None = None
  # Apps send either an ISO string or epoch milliseconds.
  timestamp: StrictStr | StrictInt | None = None


class SubscribeToTopicRequest(CamelModel):
  tokens: StrictStr | list[StrictStr] | None = None
  topic: StrictStr | None = None


# Responses


class HealthResponse(CamelModel):
  status: str
  provider_ready: bool
  timestamp: str


class ProviderInfoResponse(CamelModel):
  success: bool = True
  project_id: str | None
  service_account: str | None
  messaging_permissions: str
  timestamp: str


class SendNotificationResponse(CamelModel):
  success: bool = True
  message_id: str
  sent_at: str


class DeliveryOutcomeResponse(CamelModel):
  success: bool
  message_id: str | None = None
  error: str | None = None


class SendBulkNotificationsResponse(CamelModel):
  success: bool = True
  total_count: int
  success_count: int
  failure_count: int
  responses: list[DeliveryOutcomeResponse]


class SendTopicNotificationResponse(CamelModel):
  success: bool = True
  message_id: str
  topic: str
  sent_at: str


class ValidateTokenResponse(CamelModel):
  valid: bool
  token: str
  checked_at: str
  error: str | None = None


class RegisterTokenResponse(CamelModel):
  success: bool = True
  message: str
  token_length: int
  registered_at: str


class TopicMembershipErrorResponse(CamelModel):
  index: int
  reason: str


class SubscribeToTopicResponse(CamelModel):
  success: bool = True
  topic: str
  success_count: int
  failure_count: int
  errors: list[TopicMembershipErrorResponse] = []
  subscribed_at: str
