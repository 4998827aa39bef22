"""Routes for device token checks, registration and topic membership."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from push_gateway.api.deps import get_gateway
from push_gateway.api.models import (
  RegisterTokenRequest,
  RegisterTokenResponse,
  SubscribeToTopicRequest,
  SubscribeToTopicResponse,
  TopicMembershipErrorResponse,
  ValidateTokenRequest,
  ValidateTokenResponse,
)
from push_gateway.messaging.service import NotificationGateway
from push_gateway.utils.clock import utc_now_iso

router = APIRouter()


@router.post("/validate-token", response_model=ValidateTokenResponse)
async def validate_token(payload: ValidateTokenRequest, gateway: NotificationGateway = Depends(get_gateway)) -> ValidateTokenResponse:  # noqa: B008
  """Check a token by sending it a minimal data message.

  Always answers 200 once the token is present; `valid` is false when the
  provider rejects the probe.
  """
  check = await gateway.validate_token(token=payload.token)
  return ValidateTokenResponse(valid=check.valid, token=check.token, checked_at=check.checked_at, error=check.error)


@router.post("/register-token", response_model=RegisterTokenResponse)
async def register_token(payload: RegisterTokenRequest, gateway: NotificationGateway = Depends(get_gateway)) -> RegisterTokenResponse:  # noqa: B008
  timestamp = str(payload.timestamp) if payload.timestamp is not None else None
  registered_at = await gateway.register_token(token=payload.token, platform=payload.platform, user_id=payload.user_id, app_name=payload.app_name, timestamp=timestamp)
  return RegisterTokenResponse(message="Token registered successfully", token_length=len(payload.token or ""), registered_at=registered_at)


@router.post("/subscribe-to-topic", response_model=SubscribeToTopicResponse)
async def subscribe_to_topic(payload: SubscribeToTopicRequest, gateway: NotificationGateway = Depends(get_gateway)) -> SubscribeToTopicResponse:  # noqa: B008
  outcome = await gateway.subscribe_to_topic(tokens=payload.tokens, topic=payload.topic)
  errors = [TopicMembershipErrorResponse(index=error.index, reason=error.reason) for error in outcome.errors]
  return SubscribeToTopicResponse(topic=payload.topic or "", success_count=outcome.success_count, failure_count=outcome.failure_count, errors=errors, subscribed_at=utc_now_iso())
