"""Routes that send notifications to devices and topics."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from push_gateway.api.deps import get_gateway
from push_gateway.api.models import (
  DeliveryOutcomeResponse,
  SendBulkNotificationsRequest,
  SendBulkNotificationsResponse,
  SendNotificationRequest,
  SendNotificationResponse,
  SendTopicNotificationRequest,
  SendTopicNotificationResponse,
)
from push_gateway.messaging.service import NotificationGateway

router = APIRouter()


@router.post("/send-notification", response_model=SendNotificationResponse)
async def send_notification(payload: SendNotificationRequest, gateway: NotificationGateway = Depends(get_gateway)) -> SendNotificationResponse:  # noqa: B008
  """Send a notification to a single device token."""
  receipt = await gateway.send_single(
    token=payload.token,
    title=payload.title,
    body=payload.body,
    data=payload.data,
    image_url=payload.image_url,
    sound=payload.sound,
    badge=payload.badge,
    click_action=payload.click_action,
    deep_link=payload.deep_link,
    web_link=payload.web_link,
  )
  return SendNotificationResponse(message_id=receipt.message_id, sent_at=receipt.sent_at)


@router.post("/send-bulk-notifications", response_model=SendBulkNotificationsResponse)
async def send_bulk_notifications(payload: SendBulkNotificationsRequest, gateway: NotificationGateway = Depends(get_gateway)) -> SendBulkNotificationsResponse:  # noqa: B008
  """Send one notification to many device tokens.

  Individual token failures are returned in `responses`, in request order,
  and do not fail the request.
  """
  outcome = await gateway.send_bulk(tokens=payload.tokens, title=payload.title, body=payload.body, data=payload.data, image_url=payload.image_url, sound=payload.sound)
  responses = [DeliveryOutcomeResponse(success=item.success, message_id=item.message_id, error=item.error) for item in outcome.responses]
  return SendBulkNotificationsResponse(total_count=len(payload.tokens or []), success_count=outcome.success_count, failure_count=outcome.failure_count, responses=responses)


@router.post("/send-topic-notification", response_model=SendTopicNotificationResponse)
async def send_topic_notification(payload: SendTopicNotificationRequest, gateway: NotificationGateway = Depends(get_gateway)) -> SendTopicNotificationResponse:  # noqa: B008
  """Broadcast a notification to every device subscribed to a topic."""
  receipt = await gateway.send_topic(
    topic=payload.topic, title=payload.title, body=payload.body, data=payload.data, image_url=payload.image_url, sound=payload.sound, deep_link=payload.deep_link, web_link=payload.web_link
  )
  return SendTopicNotificationResponse(message_id=receipt.message_id, topic=receipt.topic or "", sent_at=receipt.sent_at)
