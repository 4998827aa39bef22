from __future__ import annotations

from fastapi import APIRouter, Depends

from push_gateway.api.deps import get_gateway
from push_gateway.api.models import ProviderInfoResponse
from push_gateway.messaging.service import NotificationGateway
from push_gateway.utils.clock import utc_now_iso

router = APIRouter()


@router.get("/firebase-info", response_model=ProviderInfoResponse)
async def firebase_info(gateway: NotificationGateway = Depends(get_gateway)) -> ProviderInfoResponse:  # noqa: B008
  """Report the Firebase project and credential the gateway is using."""
  description = gateway.describe_provider()
  return ProviderInfoResponse(project_id=description.project_id, service_account=description.service_account, messaging_permissions=description.messaging_permissions, timestamp=utc_now_iso())
