"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from push_gateway.messaging.contracts import NotInitializedError
from push_gateway.messaging.service import NotificationGateway


def get_gateway(request: Request) -> NotificationGateway:
  """Return the gateway built at startup."""
  gateway = getattr(request.app.state, "gateway", None)
  if gateway is None:
    raise NotInitializedError("Gateway has not finished starting up")
  return gateway
