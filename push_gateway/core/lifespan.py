import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from push_gateway.config import Settings, get_settings
from push_gateway.core.firebase import initialize_firebase
from push_gateway.core.logging import initialize_logging
from push_gateway.messaging.normalizer import MessageDefaults, MessageNormalizer
from push_gateway.messaging.service import NotificationGateway
from push_gateway.messaging.token_store import build_token_store


def build_gateway(settings: Settings) -> NotificationGateway:
  """Create the provider client once and wire it into the gateway service."""
  provider = initialize_firebase(settings)
  normalizer = MessageNormalizer(MessageDefaults(android_channel_id=settings.android_channel_id, android_tag=settings.android_tag, click_action=settings.default_click_action))
  return NotificationGateway(provider=provider, token_store=build_token_store(settings.token_store), normalizer=normalizer, validate_dry_run=settings.validate_dry_run)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and the shared gateway before serving requests."""
  settings = get_settings()
  initialize_logging(settings)
  logger = logging.getLogger("push_gateway.core.lifespan")

  gateway = build_gateway(settings)
  app.state.gateway = gateway
  if gateway.provider_ready:
    logger.info("Push gateway ready environment=%s port=%s", settings.environment, settings.port)
  else:
    # Keep serving so /health and token registration stay reachable.
    logger.warning("Firebase not initialized; send operations will fail until credentials are configured.")

  yield
