from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from push_gateway import __version__
from push_gateway.api.models import HealthResponse
from push_gateway.api.routes import notifications, provider, tokens
from push_gateway.config import get_settings
from push_gateway.core.exceptions import gateway_exception_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from push_gateway.core.lifespan import lifespan
from push_gateway.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from push_gateway.messaging.contracts import GatewayError
from push_gateway.utils.clock import utc_now_iso

settings = get_settings()

app = FastAPI(title="Push Gateway", version=__version__, lifespan=lifespan)

# Credentials only make sense with explicit origins.
app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials="*" not in settings.allowed_origins, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(GatewayError, gateway_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", response_model=HealthResponse, tags=["misc"])
async def health_check(request: Request) -> HealthResponse:
  """Report liveness and whether the Firebase client is ready."""
  gateway = getattr(request.app.state, "gateway", None)
  provider_ready = gateway is not None and gateway.provider_ready
  return HealthResponse(status="ok", provider_ready=provider_ready, timestamp=utc_now_iso())


app.include_router(notifications.router, prefix="/api", tags=["notifications"])
app.include_router(tokens.router, prefix="/api", tags=["tokens"])
app.include_router(provider.router, prefix="/api", tags=["provider"])
