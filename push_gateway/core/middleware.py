import json
import logging
import time
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Receive, Scope, Send

from push_gateway.config import get_settings
from push_gateway.messaging.token_store import token_preview

logger = logging.getLogger("push_gateway.core.middleware")

_SENSITIVE_KEYS = {"authorization", "cookie", "secret", "key", "private_key", "password"}
_TOKEN_KEYS = {"token", "tokens"}


def _redact_sensitive_keys(data: Any) -> Any:
  """Redact secrets and shorten device tokens in a decoded JSON body, recursively."""
  if isinstance(data, dict):
    redacted: dict[str, Any] = {}
    for key, value in data.items():
      lowered = key.lower()
      if lowered in _SENSITIVE_KEYS:
        redacted[key] = "***"
      elif lowered in _TOKEN_KEYS:
        redacted[key] = _redact_token_value(value)
      else:
        redacted[key] = _redact_sensitive_keys(value)
    return redacted
  if isinstance(data, list):
    return [_redact_sensitive_keys(item) for item in data]
  return data


def _redact_token_value(value: Any) -> Any:
  if isinstance(value, str):
    return token_preview(value)
  if isinstance(value, list):
    return [token_preview(item) if isinstance(item, str) else "***" for item in value]
  return "***"


def _normalize_headers(scope: Scope) -> dict[str, str]:
  """Normalize scope headers so downstream logging can check content type safely."""
  return {key.decode("latin-1").lower(): value.decode("latin-1") for key, value in scope.get("headers", [])}


def _build_request_url(scope: Scope) -> str:
  """Build a readable URL path for logging without relying on Request bodies."""
  path = scope.get("path", "")
  query_string = scope.get("query_string", b"")
  if query_string:
    return f"{path}?{query_string.decode('latin-1')}"

  return path


def _is_json_content_type(content_type: str | None) -> bool:
  if not content_type:
    return False
  normalized = content_type.lower()
  return "application/json" in normalized or normalized.endswith("+json")


def _format_body_for_log(body: bytes, content_type: str | None, max_bytes: int) -> str:
  """Format a request/response body for logging with redaction."""
  if not body:
    return "<empty>"

  # Only JSON bodies are logged; they are the only ones that can be redacted.
  if not _is_json_content_type(content_type):
    return f"<non-json body {len(body)} bytes>"

  # Avoid parsing truncated JSON to prevent misleading logs and leaking unredacted tokens.
  if len(body) > max_bytes:
    return f"<json body {len(body)} bytes, over {max_bytes} byte log limit>"

  try:
    parsed = json.loads(body.decode("utf-8"))
  except (UnicodeDecodeError, json.JSONDecodeError):
    return f"<invalid json body {len(body)} bytes>"

  return json.dumps(_redact_sensitive_keys(parsed), ensure_ascii=True)


class RequestLoggingMiddleware:
  """Log request/response details while preserving body streams for downstream handlers."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    settings = get_settings()
    log_http_bodies = settings.log_http_bodies
    log_http_body_bytes = settings.log_http_body_bytes

    # Generate a request id and store it for downstream handlers and exception logging.
    request_id = str(uuid.uuid4())
    scope.setdefault("state", {})["request_id"] = request_id

    start_time = time.time()
    method = scope.get("method", "UNKNOWN")
    url = _build_request_url(scope)
    logger.info("Incoming request request_id=%s %s %s", request_id, method, url)
    headers = _normalize_headers(scope)
    content_type = headers.get("content-type")

    receive_wrapper = receive
    if log_http_bodies:
      # Drain the incoming body so we can log it and replay for downstream handlers.
      body_chunks: list[bytes] = []
      more_body = True
      while more_body:
        message = await receive()
        if message.get("type") != "http.request":
          break

        chunk = message.get("body", b"")
        if chunk:
          body_chunks.append(chunk)

        more_body = message.get("more_body", False)

      request_body = b"".join(body_chunks)
      body_sent = False

      async def receive_wrapper() -> dict[str, Any]:
        nonlocal body_sent
        if body_sent:
          return await receive()

        body_sent = True
        return {"type": "http.request", "body": request_body, "more_body": False}

      logger.info("Request body request_id=%s body=%s", request_id, _format_body_for_log(request_body, content_type, log_http_body_bytes))

    status_code: int | None = None

    async def send_wrapper(message: dict[str, Any]) -> None:
      nonlocal status_code
      if message.get("type") == "http.response.start":
        status_code = message.get("status")
        # Attach a request id to responses to correlate clients with server logs.
        response_headers = MutableHeaders(scope=message)
        if "x-request-id" not in response_headers:
          response_headers["x-request-id"] = request_id

      await send(message)

    await self.app(scope, receive_wrapper, send_wrapper)

    process_time = (time.time() - start_time) * 1000
    logger.info("Response request_id=%s status=%s (took %.2fms)", request_id, status_code or 0, process_time)


class SecurityHeadersMiddleware:
  """Middleware to strip sensitive headers from responses."""

  def __init__(self, app: ASGIApp) -> None:
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    async def send_wrapper(message: dict[str, Any]) -> None:
      if message["type"] == "http.response.start":
        headers = MutableHeaders(scope=message)
        if "x-powered-by" in headers:
          del headers["x-powered-by"]
        if "server" in headers:
          del headers["server"]

      await send(message)

    await self.app(scope, receive, send_wrapper)
