"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True), override=False)

_TOKEN_STORES = {"log", "memory"}


@dataclass(frozen=True)
class Settings:
  """Typed settings for the push gateway service."""

  environment: str
  port: int
  allowed_origins: tuple[str, ...]
  log_level: str
  log_dir: str | None
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  log_http_bodies: bool
  log_http_body_bytes: int
  firebase_service_account_json: str | None
  firebase_service_account_path: str | None
  firebase_project_id: str | None
  firebase_database_url: str | None
  android_channel_id: str
  android_tag: str
  default_click_action: str
  validate_dry_run: bool
  token_store: str


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    return ("*",)

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("PUSH_GATEWAY_ALLOWED_ORIGINS must include at least one origin.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("PUSH_GATEWAY_ENV", "development").strip().lower()
  port = _positive_int("PORT", "3002")

  log_level = (os.getenv("PUSH_GATEWAY_LOG_LEVEL") or "INFO").strip().upper()
  log_max_bytes = _positive_int("PUSH_GATEWAY_LOG_MAX_BYTES", "5242880")  # 5MB default

  log_backup_count = int(os.getenv("PUSH_GATEWAY_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("PUSH_GATEWAY_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Body logging is opt-in and always size capped.
  log_http_bodies = _parse_bool(os.getenv("PUSH_GATEWAY_LOG_HTTP_BODIES"))
  log_http_body_bytes = _positive_int("PUSH_GATEWAY_LOG_HTTP_BODY_BYTES", "2048")

  token_store = (os.getenv("PUSH_GATEWAY_TOKEN_STORE") or "log").strip().lower()
  if token_store not in _TOKEN_STORES:
    raise ValueError(f"PUSH_GATEWAY_TOKEN_STORE must be one of: {', '.join(sorted(_TOKEN_STORES))}.")

  return Settings(
    environment=environment,
    port=port,
    allowed_origins=_parse_origins(os.getenv("PUSH_GATEWAY_ALLOWED_ORIGINS")),
    log_level=log_level,
    log_dir=_optional_str(os.getenv("PUSH_GATEWAY_LOG_DIR")),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=_parse_bool(os.getenv("PUSH_GATEWAY_LOG_HTTP_4XX")),
    log_http_bodies=log_http_bodies,
    log_http_body_bytes=log_http_body_bytes,
    firebase_service_account_json=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON")),
    firebase_service_account_path=_optional_str(os.getenv("FIREBASE_SERVICE_ACCOUNT_PATH")),
    firebase_project_id=_optional_str(os.getenv("FIREBASE_PROJECT_ID")),
    firebase_database_url=_optional_str(os.getenv("FIREBASE_DATABASE_URL")),
    android_channel_id=_optional_str(os.getenv("PUSH_GATEWAY_ANDROID_CHANNEL_ID")) or "default",
    android_tag=_optional_str(os.getenv("PUSH_GATEWAY_ANDROID_TAG")) or "timeless_notification",
    default_click_action=_optional_str(os.getenv("PUSH_GATEWAY_DEFAULT_CLICK_ACTION")) or "OPEN_APP",
    validate_dry_run=_parse_bool(os.getenv("PUSH_GATEWAY_VALIDATE_DRY_RUN")),
    token_store=token_store,
  )
