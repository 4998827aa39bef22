import json
import logging
from typing import Any

import firebase_admin
from firebase_admin import credentials

from push_gateway.config import Settings
from push_gateway.messaging.contracts import ProviderUnavailable
from push_gateway.messaging.provider import FirebaseMessagingProvider

logger = logging.getLogger(__name__)


def _load_credential(settings: Settings) -> tuple[credentials.Base, str | None]:
  """Build the SDK credential from inline JSON, a file path, or application defaults."""
  if settings.firebase_service_account_json:
    service_account: dict[str, Any] = json.loads(settings.firebase_service_account_json)
    return credentials.Certificate(service_account), service_account.get("project_id")

  if settings.firebase_service_account_path:
    cert = credentials.Certificate(settings.firebase_service_account_path)
    return cert, cert.project_id

  if settings.firebase_project_id:
    # Use default credentials (e.g. Google Application Default Credentials)
    return credentials.ApplicationDefault(), None

  raise ValueError("No Firebase credentials configured; set FIREBASE_SERVICE_ACCOUNT_JSON or FIREBASE_SERVICE_ACCOUNT_PATH.")


def initialize_firebase(settings: Settings) -> FirebaseMessagingProvider | ProviderUnavailable:
  """Initializes the Firebase Admin SDK and returns the messaging provider handle."""
  try:
    existing = firebase_admin.get_app()
  except ValueError:
    existing = None

  if existing is not None:
    logger.info("Firebase Admin SDK already initialized.")
    return FirebaseMessagingProvider(existing)

  try:
    cred, credential_project_id = _load_credential(settings)
    # Ensure project ID is explicitly set so messaging targets the right project.
    project_id = settings.firebase_project_id or credential_project_id
    options: dict[str, Any] = {}
    if project_id:
      options["projectId"] = project_id
    if settings.firebase_database_url:
      options["databaseURL"] = settings.firebase_database_url
    app = firebase_admin.initialize_app(cred, options)
  except Exception as e:  # noqa: BLE001
    logger.error("Failed to initialize Firebase Admin SDK: %s", e)
    return ProviderUnavailable(reason=str(e))

  logger.info("Firebase Admin SDK initialized successfully project_id=%s", project_id)
  return FirebaseMessagingProvider(app)
