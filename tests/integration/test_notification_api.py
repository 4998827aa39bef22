from __future__ import annotations

import re

from fastapi.testclient import TestClient

from push_gateway.main import app
from push_gateway.messaging.contracts import DeliveryOutcome, MulticastOutcome, ProviderError

_ISO_8601 = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def test_send_notification_end_to_end(client, stub_provider):
  response = client.post("/api/send-notification", json={"token": "abc", "title": "Hi", "body": "There"})

  assert response.status_code == 200
  body = response.json()
  assert body["success"] is True
  assert body["messageId"] == "msg-1"
  assert _ISO_8601.match(body["sentAt"])
  assert len(stub_provider.sent) == 1
  assert response.headers["x-request-id"]


def test_send_notification_passes_camel_case_options(client, stub_provider):
  payload = {"token": "abc", "title": "Hi", "body": "There", "imageUrl": "https://cdn.example.com/a.png", "badge": 2, "clickAction": "VIEW", "deepLink": "app://x", "webLink": "https://x", "data": {"n": 1}}

  response = client.post("/api/send-notification", json=payload)

  assert response.status_code == 200
  message, _ = stub_provider.sent[0]
  assert message.notification.image == "https://cdn.example.com/a.png"
  assert message.apns.payload.aps.badge == 2
  assert message.data["clickAction"] == "VIEW"
  assert message.data["n"] == "1"


def test_send_notification_missing_fields_returns_400(client, stub_provider):
  response = client.post("/api/send-notification", json={"token": "abc"})

  assert response.status_code == 400
  assert response.json()["error"] == "Missing required fields: title, body"
  assert stub_provider.call_count == 0


def test_send_notification_wrong_types_return_422(client, stub_provider):
  response = client.post("/api/send-notification", json={"token": "abc", "title": "Hi", "body": "There", "badge": "many"})

  assert response.status_code == 422
  body = response.json()
  assert body["error"] == "Invalid request body"
  assert all("input" not in error for error in body["details"])
  assert stub_provider.call_count == 0


def test_send_notification_provider_failure_returns_500_with_code(client, stub_provider):
  stub_provider.send_error = ProviderError("Requested entity was not found.", code="NOT_FOUND")

  response = client.post("/api/send-notification", json={"token": "abc", "title": "Hi", "body": "There"})

  assert response.status_code == 500
  body = response.json()
  assert body["error"] == "Failed to send notification"
  assert body["details"] == "Requested entity was not found."
  assert body["errorCode"] == "NOT_FOUND"


def test_send_bulk_reports_per_token_outcomes(client, stub_provider):
  stub_provider.multicast_outcome = MulticastOutcome(responses=(DeliveryOutcome(success=True, message_id="m1"), DeliveryOutcome(success=False, error="Requested entity was not found.")))

  response = client.post("/api/send-bulk-notifications", json={"tokens": ["t1", "t2"], "title": "Hi", "body": "There"})

  assert response.status_code == 200
  assert response.json() == {
    "success": True,
    "totalCount": 2,
    "successCount": 1,
    "failureCount": 1,
    "responses": [{"success": True, "messageId": "m1", "error": None}, {"success": False, "messageId": None, "error": "Requested entity was not found."}],
  }


def test_send_bulk_empty_tokens_returns_400(client):
  response = client.post("/api/send-bulk-notifications", json={"tokens": [], "title": "Hi", "body": "There"})

  assert response.status_code == 400
  assert response.json()["error"] == "Missing or invalid tokens array"


def test_send_topic_notification(client, stub_provider):
  response = client.post("/api/send-topic-notification", json={"topic": "news", "title": "Hi", "body": "There"})

  assert response.status_code == 200
  body = response.json()
  assert body["topic"] == "news"
  assert body["messageId"] == "msg-1"
  assert stub_provider.sent[0][0].topic == "news"


def test_validate_token_is_always_200(client, stub_provider):
  ok = client.post("/api/validate-token", json={"token": "abc"})
  stub_provider.send_error = ProviderError("Requested entity was not found.", code="NOT_FOUND")
  bad = client.post("/api/validate-token", json={"token": "abc"})

  assert ok.status_code == 200
  assert ok.json()["valid"] is True
  assert bad.status_code == 200
  assert bad.json()["valid"] is False
  assert bad.json()["error"] == "Requested entity was not found."
  assert _ISO_8601.match(bad.json()["checkedAt"])


def test_validate_token_requires_token(client):
  response = client.post("/api/validate-token", json={})

  assert response.status_code == 400
  assert response.json() == {"error": "Token is required", "requestId": response.headers["x-request-id"]}


def test_register_token_accepts_numeric_timestamp(client, token_store):
  response = client.post("/api/register-token", json={"token": "abcdef", "platform": "android", "userId": "u-1", "appName": "demo", "timestamp": 1767225600000})

  assert response.status_code == 200
  body = response.json()
  assert body["success"] is True
  assert body["message"] == "Token registered successfully"
  assert body["tokenLength"] == 6
  assert token_store.get("abcdef").timestamp == "1767225600000"


def test_subscribe_to_topic(client, stub_provider):
  response = client.post("/api/subscribe-to-topic", json={"tokens": "abc", "topic": "news"})

  assert response.status_code == 200
  body = response.json()
  assert body["topic"] == "news"
  assert body["successCount"] == 1
  assert body["failureCount"] == 0
  assert body["errors"] == []
  assert _ISO_8601.match(body["subscribedAt"])


def test_subscribe_to_topic_missing_topic_returns_400(client):
  response = client.post("/api/subscribe-to-topic", json={"tokens": ["abc"]})

  assert response.status_code == 400
  assert response.json()["error"] == "Missing required fields: topic"


def test_firebase_info(client):
  response = client.get("/api/firebase-info")

  assert response.status_code == 200
  body = response.json()
  assert body["projectId"] == "demo-project"
  assert body["messagingPermissions"] == "Available"


def test_uninitialized_provider_returns_500_except_for_registration(unavailable_client):
  requests = [
    ("/api/send-notification", {"token": "abc", "title": "Hi", "body": "There"}),
    ("/api/send-bulk-notifications", {"tokens": ["abc"], "title": "Hi", "body": "There"}),
    ("/api/send-topic-notification", {"topic": "news", "title": "Hi", "body": "There"}),
    ("/api/validate-token", {"token": "abc"}),
    ("/api/subscribe-to-topic", {"tokens": ["abc"], "topic": "news"}),
  ]
  for path, payload in requests:
    response = unavailable_client.post(path, json=payload)
    assert response.status_code == 500, path
    assert response.json()["error"] == "Firebase not initialized"

  assert unavailable_client.get("/api/firebase-info").status_code == 500
  assert unavailable_client.post("/api/register-token", json={"token": "abc"}).status_code == 200


def test_health_reports_provider_state(monkeypatch, gateway, unavailable_gateway):
  client = TestClient(app)

  monkeypatch.setattr(app.state, "gateway", gateway, raising=False)
  ready = client.get("/health").json()
  monkeypatch.setattr(app.state, "gateway", unavailable_gateway, raising=False)
  not_ready = client.get("/health").json()

  assert ready["status"] == "ok"
  assert ready["providerReady"] is True
  assert not_ready["providerReady"] is False
  assert _ISO_8601.match(ready["timestamp"])


def test_unknown_route_uses_error_shape(client):
  response = client.get("/api/does-not-exist")

  assert response.status_code == 404
  assert response.json()["error"] == "Not Found"


def test_unexpected_errors_do_not_leak_details(monkeypatch, gateway):
  async def _explode(**kwargs):
    raise RuntimeError("secret internals")

  monkeypatch.setattr(gateway, "send_topic", _explode)
  from push_gateway.api.deps import get_gateway

  app.dependency_overrides[get_gateway] = lambda: gateway
  try:
    client = TestClient(app, raise_server_exceptions=False)
    response = client.post("/api/send-topic-notification", json={"topic": "news", "title": "Hi", "body": "There"})
  finally:
    app.dependency_overrides.clear()

  assert response.status_code == 500
  assert response.json()["error"] == "Internal server error"
  assert "secret" not in response.text
