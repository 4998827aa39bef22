from __future__ import annotations

import json

from push_gateway.core.middleware import _format_body_for_log, _redact_sensitive_keys
from push_gateway.messaging.token_store import token_preview


def test_redact_shortens_tokens_and_hides_secrets():
  body = {"token": "fcoCWMX-TEOf5n9__Btgaj:APA91bFM8srX7", "tokens": ["short", "fcoCWMX-TEOf5n9__Btgaj:APA91b"], "private_key": "-----BEGIN", "data": {"authorization": "Bearer x", "orderId": 7}}

  redacted = _redact_sensitive_keys(body)

  assert redacted["token"] == "fcoCWMX-TEOf..."
  assert redacted["tokens"] == ["short", "fcoCWMX-TEOf..."]
  assert redacted["private_key"] == "***"
  assert redacted["data"] == {"authorization": "***", "orderId": 7}


def test_token_preview_keeps_short_tokens():
  assert token_preview("abc") == "abc"


def test_format_body_for_log_redacts_json():
  body = json.dumps({"token": "fcoCWMX-TEOf5n9__Btgaj:APA91bFM8srX7", "title": "Hi"}).encode()

  formatted = _format_body_for_log(body, "application/json", 2048)

  assert json.loads(formatted) == {"token": "fcoCWMX-TEOf...", "title": "Hi"}


def test_format_body_for_log_skips_oversized_and_non_json_bodies():
  assert _format_body_for_log(b"", "application/json", 10) == "<empty>"
  assert _format_body_for_log(b"x" * 20, "application/json", 10) == "<json body 20 bytes, over 10 byte log limit>"
  assert _format_body_for_log(b"token=abc", "application/x-www-form-urlencoded", 10) == "<non-json body 9 bytes>"
  assert _format_body_for_log(b"{nope", "application/json", 10) == "<invalid json body 5 bytes>"
