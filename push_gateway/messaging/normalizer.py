"""Build provider-shaped messages from caller notification requests.

FCM requires the ``data`` block of a message to be a flat string-to-string
mapping, so every custom value goes through :func:`coerce_data_value` before
it is placed on a message. The coercion is lossy for structured values: a
caller that sends ``{"items": [1, 2]}`` receives ``'[1,2]'`` on the device and
must parse it back.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from firebase_admin import messaging

from push_gateway.messaging.contracts import NotificationRequest
from push_gateway.utils.clock import epoch_millis

PROBE_DATA = {"test": "true", "validation": "token-check"}


def coerce_data_value(value: Any) -> str:
  """Return the textual form of a custom-data value."""
  if isinstance(value, str):
    return value

  # bool is checked before int because it subclasses int.
  if isinstance(value, bool):
    return "true" if value else "false"

  if value is None:
    return "null"

  if isinstance(value, int):
    return str(value)

  if isinstance(value, float):
    return _float_text(value)

  if isinstance(value, Mapping | list | tuple):
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)

  return str(value)


def _float_text(value: float) -> str:
  """Render a float the way JavaScript's ``String(number)`` does.

  Fixed notation between 1e-6 and 1e21, otherwise an exponent with an explicit
  sign and no zero padding (``1e+21``, ``1.5e-7``).
  """
  if math.isnan(value):
    return "NaN"
  if math.isinf(value):
    return "Infinity" if value > 0 else "-Infinity"
  if value.is_integer() and abs(value) < 1e21:
    return str(int(value))

  text = repr(value)
  if "e" not in text:
    return text
  if 1e-6 <= abs(value) < 1e21:
    return format(Decimal(text), "f")
  mantissa, exponent = text.split("e")
  return f"{mantissa}e{int(exponent):+d}"


def stringify_data(data: Mapping[Any, Any]) -> dict[str, str]:
  """Coerce every key and value of a custom-data mapping to text."""
  return {str(key): coerce_data_value(value) for key, value in data.items()}


@dataclass(frozen=True)
class MessageDefaults:
  """Platform defaults applied to every normalized message."""

  android_channel_id: str = "default"
  android_tag: str = "timeless_notification"
  click_action: str = "OPEN_APP"


class MessageNormalizer:
  """Translates notification requests into ``firebase_admin.messaging`` messages."""

  def __init__(self, defaults: MessageDefaults | None = None, *, clock: Callable[[], str] = epoch_millis) -> None:
    self._defaults = defaults or MessageDefaults()
    self._clock = clock

  def single(self, request: NotificationRequest) -> messaging.Message:
    """Build the message for one device token."""
    timestamp = self._clock()
    click_action = request.click_action or self._defaults.click_action
    links = {"deepLink": request.deep_link or "", "webLink": request.web_link or ""}

    android = messaging.AndroidConfig(
      notification=messaging.AndroidNotification(sound=request.sound, channel_id=self._defaults.android_channel_id, priority="high", tag=self._defaults.android_tag),
      data=stringify_data({**request.data, **links, "click_action": self._defaults.click_action, "timestamp": timestamp}),
    )
    apns = messaging.APNSConfig(
      payload=messaging.APNSPayload(aps=messaging.Aps(sound=request.sound, badge=request.badge or None, mutable_content=True, category=click_action)),
      fcm_options=messaging.APNSFCMOptions(image=request.image_url) if request.image_url else None,
    )
    return messaging.Message(
      token=request.token,
      notification=self._notification(request),
      data=stringify_data({**request.data, **links, "clickAction": click_action, "timestamp": timestamp}),
      android=android,
      apns=apns,
    )

  def multicast(self, request: NotificationRequest) -> messaging.MulticastMessage:
    """Build one shared message for a list of device tokens."""
    return messaging.MulticastMessage(
      tokens=list(request.tokens or ()),
      notification=self._notification(request),
      data=stringify_data({**request.data, "timestamp": self._clock()}),
      android=self._android_basic(request),
      apns=self._apns_basic(request),
    )

  def topic(self, request: NotificationRequest) -> messaging.Message:
    """Build the message broadcast to a topic."""
    data = {**request.data, "deepLink": request.deep_link or "", "webLink": request.web_link or "", "timestamp": self._clock()}
    return messaging.Message(
      topic=request.topic,
      notification=self._notification(request),
      data=stringify_data(data),
      android=self._android_basic(request),
      apns=self._apns_basic(request),
    )

  def probe(self, token: str) -> messaging.Message:
    """Build the minimal data-only message used to check a token."""
    return messaging.Message(token=token, data=dict(PROBE_DATA), android=messaging.AndroidConfig(priority="high"))

  @staticmethod
  def _notification(request: NotificationRequest) -> messaging.Notification:
    return messaging.Notification(title=request.title, body=request.body, image=request.image_url or None)

  def _android_basic(self, request: NotificationRequest) -> messaging.AndroidConfig:
    return messaging.AndroidConfig(notification=messaging.AndroidNotification(sound=request.sound, channel_id=self._defaults.android_channel_id, priority="high"))

  @staticmethod
  def _apns_basic(request: NotificationRequest) -> messaging.APNSConfig:
    return messaging.APNSConfig(payload=messaging.APNSPayload(aps=messaging.Aps(sound=request.sound, mutable_content=True)))
