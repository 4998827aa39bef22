"""HTTP gateway that forwards push notification requests to Firebase Cloud Messaging."""

__version__ = "0.1.0"
