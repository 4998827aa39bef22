from . import notifications, provider, tokens

__all__ = ["notifications", "provider", "tokens"]
