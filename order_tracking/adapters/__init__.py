"""Registry and push transport adapters for the change dispatcher."""

from order_tracking.adapters.base import PushTransport, TokenRegistry
from order_tracking.adapters.fcm import FcmPushTransport
from order_tracking.adapters.memory import FakePushTransport, InMemoryTokenRegistry
from order_tracking.adapters.sqlite import SqliteTokenRegistry

__all__ = [
    "FakePushTransport",
    "FcmPushTransport",
    "InMemoryTokenRegistry",
    "PushTransport",
    "SqliteTokenRegistry",
    "TokenRegistry",
]
