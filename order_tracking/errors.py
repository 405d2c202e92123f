"""Exceptions raised by the order tracking core."""


class OrderTrackingError(Exception):
    """Base class for order tracking failures."""


class ConfigurationError(OrderTrackingError):
    """Required credentials or settings are missing or invalid."""


class MalformedTriggerError(OrderTrackingError):
    """A change notification could not be parsed."""


class RegistryError(OrderTrackingError):
    """The notification token registry failed to list, store, or delete tokens."""
