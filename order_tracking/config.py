"""Environment-driven settings for the change dispatcher and its worker."""

import os
from dataclasses import dataclass

from order_tracking.errors import ConfigurationError

RECIPIENT_SCOPES = ("all", "owner")

# Temporal start-to-close timeout of the sending activities. The fan-out
# deadline must end early enough to leave room for registry cleanup, or
# Temporal retries an attempt that already notified devices.
SEND_ACTIVITY_TIMEOUT_SECONDS = 60
CLEANUP_MARGIN_SECONDS = 10


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class DispatcherSettings:
    """Settings for one dispatcher invocation."""

    fcm_server_key: str = ""
    fcm_endpoint: str = "https://fcm.googleapis.com/fcm/send"
    token_db_path: str = "notification_tokens.db"
    icon: str = "/pwa-192x192.png"
    badge: str = "/favicon.ico"
    click_url: str = "/kanban"
    max_in_flight: int = 200
    dispatch_timeout: float = 20.0
    recipient_scope: str = "all"
    temporal_address: str = "localhost:7233"
    task_queue: str = "order-tracking-task-queue"

    @classmethod
    def from_env(cls) -> "DispatcherSettings":
        defaults = cls()
        return cls(
            fcm_server_key=os.environ.get(
                "FCM_SERVER_KEY", os.environ.get("FIREBASE_SERVER_KEY", "")
            ),
            fcm_endpoint=os.environ.get("FCM_ENDPOINT", defaults.fcm_endpoint),
            token_db_path=os.environ.get("TOKEN_DB_PATH", defaults.token_db_path),
            icon=os.environ.get("PUSH_ICON", defaults.icon),
            badge=os.environ.get("PUSH_BADGE", defaults.badge),
            click_url=os.environ.get("PUSH_CLICK_URL", defaults.click_url),
            max_in_flight=_get_int("PUSH_MAX_IN_FLIGHT", defaults.max_in_flight),
            dispatch_timeout=_get_float(
                "DISPATCH_TIMEOUT_SECONDS", defaults.dispatch_timeout
            ),
            recipient_scope=os.environ.get(
                "RECIPIENT_SCOPE", defaults.recipient_scope
            ).lower(),
            temporal_address=os.environ.get(
                "TEMPORAL_ADDRESS", defaults.temporal_address
            ),
            task_queue=os.environ.get("TASK_QUEUE", defaults.task_queue),
        )

    def validate(self) -> None:
        """Raise ConfigurationError if the dispatcher cannot run."""
        if not self.fcm_server_key:
            raise ConfigurationError("FCM_SERVER_KEY not configured")
        if self.max_in_flight < 1:
            raise ConfigurationError("PUSH_MAX_IN_FLIGHT must be at least 1")
        if self.dispatch_timeout <= 0:
            raise ConfigurationError("DISPATCH_TIMEOUT_SECONDS must be positive")
        limit = SEND_ACTIVITY_TIMEOUT_SECONDS - CLEANUP_MARGIN_SECONDS
        if self.dispatch_timeout > limit:
            raise ConfigurationError(
                f"DISPATCH_TIMEOUT_SECONDS must be at most {limit}, "
                f"got {self.dispatch_timeout}"
            )
        if self.recipient_scope not in RECIPIENT_SCOPES:
            raise ConfigurationError(
                f"RECIPIENT_SCOPE must be one of {RECIPIENT_SCOPES}, "
                f"got {self.recipient_scope!r}"
            )
