"""Push transport for Firebase Cloud Messaging over HTTP."""

import logging
from types import TracebackType
from typing import Any

import httpx

from order_tracking.adapters.base import PushTransport
from order_tracking.shared import DeliveryOutcome, PushMessage, SendResult

logger = logging.getLogger(__name__)

# Error codes meaning the registration is gone for good.
PERMANENT_ERRORS = frozenset(
    {"InvalidRegistration", "NotRegistered", "MissingRegistration", "UNREGISTERED"}
)

WEBPUSH_TTL_SECONDS = 86400


def _error_code(body: Any) -> str | None:
    """Pull an error code out of an FCM response body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        status = error.get("status")
        if isinstance(status, str):
            return status
    results = body.get("results")
    if isinstance(results, list) and results and isinstance(results[0], dict):
        nested = results[0].get("error")
        if isinstance(nested, str):
            return nested
    return None


def build_payload(token: str, message: PushMessage) -> dict[str, Any]:
    notification = {
        "title": message.title,
        "body": message.body,
        "icon": message.icon,
        "badge": message.badge,
    }
    return {
        "to": token,
        "notification": notification,
        "data": dict(message.data),
        "webpush": {
            "headers": {"TTL": str(WEBPUSH_TTL_SECONDS)},
            "notification": dict(notification),
        },
    }


class FcmPushTransport(PushTransport):
    """Sends one FCM request per recipient with a shared HTTP client."""

    def __init__(
        self,
        server_key: str,
        endpoint: str = "https://fcm.googleapis.com/fcm/send",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._endpoint = endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": f"key={server_key}",
            "Content-Type": "application/json",
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "FcmPushTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def send(self, token: str, message: PushMessage) -> SendResult:
        try:
            response = await self._client.post(
                self._endpoint,
                json=build_payload(token, message),
                headers=self._headers,
            )
        except httpx.HTTPError as err:
            return SendResult(token, DeliveryOutcome.TRANSIENT_FAILURE, repr(err))

        try:
            body = response.json()
        except ValueError:
            body = None
        code = _error_code(body)

        if code in PERMANENT_ERRORS or response.status_code == 404:
            return SendResult(
                token,
                DeliveryOutcome.PERMANENTLY_INVALID,
                code or f"HTTP {response.status_code}",
            )
        if not response.is_success or code is not None:
            return SendResult(
                token,
                DeliveryOutcome.TRANSIENT_FAILURE,
                code or f"HTTP {response.status_code}",
            )
        if isinstance(body, dict) and body.get("success") == 0:
            return SendResult(token, DeliveryOutcome.TRANSIENT_FAILURE, "not accepted")
        return SendResult(token, DeliveryOutcome.DELIVERED)
