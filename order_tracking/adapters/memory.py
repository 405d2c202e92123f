"""In-memory registry and transport for tests and local runs."""

import asyncio
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from order_tracking.adapters.base import PushTransport, TokenRegistry
from order_tracking.errors import RegistryError
from order_tracking.shared import (
    DeliveryOutcome,
    NotificationToken,
    PushMessage,
    SendResult,
)


class InMemoryTokenRegistry(TokenRegistry):
    """Registry held in a dict keyed by token value."""

    def __init__(self, tokens: Iterable[NotificationToken] = ()) -> None:
        self.tokens: dict[str, NotificationToken] = {t.token: t for t in tokens}
        self.fail_listing = False
        self.fail_deleting = False
        self.delete_calls: list[list[str]] = []

    async def upsert(
        self,
        token: str,
        user_id: str | None,
        device_info: dict[str, Any] | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        self.tokens[token] = NotificationToken(
            token=token,
            user_id=user_id,
            device_info=dict(device_info or {}),
            updated_at=updated_at or datetime.now(timezone.utc),
        )

    async def list_all(self) -> list[NotificationToken]:
        if self.fail_listing:
            raise RegistryError("token listing unavailable")
        return list(self.tokens.values())

    async def list_by_user(self, user_id: str) -> list[NotificationToken]:
        return [t for t in await self.list_all() if t.user_id == user_id]

    async def delete_by_tokens(self, tokens: Iterable[str]) -> int:
        values = list(tokens)
        self.delete_calls.append(values)
        if self.fail_deleting:
            raise RegistryError("token deletion unavailable")
        removed = 0
        for token in values:
            if self.tokens.pop(token, None) is not None:
                removed += 1
        return removed


class FakePushTransport(PushTransport):
    """Transport that records sends and answers from a per-token script.

    Tokens not in ``outcomes`` are delivered. A token mapped to an exception
    instance raises it from ``send``.
    """

    def __init__(
        self,
        outcomes: dict[str, DeliveryOutcome | Exception] | None = None,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.outcomes = dict(outcomes or {})
        self.delays = dict(delays or {})
        self.sent: list[tuple[str, PushMessage]] = []

    def configure(self, token: str, outcome: DeliveryOutcome | Exception) -> None:
        self.outcomes[token] = outcome

    async def send(self, token: str, message: PushMessage) -> SendResult:
        delay = self.delays.get(token)
        if delay:
            await asyncio.sleep(delay)
        outcome = self.outcomes.get(token, DeliveryOutcome.DELIVERED)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is DeliveryOutcome.DELIVERED:
            self.sent.append((token, message))
            return SendResult(token, outcome)
        return SendResult(token, outcome, error=outcome.value)
