"""Interfaces for the external collaborators of the change dispatcher."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from order_tracking.shared import NotificationToken, PushMessage, SendResult


class TokenRegistry(ABC):
    """Store of push registrations, unique by token value.

    Implementations raise ``RegistryError`` when the backing store fails.
    """

    @abstractmethod
    async def upsert(
        self,
        token: str,
        user_id: str | None,
        device_info: dict[str, Any] | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        """Insert a registration, or refresh the one with the same token."""
        ...

    @abstractmethod
    async def list_all(self) -> list[NotificationToken]:
        ...

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[NotificationToken]:
        ...

    @abstractmethod
    async def delete_by_tokens(self, tokens: Iterable[str]) -> int:
        """Delete registrations by token value.

        Unknown tokens are ignored, so repeating a delete is harmless.

        Returns:
            Number of registrations actually removed.
        """
        ...


class PushTransport(ABC):
    """Best-effort delivery of one push message to one device."""

    @abstractmethod
    async def send(self, token: str, message: PushMessage) -> SendResult:
        """Send a message and classify the outcome.

        Returns:
            SendResult whose outcome is delivered, transient-failure, or
            permanently-invalid (the registration no longer exists).
        """
        ...
