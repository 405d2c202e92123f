"""Change dispatcher: turn one order mutation into push notifications.

One call to :meth:`ChangeDispatcher.dispatch` handles one mutation:

1. classify which tracked field became set (at most one event),
2. resolve recipient tokens from the registry,
3. send to every recipient concurrently, each failing on its own,
4. delete tokens the transport reported as permanently invalid.

:meth:`ChangeDispatcher.send_to_user` runs steps 3 and 4 for a caller-supplied
message addressed to one user's devices.

Cleanup only runs on a complete set of outcomes. If the deadline expires,
unfinished sends are cancelled and no token is deleted.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from order_tracking.adapters.base import PushTransport, TokenRegistry
from order_tracking.events import classify_transition
from order_tracking.errors import RegistryError
from order_tracking.shared import (
    ChangeNotification,
    ChangeType,
    DeliveryOutcome,
    DispatchResult,
    NotificationToken,
    Order,
    PushMessage,
    SendResult,
    StageTransitionEvent,
)

logger = logging.getLogger(__name__)


def mask(token: str) -> str:
    """Shorten a token for logs."""
    return token[:20]


def _unique(tokens: list[NotificationToken]) -> list[NotificationToken]:
    return list({t.token: t for t in tokens}.values())


class ChangeDispatcher:
    """Dispatches stage transition notifications for order mutations.

    Args:
        registry: Where recipient tokens are listed and pruned.
        transport: Push transport used for each recipient.
        icon: Icon reference included in every message.
        badge: Badge reference included in every message.
        click_url: Deep link the client opens from the notification.
        max_in_flight: Upper bound on concurrent sends.
        timeout: Seconds allowed for the whole fan-out.
        recipient_scope: ``"all"`` to broadcast to every registered device,
            ``"owner"`` to notify only the order owner's devices.
    """

    def __init__(
        self,
        registry: TokenRegistry,
        transport: PushTransport,
        *,
        icon: str = "/pwa-192x192.png",
        badge: str = "/favicon.ico",
        click_url: str = "/kanban",
        max_in_flight: int = 200,
        timeout: float = 20.0,
        recipient_scope: str = "all",
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.icon = icon
        self.badge = badge
        self.click_url = click_url
        self.max_in_flight = max_in_flight
        self.timeout = timeout
        self.recipient_scope = recipient_scope

    async def dispatch(self, change: ChangeNotification) -> DispatchResult:
        """Handle one order mutation.

        Raises:
            RegistryError: If recipients cannot be listed. Nothing has been
                sent at that point, so the invocation can safely be retried.
        """
        before = None if change.type is ChangeType.INSERT else change.before
        event = classify_transition(before, change.after)
        if event is None:
            logger.info(
                "No relevant changes for order %s, skipping notification",
                change.after.id,
            )
            return DispatchResult()

        result = DispatchResult(notified=True, title=event.title, body=event.body)
        logger.info("Sending notification: %s", result.message)

        recipients = await self.resolve_recipients(change.after)
        await self._deliver(recipients, self.build_message(event), result)
        return result

    async def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        *,
        icon: str | None = None,
        badge: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> DispatchResult:
        """Send a caller-supplied message to every device of one user.

        Icon and badge default to the dispatcher's references. Data values
        are sent as strings.

        Raises:
            RegistryError: If the user's tokens cannot be listed.
        """
        message = PushMessage(
            title=title,
            body=body,
            icon=icon or self.icon,
            badge=badge or self.badge,
            data={key: str(value) for key, value in (data or {}).items()},
        )
        result = DispatchResult(notified=True, title=title, body=body)
        logger.info("Sending notification to user %s: %s", user_id, result.message)

        recipients = _unique(await self.registry.list_by_user(user_id))
        await self._deliver(recipients, message, result)
        return result

    async def _deliver(
        self,
        recipients: list[NotificationToken],
        message: PushMessage,
        result: DispatchResult,
    ) -> None:
        result.recipients = len(recipients)
        if not recipients:
            logger.info("No tokens found, skipping notification")
            return

        logger.info("Found %d tokens to notify", len(recipients))
        outcomes, abandoned = await self.fan_out(recipients, message)

        for outcome in outcomes:
            if outcome.outcome is DeliveryOutcome.DELIVERED:
                result.delivered += 1
            else:
                result.failed += 1
                if outcome.outcome is DeliveryOutcome.PERMANENTLY_INVALID:
                    result.invalid += 1
        result.abandoned = abandoned

        if abandoned:
            result.timed_out = True
            logger.warning(
                "Dispatch deadline of %.1fs expired with %d sends unfinished; "
                "skipping token cleanup",
                self.timeout,
                abandoned,
            )
            return

        logger.info(
            "Notifications sent: %d success, %d failed",
            result.delivered,
            result.failed,
        )
        await self.cleanup(outcomes, result)

    async def resolve_recipients(self, order: Order) -> list[NotificationToken]:
        if self.recipient_scope == "owner":
            if not order.user_id:
                logger.info("Order %s has no owner, no recipients", order.id)
                return []
            tokens = await self.registry.list_by_user(order.user_id)
        else:
            tokens = await self.registry.list_all()
        return _unique(tokens)

    def build_message(self, event: StageTransitionEvent) -> PushMessage:
        return PushMessage(
            title=event.title,
            body=event.body,
            icon=self.icon,
            badge=self.badge,
            data={
                "url": self.click_url,
                "pedido_id": event.order_id,
                "numero_pedido": event.group_key,
            },
        )

    async def fan_out(
        self, recipients: list[NotificationToken], message: PushMessage
    ) -> tuple[list[SendResult], int]:
        """Send to every recipient; return finished outcomes and abandoned count."""
        semaphore = asyncio.Semaphore(self.max_in_flight)

        async def send_one(token: str) -> SendResult:
            async with semaphore:
                try:
                    result = await self.transport.send(token, message)
                except Exception as err:
                    logger.error("Error sending to token %s: %r", mask(token), err)
                    return SendResult(
                        token, DeliveryOutcome.TRANSIENT_FAILURE, repr(err)
                    )
            if result.outcome is DeliveryOutcome.DELIVERED:
                logger.debug("Notification sent to token %s", mask(token))
            else:
                logger.warning(
                    "Push error for token %s: %s (%s)",
                    mask(token),
                    result.error,
                    result.outcome.value,
                )
            return result

        tasks = [asyncio.create_task(send_one(r.token)) for r in recipients]
        done, pending = await asyncio.wait(tasks, timeout=self.timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # Keep recipient order for the outcomes that finished.
        outcomes = [task.result() for task in tasks if task in done]
        return outcomes, len(pending)

    async def cleanup(self, outcomes: list[SendResult], result: DispatchResult) -> None:
        invalid = [
            o.token
            for o in outcomes
            if o.outcome is DeliveryOutcome.PERMANENTLY_INVALID
        ]
        if not invalid:
            return
        logger.info("Removing %d invalid tokens", len(invalid))
        try:
            result.removed = await self.registry.delete_by_tokens(invalid)
        except RegistryError as err:
            # Sends already happened; report instead of raising so a retry
            # cannot notify the same devices twice.
            logger.error("Failed to remove invalid tokens: %s", err)
            result.error = str(err)
