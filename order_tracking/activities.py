"""Temporal activities for push notifications and token registration."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from temporalio import activity
from temporalio.exceptions import ApplicationError

from order_tracking.adapters.fcm import FcmPushTransport
from order_tracking.adapters.sqlite import SqliteTokenRegistry
from order_tracking.config import DispatcherSettings
from order_tracking.dispatcher import ChangeDispatcher, mask
from order_tracking.errors import ConfigurationError, MalformedTriggerError, RegistryError
from order_tracking.shared import (
    ChangeNotification,
    ChangeType,
    DispatchResult,
    parse_timestamp,
)

console = Console()


@dataclass
class TokenRegistration:
    """A device registering (or refreshing) its push token."""

    token: str
    user_id: str | None = None
    device_info: dict[str, Any] = field(default_factory=dict)
    updated_at: str | None = None


@dataclass
class UserNotification:
    """A caller-supplied message for every device of one user."""

    user_id: str
    title: str
    body: str
    icon: str | None = None
    badge: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


def _non_retryable(err: Exception) -> ApplicationError:
    return ApplicationError(str(err), type=type(err).__name__, non_retryable=True)


def _load_settings() -> DispatcherSettings:
    settings = DispatcherSettings.from_env()
    try:
        settings.validate()
    except ConfigurationError as err:
        console.print(f"[bold red]✗ REJECTED[/] [dim]{type(err).__name__}:[/] {err}")
        raise _non_retryable(err) from err
    return settings


async def _run_dispatcher(
    settings: DispatcherSettings,
    send: Callable[[ChangeDispatcher], Awaitable[DispatchResult]],
) -> DispatchResult:
    """Open the registry and transport, run one send, and report the result."""
    try:
        async with await SqliteTokenRegistry.open(settings.token_db_path) as registry:
            async with FcmPushTransport(
                settings.fcm_server_key, endpoint=settings.fcm_endpoint
            ) as transport:
                dispatcher = ChangeDispatcher(
                    registry,
                    transport,
                    icon=settings.icon,
                    badge=settings.badge,
                    click_url=settings.click_url,
                    max_in_flight=settings.max_in_flight,
                    timeout=settings.dispatch_timeout,
                    recipient_scope=settings.recipient_scope,
                )
                result = await send(dispatcher)
    except RegistryError as err:
        console.print(f"[bold red]✗ REGISTRY ERROR[/] {err}")
        raise ApplicationError(str(err), type="RegistryError") from err

    if not result.notified:
        console.print("[dim]○ no relevant changes[/]")
    elif result.ok:
        console.print(
            f"[bold green]✓ {result.message}[/] "
            f"[dim]sent=[/][cyan]{result.delivered}[/] "
            f"[dim]failed=[/][cyan]{result.failed}[/] "
            f"[dim]removed=[/][magenta]{result.removed}[/]"
        )
    else:
        console.print(
            f"[bold yellow]⚠ {result.message}[/] "
            f"[dim]sent=[/][cyan]{result.delivered}[/] "
            f"[dim]failed=[/][cyan]{result.failed}[/] "
            f"[dim]abandoned=[/][cyan]{result.abandoned}[/] "
            f"[dim]error=[/]{result.error}"
        )
    return result


@activity.defn
async def notify_order_change(payload: dict[str, Any]) -> DispatchResult:
    """Run the change dispatcher for one order-store mutation.

    Configuration and payload problems fail the activity without retries,
    before any device is contacted.
    """
    settings = _load_settings()
    try:
        change = ChangeNotification.from_payload(payload)
    except MalformedTriggerError as err:
        console.print(f"[bold red]✗ REJECTED[/] [dim]{type(err).__name__}:[/] {err}")
        raise _non_retryable(err) from err

    if change.type is ChangeType.UPDATE and change.before is None:
        console.print(
            f"[yellow]⚠ UPDATE without previous record[/] "
            f"[dim]order=[/]{change.after.id} [dim]treating as insert[/]"
        )

    console.print(
        f"[bold cyan]▶ {change.type.value}[/] [dim]order=[/]{change.after.id} "
        f"[dim]attempt=[/]{activity.info().attempt}"
    )
    return await _run_dispatcher(settings, lambda d: d.dispatch(change))


@activity.defn
async def send_user_notification(notification: UserNotification) -> DispatchResult:
    """Send a caller-supplied message to all of one user's devices."""
    settings = _load_settings()
    if not notification.user_id or not notification.title:
        raise _non_retryable(
            MalformedTriggerError("notification needs a user_id and a title")
        )

    console.print(
        f"[bold cyan]▶ USER NOTIFICATION[/] [dim]user=[/]{notification.user_id} "
        f"[dim]attempt=[/]{activity.info().attempt}"
    )
    return await _run_dispatcher(
        settings,
        lambda d: d.send_to_user(
            notification.user_id,
            notification.title,
            notification.body,
            icon=notification.icon,
            badge=notification.badge,
            data=notification.data,
        ),
    )


@activity.defn
async def register_notification_token(registration: TokenRegistration) -> None:
    """Insert or refresh a device's push registration."""
    if not registration.token:
        raise _non_retryable(MalformedTriggerError("registration has no token"))

    settings = DispatcherSettings.from_env()
    try:
        async with await SqliteTokenRegistry.open(settings.token_db_path) as registry:
            await registry.upsert(
                registration.token,
                registration.user_id,
                registration.device_info,
                parse_timestamp(registration.updated_at),
            )
    except RegistryError as err:
        raise ApplicationError(str(err), type="RegistryError") from err

    console.print(
        f"[bold green]★ TOKEN REGISTERED[/] [dim]token=[/]{mask(registration.token)} "
        f"[dim]user=[/]{registration.user_id}"
    )
