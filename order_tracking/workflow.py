"""Temporal workflows for push notifications and token registration."""

from datetime import timedelta
from typing import Any

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from order_tracking.activities import (
        TokenRegistration,
        UserNotification,
        notify_order_change,
        register_notification_token,
        send_user_notification,
    )
    from order_tracking.config import SEND_ACTIVITY_TIMEOUT_SECONDS
    from order_tracking.shared import DispatchResult

# Raised only before any device is contacted; retrying cannot help.
NON_RETRYABLE_ERRORS = ["ConfigurationError", "MalformedTriggerError"]

SEND_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=2),
    backoff_coefficient=2.0,
    maximum_attempts=5,
    non_retryable_error_types=NON_RETRYABLE_ERRORS,
)


@workflow.defn
class OrderChangeWorkflow:
    """Runs the change dispatcher once for an order-store mutation.

    The activity only raises retryable errors (registry listing) before any
    push is sent, so those retries never re-notify devices.
    """

    @workflow.run
    async def run(self, payload: dict[str, Any]) -> DispatchResult:
        result = await workflow.execute_activity(
            notify_order_change,
            payload,
            start_to_close_timeout=timedelta(seconds=SEND_ACTIVITY_TIMEOUT_SECONDS),
            retry_policy=SEND_RETRY_POLICY,
        )
        workflow.logger.info(
            f"Order change handled: {result.message} "
            f"(sent={result.delivered}, failed={result.failed})"
        )
        return result


@workflow.defn
class SendNotificationWorkflow:
    """Sends a caller-supplied message to every device of one user."""

    @workflow.run
    async def run(self, notification: UserNotification) -> DispatchResult:
        result = await workflow.execute_activity(
            send_user_notification,
            notification,
            start_to_close_timeout=timedelta(seconds=SEND_ACTIVITY_TIMEOUT_SECONDS),
            retry_policy=SEND_RETRY_POLICY,
        )
        workflow.logger.info(
            f"User notification handled: {result.message} "
            f"(sent={result.delivered}, failed={result.failed}, "
            f"total={result.recipients})"
        )
        return result


@workflow.defn
class RegisterTokenWorkflow:
    """Stores a device push registration."""

    @workflow.run
    async def run(self, registration: TokenRegistration) -> None:
        await workflow.execute_activity(
            register_notification_token,
            registration,
            start_to_close_timeout=timedelta(seconds=15),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                non_retryable_error_types=NON_RETRYABLE_ERRORS,
            ),
        )
