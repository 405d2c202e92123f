"""Order stage tracking and stage-change push notifications.

Note: Temporal modules are imported lazily so the projector and models can be
used without loading the worker stack.
"""

from order_tracking.dispatcher import ChangeDispatcher
from order_tracking.events import classify_transition
from order_tracking.projector import classify_stage, group_orders, project_stages
from order_tracking.shared import (
    ChangeNotification,
    DeliveryOutcome,
    DispatchResult,
    NotificationToken,
    Order,
    OrderGroup,
    Stage,
    StageTransitionEvent,
)

__all__ = [
    "ChangeDispatcher",
    "ChangeNotification",
    "DeliveryOutcome",
    "DispatchResult",
    "NotificationToken",
    "Order",
    "OrderGroup",
    "Stage",
    "StageTransitionEvent",
    "classify_stage",
    "classify_transition",
    "group_orders",
    "project_stages",
]


def __getattr__(name: str) -> object:
    """Lazy import Temporal modules."""
    if name == "notify_order_change":
        from order_tracking.activities import notify_order_change

        return notify_order_change
    if name == "register_notification_token":
        from order_tracking.activities import register_notification_token

        return register_notification_token
    if name == "send_user_notification":
        from order_tracking.activities import send_user_notification

        return send_user_notification
    if name == "OrderChangeWorkflow":
        from order_tracking.workflow import OrderChangeWorkflow

        return OrderChangeWorkflow
    if name == "SendNotificationWorkflow":
        from order_tracking.workflow import SendNotificationWorkflow

        return SendNotificationWorkflow
    if name == "RegisterTokenWorkflow":
        from order_tracking.workflow import RegisterTokenWorkflow

        return RegisterTokenWorkflow
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
