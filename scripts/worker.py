import asyncio
import logging

from rich.logging import RichHandler
from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import (
    SandboxedWorkflowRunner,
    SandboxRestrictions,
)

from order_tracking.activities import (
    notify_order_change,
    register_notification_token,
    send_user_notification,
)
from order_tracking.config import DispatcherSettings
from order_tracking.workflow import (
    OrderChangeWorkflow,
    RegisterTokenWorkflow,
    SendNotificationWorkflow,
)

# Third-party modules imported by the activities module
PASSTHROUGH_MODULES = ["httpx", "aiosqlite", "rich"]


async def main() -> None:
    logging.basicConfig(
        level=logging.INFO, handlers=[RichHandler(rich_tracebacks=True)]
    )
    settings = DispatcherSettings.from_env()
    # Fail at startup rather than on the first order change.
    settings.validate()

    client = await Client.connect(settings.temporal_address)
    restrictions = SandboxRestrictions.default.with_passthrough_modules(
        *PASSTHROUGH_MODULES
    )
    worker = Worker(
        client,
        task_queue=settings.task_queue,
        workflows=[
            OrderChangeWorkflow,
            SendNotificationWorkflow,
            RegisterTokenWorkflow,
        ],
        activities=[
            notify_order_change,
            send_user_notification,
            register_notification_token,
        ],
        workflow_runner=SandboxedWorkflowRunner(restrictions=restrictions),
    )
    print(f"Order tracking worker started on {settings.task_queue}")
    await worker.run()


if __name__ == "__main__":
    asyncio.run(main())
