import argparse
import asyncio
import json
import logging
import time

from temporalio.client import Client

from order_tracking.activities import UserNotification
from order_tracking.config import DispatcherSettings
from order_tracking.workflow import SendNotificationWorkflow


async def main() -> None:
    parser = argparse.ArgumentParser(description="Send a push message to one user")
    parser.add_argument("user", help="User id whose devices receive the message")
    parser.add_argument("title", help="Notification title")
    parser.add_argument("body", help="Notification body")
    parser.add_argument("--icon", default=None, help="Icon reference")
    parser.add_argument("--badge", default=None, help="Badge reference")
    parser.add_argument("--data", default="{}", help="JSON object of extra data")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = DispatcherSettings.from_env()
    notification = UserNotification(
        user_id=args.user,
        title=args.title,
        body=args.body,
        icon=args.icon,
        badge=args.badge,
        data=json.loads(args.data),
    )

    try:
        client = await Client.connect(settings.temporal_address)
        workflow_id = f"user-notification-{args.user}-{int(time.time())}"
        result = await client.execute_workflow(
            SendNotificationWorkflow.run,
            notification,
            id=workflow_id,
            task_queue=settings.task_queue,
        )
        print(
            f"Result: sent={result.delivered}, failed={result.failed}, "
            f"total={result.recipients}"
        )
    except Exception as err:
        logging.error("Notification failed: %s", err)
        raise SystemExit(1) from err


if __name__ == "__main__":
    asyncio.run(main())
