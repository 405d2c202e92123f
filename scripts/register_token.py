import argparse
import asyncio
import logging
import platform
import time
from datetime import datetime, timezone

from temporalio.client import Client

from order_tracking.activities import TokenRegistration
from order_tracking.config import DispatcherSettings
from order_tracking.workflow import RegisterTokenWorkflow


async def main() -> None:
    parser = argparse.ArgumentParser(description="Register a device push token")
    parser.add_argument("token", help="Push registration token")
    parser.add_argument("--user", default=None, help="Owning user id")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = DispatcherSettings.from_env()
    registration = TokenRegistration(
        token=args.token,
        user_id=args.user,
        device_info={"platform": platform.platform(), "client": "cli"},
        updated_at=datetime.now(timezone.utc).isoformat(),
    )

    try:
        client = await Client.connect(settings.temporal_address)
        workflow_id = f"register-token-{int(time.time())}"
        await client.execute_workflow(
            RegisterTokenWorkflow.run,
            registration,
            id=workflow_id,
            task_queue=settings.task_queue,
        )
        print(f"Registered token {args.token[:20]}")
    except Exception as err:
        logging.error("Token registration failed: %s", err)
        raise SystemExit(1) from err


if __name__ == "__main__":
    asyncio.run(main())
