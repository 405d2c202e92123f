"""Submit one order-store change notification to the worker.

The payload is the store's change webhook body, either read from a JSON file
or built from the flags below, e.g.:

    python scripts/starter.py --id 17 --numero 42 --set insumos
"""

import argparse
import asyncio
import json
import logging
import time
from typing import Any

from temporalio.client import Client

from order_tracking.config import DispatcherSettings
from order_tracking.events import TRACKED_FIELDS
from order_tracking.workflow import OrderChangeWorkflow


def build_payload(args: argparse.Namespace) -> dict[str, Any]:
    if args.file:
        with open(args.file, encoding="utf-8") as fh:
            return json.load(fh)

    before: dict[str, Any] = {"id": args.id, "numero_pedido": args.numero}
    for name in args.already:
        before[name] = True
    after = dict(before)
    for name in args.set:
        after[name] = True
    if args.tracking:
        after["nota/rastreio"] = args.tracking
    return {"type": "UPDATE", "old_record": before, "new_record": after}


async def main() -> None:
    parser = argparse.ArgumentParser(description="Start an order change workflow")
    parser.add_argument("--file", help="JSON change notification to submit")
    parser.add_argument("--id", default="1", help="Order id")
    parser.add_argument("--numero", default=None, help="Order number (group key)")
    parser.add_argument(
        "--already",
        nargs="*",
        default=[],
        choices=TRACKED_FIELDS[:-1],
        help="Markers already set before the change",
    )
    parser.add_argument(
        "--set",
        nargs="*",
        default=[],
        choices=TRACKED_FIELDS[:-1],
        help="Markers set by the change",
    )
    parser.add_argument("--tracking", help="Tracking code added by the change")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    settings = DispatcherSettings.from_env()
    payload = build_payload(args)

    try:
        client = await Client.connect(settings.temporal_address)
        workflow_id = f"order-change-{args.id}-{int(time.time())}"
        handle = await client.start_workflow(
            OrderChangeWorkflow.run,
            payload,
            id=workflow_id,
            task_queue=settings.task_queue,
        )
        print(f"Started workflow with ID {workflow_id}")
        result = await handle.result()
        print(
            f"Result: {result.message} "
            f"(sent={result.delivered}, failed={result.failed}, removed={result.removed})"
        )
    except Exception as err:
        logging.error("Workflow execution failed: %s", err)
        raise SystemExit(1) from err


if __name__ == "__main__":
    asyncio.run(main())
