"""Shared fixtures for order tracking tests."""

from typing import Any

import pytest

from order_tracking.shared import NotificationToken, Order


def make_order(**fields: Any) -> Order:
    """Build an Order from raw store columns, with an id by default."""
    record = {"id": "1", "numero_pedido": "42"}
    record.update(fields)
    return Order.from_record(record)


@pytest.fixture
def tokens() -> list[NotificationToken]:
    """Three registrations: two for user-1 and one for user-2."""
    return [
        NotificationToken(token="token-a", user_id="user-1"),
        NotificationToken(token="token-b", user_id="user-2"),
        NotificationToken(token="token-c", user_id="user-1"),
    ]
