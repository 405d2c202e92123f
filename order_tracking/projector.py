"""Stage projection: classify orders into pipeline stages for display.

Pure functions over a snapshot of the order store. Nothing here keeps state
between calls, so the board can be recomputed on every read.
"""

from collections.abc import Iterable

from order_tracking.shared import Order, OrderGroup, Stage, is_set

# Furthest marker first: a later marker implies the earlier ones.
_MARKER_STAGES = (
    ("despachado", Stage.DISPATCHED),
    ("envio_expedicao", Stage.SHIPPING),
    ("em_producao", Stage.IN_PRODUCTION),
    ("insumos", Stage.INSUMOS_PENDING),
)


def classify_stage(order: Order) -> Stage:
    """Return the single stage an order is in, from its own markers only."""
    for marker, stage in _MARKER_STAGES:
        if is_set(getattr(order, marker)):
            return stage
    return Stage.NEW


def group_orders(orders: Iterable[Order]) -> list[OrderGroup]:
    """Merge orders sharing a group key, keeping first-seen order."""
    groups: dict[str, OrderGroup] = {}
    for order in orders:
        group = groups.get(order.group_key)
        if group is None:
            group = groups[order.group_key] = OrderGroup(key=order.group_key)
        group.orders.append(order)
    return list(groups.values())


def project_stages(orders: Iterable[Order]) -> dict[Stage, list[OrderGroup]]:
    """Partition orders into all five stages, grouping siblings within each.

    Every stage is present in the result, in pipeline order, even when empty.
    """
    by_stage: dict[Stage, list[Order]] = {stage: [] for stage in Stage}
    for order in orders:
        by_stage[classify_stage(order)].append(order)
    return {stage: group_orders(members) for stage, members in by_stage.items()}
