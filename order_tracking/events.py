"""Classify an order mutation into at most one stage transition event."""

from order_tracking.shared import Order, StageTransitionEvent, is_set

# Priority order; only the first field that became set is reported.
TRACKED_FIELDS = (
    "insumos",
    "em_producao",
    "envio_expedicao",
    "despachado",
    "tracking_code",
)

_MESSAGES = {
    "insumos": "Insumos foram pedidos! 📦",
    "em_producao": "Entrou em produção! 🏭",
    "envio_expedicao": "Enviado para expedição! 📮",
    "despachado": "Foi despachado! 🚚",
}


def _body(changed_field: str, after: Order) -> str:
    if changed_field == "tracking_code":
        return f"Código de rastreio disponível: {after.tracking_code}"
    return _MESSAGES[changed_field]


def classify_transition(
    before: Order | None, after: Order
) -> StageTransitionEvent | None:
    """Return the event for the first tracked field that went unset -> set.

    A missing ``before`` (an insert) counts as every field unset. Fields that
    were already set, or were cleared, never fire.
    """
    for name in TRACKED_FIELDS:
        was_set = before is not None and is_set(getattr(before, name))
        if not was_set and is_set(getattr(after, name)):
            return StageTransitionEvent(
                changed_field=name,
                title=f"Pedido #{after.label}",
                body=_body(name, after),
                order_id=after.id,
                group_key=after.group_key,
            )
    return None
