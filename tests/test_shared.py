"""Tests for shared models."""

from datetime import datetime, timezone

import pytest

from order_tracking.errors import MalformedTriggerError
from order_tracking.shared import (
    ChangeNotification,
    ChangeType,
    DispatchResult,
    Order,
    OrderGroup,
    is_set,
    parse_timestamp,
)


class TestIsSet:
    """Tests for marker truthiness."""

    @pytest.mark.parametrize("value", [True, "pendente", "completo", "ABC123"])
    def test_set_values(self, value: object) -> None:
        """Test that booleans and status strings count as set."""
        assert is_set(value) is True

    @pytest.mark.parametrize("value", [None, False, "", "   ", 0])
    def test_unset_values(self, value: object) -> None:
        """Test that empty and falsy values count as unset."""
        assert is_set(value) is False


class TestOrderFromRecord:
    """Tests for parsing raw order-store rows."""

    def test_full_record(self) -> None:
        """Test parsing a row with every known column."""
        order = Order.from_record(
            {
                "id": 7,
                "numero_pedido": 42,
                "insumos": "pendente",
                "em_producao": None,
                "despachado": False,
                "nota/rastreio": "BR123",
                "dia_pedido": "2024-03-01",
                "created_at": "2024-03-02T10:00:00Z",
                "cor": "Azul",
                "tamanho": "M",
                "espelho": "Sim",
                "user_id": "user-1",
            }
        )
        assert order.id == "7"
        assert order.numero_pedido == "42"
        assert order.insumos == "pendente"
        assert order.em_producao is None
        assert order.despachado is False
        assert order.tracking_code == "BR123"
        assert order.dia_pedido == datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert order.created_at == datetime(2024, 3, 2, 10, tzinfo=timezone.utc)
        assert (order.color, order.size, order.mirror) == ("Azul", "M", "Sim")
        assert order.user_id == "user-1"

    def test_missing_fields_default_to_unset(self) -> None:
        """Test that absent columns default to unset."""
        order = Order.from_record({"id": "9"})
        assert order.numero_pedido is None
        assert order.insumos is None
        assert order.tracking_code is None
        assert order.dia_pedido is None

    def test_group_key_falls_back_to_id(self) -> None:
        """Test that a blank order number groups by the order id."""
        order = Order.from_record({"id": "9", "numero_pedido": "  "})
        assert order.group_key == "9"
        assert order.label == "9"

    def test_tracking_code_key_accepted(self) -> None:
        """Test that tracking_code is read when nota/rastreio is absent."""
        order = Order.from_record({"id": "1", "tracking_code": "XY9"})
        assert order.tracking_code == "XY9"

    def test_bad_timestamp_is_unset(self) -> None:
        """Test that an unparsable date becomes None."""
        order = Order.from_record({"id": "1", "dia_pedido": "yesterday"})
        assert order.dia_pedido is None

    def test_naive_timestamp_is_utc(self) -> None:
        """Test that naive timestamps are read as UTC."""
        parsed = parse_timestamp("2024-01-05T08:30:00")
        assert parsed == datetime(2024, 1, 5, 8, 30, tzinfo=timezone.utc)


class TestOrderGroup:
    """Tests for group-level properties."""

    def test_representative_date_is_earliest(self) -> None:
        """Test that the group date is the earliest member date."""
        group = OrderGroup(
            key="42",
            orders=[
                Order.from_record({"id": "1", "dia_pedido": "2024-03-05"}),
                Order.from_record({"id": "2", "created_at": "2024-03-01T12:00:00"}),
                Order.from_record({"id": "3"}),
            ],
        )
        assert group.representative_date == datetime(
            2024, 3, 1, 12, tzinfo=timezone.utc
        )

    def test_representative_date_none_without_dates(self) -> None:
        """Test that a group without dates has no representative date."""
        group = OrderGroup(key="1", orders=[Order.from_record({"id": "1"})])
        assert group.representative_date is None


class TestChangeNotification:
    """Tests for parsing store change notifications."""

    def test_before_after_keys(self) -> None:
        """Test parsing before/after keys."""
        change = ChangeNotification.from_payload(
            {"type": "UPDATE", "before": {"id": "1"}, "after": {"id": "1"}}
        )
        assert change.type is ChangeType.UPDATE
        assert change.before is not None
        assert change.after.id == "1"

    def test_webhook_keys(self) -> None:
        """Test parsing the store webhook's old_record/new_record keys."""
        change = ChangeNotification.from_payload(
            {
                "type": "update",
                "old_record": {"id": "1"},
                "new_record": {"id": "1", "insumos": True},
            }
        )
        assert change.after.insumos is True

    def test_insert_without_before(self) -> None:
        """Test that an INSERT has no previous record."""
        change = ChangeNotification.from_payload(
            {"type": "INSERT", "after": {"id": "1"}}
        )
        assert change.type is ChangeType.INSERT
        assert change.before is None

    def test_insert_ignores_supplied_before(self) -> None:
        """Test that an INSERT drops a populated previous record."""
        change = ChangeNotification.from_payload(
            {
                "type": "INSERT",
                "old_record": {"id": "1", "insumos": True},
                "new_record": {"id": "1", "numero_pedido": "42", "insumos": True},
            }
        )
        assert change.before is None
        assert change.after.insumos is True

    def test_null_after_falls_back_to_new_record(self) -> None:
        """Test that a null 'after' key does not hide new_record."""
        change = ChangeNotification.from_payload(
            {
                "type": "UPDATE",
                "before": None,
                "old_record": {"id": "1"},
                "after": None,
                "new_record": {"id": "1", "despachado": True},
            }
        )
        assert change.after.despachado is True
        assert change.before is not None
        assert change.before.id == "1"

    def test_missing_after_is_malformed(self) -> None:
        """Test that a payload without an after record is rejected."""
        with pytest.raises(MalformedTriggerError):
            ChangeNotification.from_payload({"type": "UPDATE", "before": {"id": "1"}})

    def test_unknown_type_is_malformed(self) -> None:
        """Test that change types other than INSERT/UPDATE are rejected."""
        with pytest.raises(MalformedTriggerError):
            ChangeNotification.from_payload({"type": "DELETE", "after": {"id": "1"}})

    def test_non_mapping_before_is_malformed(self) -> None:
        """Test that a non-mapping before record is rejected."""
        with pytest.raises(MalformedTriggerError):
            ChangeNotification.from_payload(
                {"type": "UPDATE", "before": "x", "after": {"id": "1"}}
            )


class TestDispatchResult:
    """Tests for DispatchResult defaults."""

    def test_noop_result(self) -> None:
        """Test the default result of a mutation with no event."""
        result = DispatchResult()
        assert result.notified is False
        assert result.message == "No relevant changes"
        assert result.ok is True

    def test_message_and_ok(self) -> None:
        """Test the message text and that a timeout is not ok."""
        result = DispatchResult(notified=True, title="Pedido #1", body="Foi despachado! 🚚")
        assert result.message == "Pedido #1 - Foi despachado! 🚚"
        result.timed_out = True
        assert result.ok is False
