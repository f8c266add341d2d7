"""Tests for ledger model helpers and value types."""

from datetime import date
from decimal import Decimal

import pytest

from src.models import CostConsumption, InventoryLot, LotStatus, Reference, ReferenceKind


class TestReference:
    def test_constructors(self):
        assert Reference.sale(1).kind is ReferenceKind.SALE
        assert Reference.return_(1).kind is ReferenceKind.RETURN
        assert Reference.adjustment(1).kind is ReferenceKind.ADJUSTMENT

    def test_column_names(self):
        assert Reference.sale(1).column_name == "sale_id"
        assert Reference.return_(1).column_name == "return_id"
        assert Reference.adjustment(1).column_name == "adjustment_id"

    def test_as_columns_sets_exactly_one(self):
        assert Reference.return_(9).as_columns() == {
            "sale_id": None,
            "return_id": 9,
            "adjustment_id": None,
        }

    def test_kind_from_string(self):
        assert Reference("adjustment", 4) == Reference.adjustment(4)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            Reference("transfer", 4)

    def test_id_required(self):
        with pytest.raises(ValueError):
            Reference.sale(None)

    def test_str(self):
        assert str(Reference.sale(42)) == "sale:42"

    def test_hashable(self):
        assert len({Reference.sale(1), Reference.sale(1), Reference.return_(1)}) == 2


class TestInventoryLot:
    def _lot(self, **overrides):
        values = dict(
            product_id=1,
            purchase_date=date(2026, 3, 1),
            original_quantity=Decimal("10"),
            remaining_quantity=Decimal("4"),
            unit_cost=Decimal("2.5"),
            unit_cost_inc_tax=Decimal("2.95"),
            tax_rate=Decimal("0.18"),
            status=LotStatus.ACTIVE.value,
        )
        values.update(overrides)
        return InventoryLot(**values)

    def test_derived_quantities(self):
        lot = self._lot()
        assert lot.consumed_quantity == Decimal("6")
        assert lot.remaining_value == Decimal("10")

    def test_is_active(self):
        assert self._lot().is_active
        assert not self._lot(remaining_quantity=Decimal("0")).is_active
        assert not self._lot(status=LotStatus.EXPIRED.value).is_active

    def test_expiry_helpers(self):
        lot = self._lot(expiration_date=date(2026, 3, 10))

        assert lot.days_until_expiration(as_of=date(2026, 3, 7)) == 3
        assert lot.days_until_expiration(as_of=date(2026, 3, 12)) == -2
        assert not lot.is_expired(as_of=date(2026, 3, 10))
        assert lot.is_expired(as_of=date(2026, 3, 11))

    def test_to_dict(self):
        data = self._lot(expiration_date=None).to_dict()

        assert data["remaining_quantity"] == "4"
        assert data["remaining_value"] == "10.0"
        assert data["purchase_date"] == "2026-03-01"
        assert data["days_until_expiration"] is None


class TestCostConsumption:
    def test_reference_round_trips_columns(self):
        record = CostConsumption(**Reference.adjustment(3).as_columns(), lot_id=1)
        assert record.reference == Reference.adjustment(3)

    def test_legacy_label(self):
        assert CostConsumption(lot_id=None).lot_label == "LEGACY_NO_LOT"
        assert CostConsumption(lot_id=17).lot_label == "17"

    def test_cost_of_uses_unit_cost(self):
        record = CostConsumption(unit_cost=Decimal("12"))
        assert record.cost_of(Decimal("1.5")) == Decimal("18")
