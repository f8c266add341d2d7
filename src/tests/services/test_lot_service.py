"""Tests for LotManager: lot creation, FIFO ordering, cost and availability."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from src.models import LotStatus
from src.services.exceptions import LotNotFound, ValidationError
from src.utils.constants import AUDIT_LOT_CREATED
from src.utils.datetime_utils import today


class TestAddLot:
    """Tests for add_lot()."""

    def test_add_lot_creates_active_lot(self, ledger, product):
        """A new lot is ACTIVE with remaining equal to original."""
        lot = ledger.lots.add_lot(
            product_id=product.id,
            quantity=Decimal("24"),
            unit_cost_ex_tax=Decimal("35.50"),
            tax_rate=Decimal("0.18"),
            invoice_id=901,
            lot_number="L-2026-01",
        )

        assert lot.id is not None
        assert lot.status == LotStatus.ACTIVE.value
        assert lot.original_quantity == Decimal("24")
        assert lot.remaining_quantity == Decimal("24")
        assert lot.unit_cost == Decimal("35.50")
        assert lot.unit_cost_inc_tax == Decimal("41.89")
        assert lot.invoice_id == 901
        assert lot.purchase_date == today()

    def test_add_lot_persists(self, ledger, product):
        """The lot can be read back by id."""
        lot = ledger.lots.add_lot(product.id, Decimal("3"), Decimal("2"), Decimal("0"))

        fetched = ledger.lots.get_lot(lot.id)
        assert fetched.remaining_quantity == Decimal("3")
        assert fetched.product_id == product.id

    def test_add_lot_records_audit(self, ledger, product, audit_sink):
        """Lot creation emits one audit event."""
        lot = ledger.lots.add_lot(product.id, Decimal("3"), Decimal("2"), Decimal("0"))

        assert audit_sink.actions() == [AUDIT_LOT_CREATED]
        assert audit_sink.events[0].entity_id == lot.id

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_add_lot_rejects_non_positive_quantity(self, ledger, product, quantity):
        """Quantity must be positive."""
        with pytest.raises(ValidationError, match="Quantity must be positive"):
            ledger.lots.add_lot(product.id, quantity, Decimal("1"), Decimal("0"))

    def test_add_lot_rejects_negative_cost(self, ledger, product):
        """Unit cost cannot be negative."""
        with pytest.raises(ValidationError, match="Unit cost cannot be negative"):
            ledger.lots.add_lot(product.id, Decimal("1"), Decimal("-0.01"), Decimal("0"))

    def test_add_lot_rejects_expiration_before_purchase(self, ledger, product):
        """Expiration cannot precede purchase."""
        with pytest.raises(ValidationError, match="Expiration date"):
            ledger.lots.add_lot(
                product.id,
                Decimal("1"),
                Decimal("1"),
                Decimal("0"),
                purchase_date=date(2026, 5, 10),
                expiration_date=date(2026, 5, 9),
            )

    def test_add_lot_collects_all_errors(self, ledger, product):
        """Every validation problem is reported at once."""
        with pytest.raises(ValidationError) as exc_info:
            ledger.lots.add_lot(product.id, Decimal("0"), Decimal("-1"), Decimal("-1"))

        assert len(exc_info.value.errors) == 3

    def test_add_lot_rounds_to_stored_precision(self, ledger, product):
        """The returned lot carries the same values a later read would."""
        lot = ledger.lots.add_lot(
            product.id, Decimal("2.0005"), Decimal(1) / Decimal(3), Decimal("0.18")
        )

        assert lot.unit_cost == Decimal("0.3333")
        assert lot.unit_cost_inc_tax == Decimal("0.3933")
        assert lot.original_quantity == Decimal("2.001")

        fetched = ledger.lots.get_lot(lot.id)
        assert fetched.unit_cost == lot.unit_cost
        assert fetched.unit_cost_inc_tax == lot.unit_cost_inc_tax
        assert fetched.remaining_quantity == lot.remaining_quantity

    def test_add_lot_rejects_quantity_below_precision(self, ledger, product):
        with pytest.raises(ValidationError, match="Quantity must be positive"):
            ledger.lots.add_lot(product.id, Decimal("0.0004"), Decimal("1"), Decimal("0"))

    def test_add_lot_accepts_zero_cost(self, ledger, product):
        """Free goods produce a zero-cost lot."""
        lot = ledger.lots.add_lot(product.id, Decimal("2"), Decimal("0"), Decimal("0"))
        assert lot.unit_cost == Decimal("0")


class TestLotQueries:
    """Tests for get_lot(), get_lots(), get_active_lots()."""

    def test_get_lot_missing_raises(self, ledger):
        with pytest.raises(LotNotFound) as exc_info:
            ledger.lots.get_lot(999)
        assert exc_info.value.lot_id == 999

    def test_active_lots_in_fifo_order(self, ledger, product):
        """Lots come back oldest purchase_date first, regardless of insert order."""
        newer = ledger.lots.add_lot(
            product.id, Decimal("1"), Decimal("5"), Decimal("0"), purchase_date=date(2026, 3, 1)
        )
        older = ledger.lots.add_lot(
            product.id, Decimal("1"), Decimal("4"), Decimal("0"), purchase_date=date(2026, 2, 1)
        )

        lots = ledger.lots.get_active_lots(product.id)
        assert [lot.id for lot in lots] == [older.id, newer.id]

    def test_same_day_lots_keep_creation_order(self, ledger, product):
        """Lots received the same day are drawn in the order they were created."""
        day = date(2026, 4, 1)
        first = ledger.lots.add_lot(
            product.id, Decimal("1"), Decimal("9"), Decimal("0"), purchase_date=day
        )
        second = ledger.lots.add_lot(
            product.id, Decimal("1"), Decimal("1"), Decimal("0"), purchase_date=day
        )

        lots = ledger.lots.get_active_lots(product.id)
        assert [lot.id for lot in lots] == [first.id, second.id]

    def test_active_lots_exclude_depleted_and_expired(self, ledger, product, three_lots):
        """Only ACTIVE lots with stock are returned."""
        ledger.consumption.consume(product.id, Decimal("5"), _sale(1))
        ledger.expiration.mark_lot_expired(three_lots[2].id)

        lots = ledger.lots.get_active_lots(product.id)
        assert [lot.id for lot in lots] == [three_lots[1].id]

    def test_get_lots_includes_every_status(self, ledger, product, three_lots):
        ledger.consumption.consume(product.id, Decimal("5"), _sale(1))

        assert len(ledger.lots.get_lots(product.id)) == 3

    def test_lots_are_per_product(self, ledger, product, make_product):
        other = make_product(name="Habichuelas Rojas")
        ledger.lots.add_lot(other.id, Decimal("1"), Decimal("1"), Decimal("0"))

        assert ledger.lots.get_active_lots(product.id) == []


class TestCostQueries:
    """Tests for get_fifo_cost() and get_weighted_average_cost()."""

    def test_fifo_cost_is_oldest_lot_cost(self, ledger, product, three_lots):
        assert ledger.lots.get_fifo_cost(product.id) == Decimal("10")

    def test_fifo_cost_moves_when_oldest_lot_depletes(self, ledger, product, three_lots):
        ledger.consumption.consume(product.id, Decimal("5"), _sale(1))
        assert ledger.lots.get_fifo_cost(product.id) == Decimal("12")

    def test_fifo_cost_falls_back_to_product_cost(self, ledger, product):
        """Without lots the product's tax-exclusive last price is used."""
        assert ledger.lots.get_fifo_cost(product.id) == Decimal("10.00")

    def test_fifo_cost_strips_tax_from_fallback(self, ledger, make_product):
        taxed = make_product(
            name="Leche Rica",
            last_price=Decimal("118.00"),
            cost_includes_tax=True,
            cost_tax_rate=Decimal("0.18"),
        )
        assert ledger.lots.get_fifo_cost(taxed.id) == Decimal("100.00")

    def test_fifo_cost_zero_for_unknown_product(self, ledger):
        assert ledger.lots.get_fifo_cost(12345) == Decimal("0")

    def test_weighted_average_cost(self, ledger, product, three_lots):
        """(5*10 + 10*12 + 8*15) / 23"""
        expected = Decimal("290") / Decimal("23")
        assert ledger.lots.get_weighted_average_cost(product.id) == expected

    def test_weighted_average_uses_remaining_quantity(self, ledger, product, three_lots):
        ledger.consumption.consume(product.id, Decimal("10"), _sale(1))
        # Remaining: 5 @ 12, 8 @ 15
        expected = Decimal("180") / Decimal("13")
        assert ledger.lots.get_weighted_average_cost(product.id) == expected

    def test_weighted_average_falls_back(self, ledger, product):
        assert ledger.lots.get_weighted_average_cost(product.id) == Decimal("10.00")


class TestAvailableQuantity:
    """Tests for get_available_quantity()."""

    def test_sum_of_active_lots(self, ledger, product, three_lots):
        assert ledger.lots.get_available_quantity(product.id) == Decimal("23")

    def test_legacy_stock_when_no_lots(self, ledger, make_product):
        legacy = make_product(name="Sal Marina", current_stock=Decimal("42"))
        assert ledger.lots.get_available_quantity(legacy.id) == Decimal("42")

    def test_lots_take_precedence_over_legacy_stock(self, ledger, make_product):
        legacy = make_product(name="Azucar Crema", current_stock=Decimal("42"))
        ledger.lots.add_lot(legacy.id, Decimal("5"), Decimal("1"), Decimal("0"))
        assert ledger.lots.get_available_quantity(legacy.id) == Decimal("5")

    def test_unknown_product_has_nothing(self, ledger):
        assert ledger.lots.get_available_quantity(777) == Decimal("0")

    def test_expired_lot_not_available(self, ledger, product):
        lot = ledger.lots.add_lot(
            product.id,
            Decimal("4"),
            Decimal("1"),
            Decimal("0"),
            purchase_date=today() - timedelta(days=30),
            expiration_date=today() - timedelta(days=1),
        )
        ledger.expiration.mark_lot_expired(lot.id)

        # Falls back to the product's legacy stock (0)
        assert ledger.lots.get_available_quantity(product.id) == Decimal("0")


def _sale(sale_id):
    from src.models import Reference

    return Reference.sale(sale_id)
