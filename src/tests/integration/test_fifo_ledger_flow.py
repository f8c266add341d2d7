"""Integration tests for the full costing cycle.

Receive -> sell -> void/return -> value, checking that lot balances and
consumption records always account for every unit received.
"""

from datetime import date, timedelta
from decimal import Decimal

from src.models import LotStatus, Reference
from src.services.fifo_ledger import FifoLedger, get_ledger, reset_ledger


def _assert_conserved(ledger, product_id):
    """original == remaining + consumed, for every lot of the product."""
    for lot in ledger.lots.get_lots(product_id):
        consumed = sum(
            (c.quantity for c in ledger.consumption_store.find_by_lot(lot.id)), Decimal("0")
        )
        assert lot.original_quantity == lot.remaining_quantity + consumed, lot


def test_register_day(ledger, product, make_sale):
    """A day at the register: receive, sell, void one sale, take a partial return."""
    lots = [
        ledger.lots.add_lot(
            product.id,
            Decimal("12"),
            Decimal("40"),
            Decimal("0.18"),
            invoice_id=501,
            purchase_date=date(2026, 5, 1),
        ),
        ledger.lots.add_lot(
            product.id,
            Decimal("12"),
            Decimal("44"),
            Decimal("0.18"),
            invoice_id=502,
            purchase_date=date(2026, 5, 8),
        ),
    ]
    morning = make_sale(shift_id=1)
    voided = make_sale(shift_id=1)
    afternoon = make_sale(shift_id=1)

    ledger.consumption.consume(product.id, Decimal("8"), Reference.sale(morning.id))
    ledger.consumption.consume(product.id, Decimal("6"), Reference.sale(voided.id))
    ledger.consumption.consume(product.id, Decimal("5"), Reference.sale(afternoon.id))
    _assert_conserved(ledger, product.id)

    ledger.reversal.revert_consumption(Reference.sale(voided.id))
    _assert_conserved(ledger, product.id)

    ledger.reversal.restore_consumption_for_return(morning.id, product.id, Decimal("2"))
    _assert_conserved(ledger, product.id)

    # Morning 6 @ 40 after the return; afternoon 5 @ 44 (lot 1 was depleted
    # by the voided sale when the afternoon sale drew)
    assert ledger.valuation.get_cogs_for_shift(1) == Decimal("6") * 40 + Decimal("5") * 44
    assert ledger.lots.get_lot(lots[0].id).remaining_quantity == Decimal("6")
    assert ledger.lots.get_lot(lots[1].id).remaining_quantity == Decimal("7")

    remaining = ledger.lots.get_available_quantity(product.id)
    assert remaining == Decimal("24") - Decimal("6") - Decimal("5")

    valuation = ledger.valuation.get_product_inventory_valuation(product.id)
    assert valuation.total_quantity == remaining
    assert [lot.id for lot in valuation.lots] == [lots[0].id, lots[1].id]


def test_sell_through_and_restock(ledger, product):
    """Depleted lots come back when a sale is voided, in FIFO position."""
    first = ledger.lots.add_lot(
        product.id, Decimal("3"), Decimal("5"), Decimal("0"), purchase_date=date(2026, 1, 1)
    )
    ledger.consumption.consume(product.id, Decimal("3"), Reference.sale(1))
    second = ledger.lots.add_lot(
        product.id, Decimal("3"), Decimal("6"), Decimal("0"), purchase_date=date(2026, 2, 1)
    )

    ledger.reversal.revert_consumption(Reference.sale(1))
    result = ledger.consumption.consume(product.id, Decimal("4"), Reference.sale(2))

    assert ledger.lots.get_lot(first.id).status == LotStatus.DEPLETED.value
    assert [c.lot_id for c in result.consumptions] == [first.id, second.id]
    assert result.total_cost == Decimal("21")
    _assert_conserved(ledger, product.id)


def test_expired_stock_written_off(ledger, product):
    """Expired lots stop counting toward stock, value, and consumption."""
    stale = ledger.lots.add_lot(
        product.id,
        Decimal("5"),
        Decimal("3"),
        Decimal("0"),
        purchase_date=date.today() - timedelta(days=20),
        expiration_date=date.today() - timedelta(days=2),
    )
    fresh = ledger.lots.add_lot(product.id, Decimal("5"), Decimal("4"), Decimal("0"))

    for lot in ledger.expiration.get_expired_lots():
        ledger.expiration.mark_lot_expired(lot.id)

    assert ledger.lots.get_available_quantity(product.id) == Decimal("5")
    assert ledger.valuation.get_total_inventory_valuation().total_value == Decimal("20")

    result = ledger.consumption.consume(product.id, Decimal("2"), Reference.sale(1))
    assert result.consumptions[0].lot_id == fresh.id
    assert ledger.lots.get_lot(stale.id).remaining_quantity == Decimal("5")


def test_get_ledger_is_shared(test_db):
    reset_ledger()
    try:
        ledger = get_ledger()
        assert isinstance(ledger, FifoLedger)
        assert get_ledger() is ledger
    finally:
        reset_ledger()
