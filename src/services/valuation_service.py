"""Valuation Service - FIFO inventory valuation and COGS reporting.

Read-only aggregation over lots and consumption records. Inventory is
valued at each active lot's own unit cost; COGS is the sum of recorded
consumption cost (unit costs frozen at draw time, legacy records included).
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal

from ..utils.constants import ZERO
from .dto import (
    InventoryValuation,
    PeriodCOGS,
    ProductCOGS,
    ProductValuation,
    as_decimal,
    safe_divide,
)
from .exceptions import ValidationError
from .stores import ConsumptionStore, LotStore, SaleStore


class ValuationReporter:
    """
    Aggregates lots and consumption into financial figures.

    Args:
        lot_store: Lots to value
        consumption_store: Consumption records to total
        sale_store: Sale lookups for shift COGS
    """

    def __init__(
        self,
        lot_store: LotStore,
        consumption_store: ConsumptionStore,
        sale_store: SaleStore,
    ):
        self.lot_store = lot_store
        self.consumption_store = consumption_store
        self.sale_store = sale_store

    def get_product_inventory_valuation(self, product_id: int) -> ProductValuation:
        """Quantity, value, and average cost of a product's active lots."""
        lots = self.lot_store.find_active_by_product(product_id)
        total_quantity = sum((as_decimal(lot.remaining_quantity) for lot in lots), ZERO)
        total_value = sum((as_decimal(lot.remaining_value) for lot in lots), ZERO)
        return ProductValuation(
            total_quantity=total_quantity,
            total_value=total_value,
            avg_cost=safe_divide(total_value, total_quantity),
            lots=lots,
        )

    def get_total_inventory_valuation(self) -> InventoryValuation:
        """Value and units across all active lots, plus distinct product count."""
        lots = self.lot_store.find_active()
        return InventoryValuation(
            total_value=sum((as_decimal(lot.remaining_value) for lot in lots), ZERO),
            total_units=sum((as_decimal(lot.remaining_quantity) for lot in lots), ZERO),
            product_count=len({lot.product_id for lot in lots}),
        )

    def get_cogs_for_period(self, start_date: date, end_date: date) -> PeriodCOGS:
        """
        Cost of goods sold for consumption dated within [start_date, end_date].

        Returns:
            PeriodCOGS with the grand total and per-product quantity and cost

        Raises:
            ValidationError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValidationError(["Start date cannot be after end date"])

        report = PeriodCOGS(by_product=OrderedDict())
        for consumption in self.consumption_store.find_by_date_range(start_date, end_date):
            cost = as_decimal(consumption.total_cost)
            report.total_cogs += cost

            line = report.by_product.setdefault(consumption.product_id, ProductCOGS())
            line.quantity += as_decimal(consumption.quantity)
            line.cost += cost

        return report

    def get_cogs_for_shift(self, shift_id: int) -> Decimal:
        """
        Cost of goods sold for every sale in a register shift.

        Returns 0 without reading consumption records when the shift has no
        sales.
        """
        sale_ids = self.sale_store.ids_for_shift(shift_id)
        if not sale_ids:
            return ZERO

        return sum(
            (as_decimal(c.total_cost) for c in self.consumption_store.find_by_sale_ids(sale_ids)),
            ZERO,
        )
