"""Data Transfer Objects for the ledger service layer.

Result types returned by the consumption, reversal, and valuation services.
All quantities and amounts are Decimals.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from ..models import CostConsumption, InventoryLot
from ..utils.constants import (
    COST_DECIMAL_PLACES,
    QUANTITY_DECIMAL_PLACES,
    TAX_RATE_DECIMAL_PLACES,
    ZERO,
)


def as_decimal(value) -> Decimal:
    """Convert ints, floats, and strings to Decimal (floats via str to avoid binary noise)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning 0 when the denominator is 0."""
    if not denominator:
        return ZERO
    return Decimal(numerator) / Decimal(denominator)


def _quantize(value, places: int) -> Decimal:
    return as_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def quantize_quantity(value) -> Decimal:
    """Round a quantity to the stored precision, half-up."""
    return _quantize(value, QUANTITY_DECIMAL_PLACES)


def quantize_cost(value) -> Decimal:
    """Round a unit or total cost to the stored precision, half-up."""
    return _quantize(value, COST_DECIMAL_PLACES)


def quantize_rate(value) -> Decimal:
    return _quantize(value, TAX_RATE_DECIMAL_PLACES)


@dataclass
class ConsumptionResult:
    """Outcome of a FIFO consumption.

    Attributes:
        total_cost: Cost of everything consumed, lots plus any fallback
        consumptions: Records written, in draw order
        avg_unit_cost: total_cost / requested quantity (0 for quantity 0)
        used_fallback: True if part of the request was costed at the
            product's average cost instead of drawn from lots
        shortfall: Quantity the lots could not cover
    """

    total_cost: Decimal = ZERO
    consumptions: List[CostConsumption] = field(default_factory=list)
    avg_unit_cost: Decimal = ZERO
    used_fallback: bool = False
    shortfall: Decimal = ZERO

    @property
    def quantity(self) -> Decimal:
        """Total quantity across all records."""
        return sum((Decimal(c.quantity) for c in self.consumptions), ZERO)

    @property
    def lot_quantity(self) -> Decimal:
        """Quantity drawn from real lots."""
        return sum((Decimal(c.quantity) for c in self.consumptions if not c.is_legacy), ZERO)


@dataclass
class RestoreResult:
    """Outcome of a partial return restore.

    Attributes:
        restored: Quantity actually restored (may be less than requested)
        avg_unit_cost: total_cost / restored (0 if nothing restored)
        total_cost: Cost of the restored quantity at the original unit costs
    """

    restored: Decimal = ZERO
    avg_unit_cost: Decimal = ZERO
    total_cost: Decimal = ZERO


@dataclass
class ReversalResult:
    """Outcome of a full reversal of one reference."""

    restored: Decimal = ZERO
    total_cost: Decimal = ZERO
    records_removed: int = 0


@dataclass
class ProductValuation:
    """FIFO valuation of one product's active lots."""

    total_quantity: Decimal = ZERO
    total_value: Decimal = ZERO
    avg_cost: Decimal = ZERO
    lots: List[InventoryLot] = field(default_factory=list)


@dataclass
class InventoryValuation:
    """FIFO valuation across all products."""

    total_value: Decimal = ZERO
    total_units: Decimal = ZERO
    product_count: int = 0


@dataclass
class ProductCOGS:
    """Quantity and cost consumed for one product."""

    quantity: Decimal = ZERO
    cost: Decimal = ZERO


@dataclass
class PeriodCOGS:
    """Cost of goods sold over a date range."""

    total_cogs: Decimal = ZERO
    by_product: Dict[int, ProductCOGS] = field(default_factory=dict)
