"""Consumption Service - FIFO cost consumption.

**CRITICAL MODULE**: implements the inventory consumption algorithm that
determines cost of goods sold.

Algorithm:
    1. Fetch the product's active lots, oldest first (LotManager FIFO contract)
    2. Walk the lots, drawing min(still needed, lot remaining) from each
    3. For each draw: persist a CostConsumption at the lot's unit cost,
       decrement the lot, mark it DEPLETED when it reaches exactly zero
    4. Stop when the request is covered or the lots run out
    5. Shortfall:
       - strict: raise InsufficientLots (draws from step 3 stay committed)
       - otherwise: one legacy record (no lot) at the product's
         tax-exclusive cost covers exactly the shortfall
    6. avg_unit_cost = total_cost / requested quantity

Each lot and consumption write is committed on its own; there is no
rollback of earlier draws when a later write fails.

Example Usage:
    >>> engine = ConsumptionEngine(SqlLotStore(), SqlConsumptionStore(), SqlProductStore())
    >>> result = engine.consume(12, Decimal("7"), Reference.sale(5001))
    >>> result.total_cost, result.used_fallback
    (Decimal('248.50'), False)
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from ..models import CostConsumption, InventoryLot, LotStatus, Product, Reference
from ..utils.constants import (
    AUDIT_CONSUMPTION,
    AUDIT_ENTITY_COST_CONSUMPTION,
    AUDIT_ENTITY_FIFO_LOT,
    AUDIT_LEGACY_FALLBACK,
    LEGACY_NO_LOT,
    ZERO,
)
from ..utils.datetime_utils import today, utc_now
from .audit_service import AuditEvent, AuditRecorder
from .dto import (
    ConsumptionResult,
    as_decimal,
    quantize_cost,
    quantize_quantity,
    safe_divide,
)
from .exceptions import InsufficientLots, ValidationError
from .logging_utils import get_service_logger, log_operation
from .stores import ConsumptionStore, LotStore, ProductStore
from .tax_service import product_cost_ex_tax

logger = get_service_logger(__name__)


class ConsumptionEngine:
    """
    Draws inventory from lots in FIFO order and records what it cost.

    Args:
        lot_store: Lots to draw from
        consumption_store: Where consumption records are written
        product_store: Product lookups for the shortfall cost
        audit: Audit recorder (default: drops events)
        cost_ex_tax: Tax-exclusive product cost function used for shortfalls
    """

    def __init__(
        self,
        lot_store: LotStore,
        consumption_store: ConsumptionStore,
        product_store: ProductStore,
        audit: Optional[AuditRecorder] = None,
        cost_ex_tax: Callable[[Product], Decimal] = product_cost_ex_tax,
    ):
        self.lot_store = lot_store
        self.consumption_store = consumption_store
        self.product_store = product_store
        self.audit = audit or AuditRecorder()
        self.cost_ex_tax = cost_ex_tax

    def consume(
        self,
        product_id: int,
        quantity: Decimal,
        reference: Reference,
        strict: bool = False,
    ) -> ConsumptionResult:
        """
        Consume `quantity` of a product oldest-lot-first.

        Args:
            product_id: Product to consume
            quantity: Quantity requested (>= 0)
            reference: Sale, return, or adjustment the consumption belongs to
            strict: Raise instead of falling back when lots run short

        Returns:
            ConsumptionResult. In non-strict mode the records always add up
            to exactly `quantity`; used_fallback tells whether a legacy
            record was needed.

        Raises:
            ValidationError: On negative quantity or missing reference
            InsufficientLots: strict mode only, when lots cannot cover quantity
            StorageFailure: If a store fails
        """
        quantity = as_decimal(quantity)
        if quantity < 0:
            raise ValidationError(["Quantity cannot be negative"])
        # Records and lot balances are stored to QUANTITY_DECIMAL_PLACES.
        quantity = quantize_quantity(quantity)
        if not isinstance(reference, Reference):
            raise ValidationError(["A sale, return, or adjustment reference is required"])

        result = ConsumptionResult()
        if quantity == 0:
            return result

        consumption_date = today()
        remaining_to_consume = quantity

        for lot in self.lot_store.find_active_by_product(product_id):
            if remaining_to_consume <= 0:
                break

            draw = min(remaining_to_consume, as_decimal(lot.remaining_quantity))
            if draw <= 0:
                continue

            consumption = self._draw_from_lot(lot, draw, reference, consumption_date)
            result.consumptions.append(consumption)
            result.total_cost += consumption.total_cost
            remaining_to_consume -= draw

        if remaining_to_consume > 0:
            if strict:
                available = quantity - remaining_to_consume
                log_operation(
                    logger,
                    operation="consume",
                    outcome="insufficient_lots",
                    level=logging.WARNING,
                    product_id=product_id,
                    reference=str(reference),
                    requested=str(quantity),
                    available=str(available),
                )
                raise InsufficientLots(product_id, quantity, available)

            legacy = self._record_shortfall(
                product_id, remaining_to_consume, reference, consumption_date
            )
            result.consumptions.append(legacy)
            result.total_cost += legacy.total_cost
            result.used_fallback = True
            result.shortfall = remaining_to_consume

        result.avg_unit_cost = safe_divide(result.total_cost, quantity)

        log_operation(
            logger,
            operation="consume",
            outcome="success",
            product_id=product_id,
            reference=str(reference),
            quantity=str(quantity),
            lots_touched=len(result.consumptions) - (1 if result.used_fallback else 0),
            total_cost=str(result.total_cost),
        )
        return result

    def _draw_from_lot(
        self,
        lot: InventoryLot,
        draw: Decimal,
        reference: Reference,
        consumption_date: date,
    ) -> CostConsumption:
        """Write one consumption record and decrement its lot."""
        unit_cost = as_decimal(lot.unit_cost)
        consumption = self.consumption_store.add(
            CostConsumption(
                **reference.as_columns(),
                lot_id=lot.id,
                product_id=lot.product_id,
                quantity=draw,
                unit_cost=unit_cost,
                total_cost=quantize_cost(draw * unit_cost),
                consumption_date=consumption_date,
            )
        )

        new_remaining = as_decimal(lot.remaining_quantity) - draw
        depleted = new_remaining == 0
        self.lot_store.update(
            lot.id,
            remaining_quantity=new_remaining,
            status=LotStatus.DEPLETED.value if depleted else LotStatus.ACTIVE.value,
            depleted_at=utc_now() if depleted else None,
        )

        self.audit.record(
            AuditEvent(
                action=AUDIT_CONSUMPTION,
                entity_type=AUDIT_ENTITY_FIFO_LOT,
                entity_id=lot.id,
                details={
                    "product_id": lot.product_id,
                    "quantity": draw,
                    "unit_cost": unit_cost,
                    "remaining": new_remaining,
                    reference.column_name: reference.id,
                },
            )
        )
        return consumption

    def _record_shortfall(
        self,
        product_id: int,
        shortfall: Decimal,
        reference: Reference,
        consumption_date: date,
    ) -> CostConsumption:
        """Write the legacy (no lot) record covering what the lots could not."""
        product = self.product_store.get(product_id)
        unit_cost = quantize_cost(self.cost_ex_tax(product)) if product is not None else ZERO

        legacy = self.consumption_store.add(
            CostConsumption(
                **reference.as_columns(),
                lot_id=None,
                product_id=product_id,
                quantity=shortfall,
                unit_cost=unit_cost,
                total_cost=quantize_cost(shortfall * unit_cost),
                consumption_date=consumption_date,
            )
        )

        log_operation(
            logger,
            operation="consume",
            outcome="legacy_fallback",
            level=logging.WARNING,
            product_id=product_id,
            reference=str(reference),
            shortfall=str(shortfall),
            unit_cost=str(unit_cost),
        )
        self.audit.record(
            AuditEvent(
                action=AUDIT_LEGACY_FALLBACK,
                entity_type=AUDIT_ENTITY_COST_CONSUMPTION,
                entity_id=legacy.id,
                details={
                    "product_id": product_id,
                    "lot_id": LEGACY_NO_LOT,
                    "quantity": shortfall,
                    "unit_cost": unit_cost,
                    reference.column_name: reference.id,
                },
            )
        )
        return legacy

    def consume_many(
        self,
        lines: List[Tuple[int, Decimal]],
        reference: Reference,
        strict: bool = False,
    ) -> List[ConsumptionResult]:
        """
        Consume several (product_id, quantity) lines under one reference.

        Lines are processed in order with no cross-line atomicity: if a line
        fails, lines before it stay consumed.
        """
        return [
            self.consume(product_id, quantity, reference, strict=strict)
            for product_id, quantity in lines
        ]
