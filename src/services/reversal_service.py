"""Reversal Service - undoing FIFO consumption.

Two entry points:

- revert_consumption(reference): full reversal when a sale is voided (or a
  return/adjustment is cancelled). Every record under the reference is
  removed and its quantity goes back to its lot.
- restore_consumption_for_return(sale_id, product_id, quantity): partial
  reversal for a partial return. Records are restored oldest-created first,
  mirroring the order the sale drew them.

Lot restoration is the same for both: remaining_quantity grows by the
restored amount and the lot becomes ACTIVE again (a restored lot is never
left DEPLETED with stock). Legacy records (no lot) have nothing to restore;
they are only shrunk or deleted.
"""

import logging
from decimal import Decimal
from typing import Optional

from ..models import CostConsumption, LotStatus, Reference
from ..utils.constants import (
    AUDIT_CONSUMPTION_RESTORED,
    AUDIT_CONSUMPTION_REVERTED,
    AUDIT_ENTITY_COST_CONSUMPTION,
    ZERO,
)
from .audit_service import AuditEvent, AuditRecorder
from .dto import (
    RestoreResult,
    ReversalResult,
    as_decimal,
    quantize_cost,
    quantize_quantity,
    safe_divide,
)
from .exceptions import ValidationError
from .logging_utils import get_service_logger, log_operation
from .stores import ConsumptionStore, LotStore

logger = get_service_logger(__name__)


class ReversalEngine:
    """
    Restores lot balances and removes or shrinks consumption records.

    Args:
        lot_store: Lots to restore into
        consumption_store: Consumption records to remove or shrink
        audit: Audit recorder (default: drops events)
    """

    def __init__(
        self,
        lot_store: LotStore,
        consumption_store: ConsumptionStore,
        audit: Optional[AuditRecorder] = None,
    ):
        self.lot_store = lot_store
        self.consumption_store = consumption_store
        self.audit = audit or AuditRecorder()

    def _restore_lot(self, consumption: CostConsumption, quantity: Decimal) -> None:
        """Give `quantity` back to the consumption's lot, if it has one."""
        if consumption.is_legacy:
            return

        lot = self.lot_store.get(consumption.lot_id)
        if lot is None:
            log_operation(
                logger,
                operation="restore_lot",
                outcome="lot_missing",
                level=logging.WARNING,
                lot_id=consumption.lot_id,
                consumption_id=consumption.id,
            )
            return

        self.lot_store.update(
            lot.id,
            remaining_quantity=as_decimal(lot.remaining_quantity) + quantity,
            status=LotStatus.ACTIVE.value,
            depleted_at=None,
        )

    def revert_consumption(self, reference: Reference) -> ReversalResult:
        """
        Fully reverse everything recorded under one reference.

        Args:
            reference: The sale, return, or adjustment to undo

        Returns:
            ReversalResult with the quantity returned to lots, the cost of all
            removed records, and how many records were removed

        Raises:
            ValidationError: If reference is not a Reference
            StorageFailure: If a store fails
        """
        if not isinstance(reference, Reference):
            raise ValidationError(["A sale, return, or adjustment reference is required"])

        result = ReversalResult()
        for consumption in self.consumption_store.find_by_reference(reference):
            quantity = as_decimal(consumption.quantity)
            self._restore_lot(consumption, quantity)
            if not consumption.is_legacy:
                result.restored += quantity
            result.total_cost += as_decimal(consumption.total_cost)

            self.consumption_store.delete(consumption.id)
            result.records_removed += 1

        if result.records_removed:
            self.audit.record(
                AuditEvent(
                    action=AUDIT_CONSUMPTION_REVERTED,
                    entity_type=AUDIT_ENTITY_COST_CONSUMPTION,
                    entity_id=str(reference),
                    details={
                        "records_removed": result.records_removed,
                        "restored": result.restored,
                        "total_cost": result.total_cost,
                    },
                )
            )

        log_operation(
            logger,
            operation="revert_consumption",
            outcome="success" if result.records_removed else "nothing_to_revert",
            reference=str(reference),
            records_removed=result.records_removed,
            restored=str(result.restored),
        )
        return result

    def restore_consumption_for_return(
        self,
        sale_id: int,
        product_id: int,
        quantity: Decimal,
    ) -> RestoreResult:
        """
        Partially reverse a sale's consumption of one product.

        Walks the sale's records for the product oldest-created first,
        restoring min(still to restore, record quantity) from each. A fully
        restored record is deleted; a partially restored one has its
        quantity and total_cost reduced (unit cost unchanged).

        Args:
            sale_id: Sale being returned against
            product_id: Product returned
            quantity: Quantity returned

        Returns:
            RestoreResult; restored is less than quantity when the sale
            consumed less than that

        Raises:
            ValidationError: On negative quantity
            StorageFailure: If a store fails
        """
        quantity = as_decimal(quantity)
        if quantity < 0:
            raise ValidationError(["Quantity cannot be negative"])
        quantity = quantize_quantity(quantity)

        result = RestoreResult()
        remaining = quantity

        for consumption in self.consumption_store.find_by_sale_and_product(sale_id, product_id):
            if remaining <= 0:
                break

            record_quantity = as_decimal(consumption.quantity)
            restore_qty = min(remaining, record_quantity)
            fully_restored = restore_qty == record_quantity
            if fully_restored:
                restore_cost = as_decimal(consumption.total_cost)
            else:
                restore_cost = quantize_cost(consumption.cost_of(restore_qty))

            self._restore_lot(consumption, restore_qty)

            if fully_restored:
                self.consumption_store.delete(consumption.id)
            else:
                self.consumption_store.update(
                    consumption.id,
                    quantity=record_quantity - restore_qty,
                    total_cost=as_decimal(consumption.total_cost) - restore_cost,
                )

            result.restored += restore_qty
            result.total_cost += restore_cost
            remaining -= restore_qty

        result.avg_unit_cost = safe_divide(result.total_cost, result.restored)

        if result.restored > ZERO:
            self.audit.record(
                AuditEvent(
                    action=AUDIT_CONSUMPTION_RESTORED,
                    entity_type=AUDIT_ENTITY_COST_CONSUMPTION,
                    entity_id=str(Reference.sale(sale_id)),
                    details={
                        "product_id": product_id,
                        "requested": quantity,
                        "restored": result.restored,
                        "total_cost": result.total_cost,
                    },
                )
            )

        log_operation(
            logger,
            operation="restore_consumption_for_return",
            outcome="success" if result.restored == quantity else "partial",
            sale_id=sale_id,
            product_id=product_id,
            requested=str(quantity),
            restored=str(result.restored),
        )
        return result
