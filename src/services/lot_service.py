"""Lot Service - inventory lot creation and FIFO cost queries.

LotManager owns the lot lifecycle: it creates lots when goods are received
and answers "what do we have, and at what cost" for a product.

FIFO contract:
    get_active_lots() returns lots with status ACTIVE and remaining quantity
    above zero, ordered by purchase_date ascending, ties broken by creation
    order. Every consumer of lots relies on this order.

Cost fallback chain (get_fifo_cost, get_weighted_average_cost):
    active lots -> product's tax-exclusive last price -> 0

Example Usage:
    >>> manager = LotManager(SqlLotStore(), SqlProductStore())
    >>> lot = manager.add_lot(
    ...     product_id=12,
    ...     quantity=Decimal("24"),
    ...     unit_cost_ex_tax=Decimal("35.50"),
    ...     tax_rate=Decimal("0.18"),
    ...     invoice_id=901,
    ...     expiration_date=date(2026, 3, 1),
    ... )
    >>> manager.get_fifo_cost(12)
    Decimal('35.5000')
"""

from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional

from ..models import InventoryLot, LotStatus, Product
from ..utils.constants import AUDIT_ENTITY_FIFO_LOT, AUDIT_LOT_CREATED, ZERO
from ..utils.datetime_utils import today
from .audit_service import AuditEvent, AuditRecorder
from .dto import as_decimal, quantize_cost, quantize_quantity, quantize_rate, safe_divide
from .exceptions import LotNotFound, ValidationError
from .logging_utils import get_service_logger, log_operation
from .stores import LotStore, ProductStore
from .tax_service import product_cost_ex_tax

logger = get_service_logger(__name__)

CostFunction = Callable[[Product], Decimal]


class LotManager:
    """
    Creates inventory lots and reports per-product FIFO cost and availability.

    Args:
        lot_store: Where lots are persisted
        product_store: Product lookups for the cost and stock fallbacks
        audit: Audit recorder (default: drops events)
        cost_ex_tax: Tax-exclusive product cost function
    """

    def __init__(
        self,
        lot_store: LotStore,
        product_store: ProductStore,
        audit: Optional[AuditRecorder] = None,
        cost_ex_tax: CostFunction = product_cost_ex_tax,
    ):
        self.lot_store = lot_store
        self.product_store = product_store
        self.audit = audit or AuditRecorder()
        self.cost_ex_tax = cost_ex_tax

    def add_lot(
        self,
        product_id: int,
        quantity: Decimal,
        unit_cost_ex_tax: Decimal,
        tax_rate: Decimal,
        invoice_id: Optional[int] = None,
        receipt_id: Optional[int] = None,
        lot_number: Optional[str] = None,
        expiration_date: Optional[date] = None,
        purchase_date: Optional[date] = None,
    ) -> InventoryLot:
        """Create and persist a new ACTIVE lot.

        Args:
            product_id: Product received
            quantity: Quantity received (must be > 0)
            unit_cost_ex_tax: Tax-exclusive unit cost (>= 0)
            tax_rate: Tax rate on the purchase (>= 0)
            invoice_id: Source invoice, if any
            receipt_id: Source goods receipt, if any
            lot_number: Lot number, if any
            expiration_date: Expiration day (not before purchase_date)
            purchase_date: Receipt day (defaults to today)

        Returns:
            The persisted lot with remaining_quantity == original_quantity

        Raises:
            ValidationError: On non-positive quantity, negative cost or rate,
                or expiration before purchase
            StorageFailure: If the lot store fails
        """
        quantity = quantize_quantity(quantity)
        unit_cost = quantize_cost(unit_cost_ex_tax)
        tax_rate = quantize_rate(tax_rate)
        actual_purchase_date = purchase_date or today()

        errors = []
        if quantity <= 0:
            errors.append("Quantity must be positive")
        if unit_cost < 0:
            errors.append("Unit cost cannot be negative")
        if tax_rate < 0:
            errors.append("Tax rate cannot be negative")
        if expiration_date and expiration_date < actual_purchase_date:
            errors.append("Expiration date cannot be before purchase date")
        if errors:
            raise ValidationError(errors)

        lot = self.lot_store.add(
            InventoryLot(
                product_id=product_id,
                invoice_id=invoice_id,
                receipt_id=receipt_id,
                lot_number=lot_number,
                purchase_date=actual_purchase_date,
                expiration_date=expiration_date,
                original_quantity=quantity,
                remaining_quantity=quantity,
                unit_cost=unit_cost,
                unit_cost_inc_tax=quantize_cost(unit_cost * (1 + tax_rate)),
                tax_rate=tax_rate,
                status=LotStatus.ACTIVE.value,
            )
        )

        self.audit.record(
            AuditEvent(
                action=AUDIT_LOT_CREATED,
                entity_type=AUDIT_ENTITY_FIFO_LOT,
                entity_id=lot.id,
                details={
                    "product_id": product_id,
                    "quantity": quantity,
                    "unit_cost_ex_tax": unit_cost,
                    "tax_rate": tax_rate,
                },
            )
        )
        log_operation(
            logger,
            operation="add_lot",
            outcome="success",
            lot_id=lot.id,
            product_id=product_id,
            quantity=str(quantity),
        )
        return lot

    def get_lot(self, lot_id: int) -> InventoryLot:
        """Fetch a lot by id, raising LotNotFound if it doesn't exist."""
        lot = self.lot_store.get(lot_id)
        if lot is None:
            raise LotNotFound(lot_id)
        return lot

    def get_lots(self, product_id: int) -> List[InventoryLot]:
        """All lots of a product in any status, FIFO ordered."""
        return self.lot_store.find_by_product(product_id)

    def get_active_lots(self, product_id: int) -> List[InventoryLot]:
        """Active lots with stock left, oldest first."""
        return self.lot_store.find_active_by_product(product_id)

    def _fallback_cost(self, product_id: int) -> Decimal:
        product = self.product_store.get(product_id)
        if product is None:
            return ZERO
        return as_decimal(self.cost_ex_tax(product))

    def get_fifo_cost(self, product_id: int) -> Decimal:
        """
        Current FIFO unit cost: the cost of the oldest active lot.

        Falls back to the product's tax-exclusive cost, then 0.
        """
        lots = self.get_active_lots(product_id)
        if lots:
            return as_decimal(lots[0].unit_cost)
        return self._fallback_cost(product_id)

    def get_weighted_average_cost(self, product_id: int) -> Decimal:
        """
        Remaining-quantity-weighted average unit cost over active lots.

        Falls back to the product's tax-exclusive cost, then 0.
        """
        lots = self.get_active_lots(product_id)
        if not lots:
            return self._fallback_cost(product_id)

        total_value = sum((as_decimal(lot.remaining_value) for lot in lots), ZERO)
        total_quantity = sum((as_decimal(lot.remaining_quantity) for lot in lots), ZERO)
        return safe_divide(total_value, total_quantity)

    def get_available_quantity(self, product_id: int) -> Decimal:
        """
        Quantity on hand for a product.

        Sum of active lot balances when the product has any; otherwise the
        product's legacy current_stock (products never migrated to lots).
        """
        lots = self.get_active_lots(product_id)
        if lots:
            return sum((as_decimal(lot.remaining_quantity) for lot in lots), ZERO)

        product = self.product_store.get(product_id)
        if product is None:
            return ZERO
        return as_decimal(product.current_stock or 0)
