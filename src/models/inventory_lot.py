"""
InventoryLot model for FIFO cost tracking.

Each lot is one batch of a product received at a single cost on a single
day. Lots are consumed in purchase_date order (oldest first) and are never
deleted: a fully drawn lot stays behind as DEPLETED for the audit trail.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import LotStatus
from src.utils.constants import (
    COST_DECIMAL_PLACES,
    QUANTITY_DECIMAL_PLACES,
    TAX_RATE_DECIMAL_PLACES,
    TABLE_INVENTORY_LOTS,
)
from src.utils.datetime_utils import today


class InventoryLot(BaseModel):
    """
    InventoryLot model representing one received batch of stock.

    Attributes:
        product_id: Foreign key to Product
        invoice_id: Source supplier invoice (optional)
        receipt_id: Source goods receipt (optional)
        lot_number: Supplier or internal lot number (optional)
        purchase_date: Day the lot was received (FIFO sort key)
        expiration_date: Day the lot expires (optional)
        original_quantity: Quantity received (IMMUTABLE)
        remaining_quantity: Quantity not yet consumed (MUTABLE)
        unit_cost: Tax-exclusive cost per unit (IMMUTABLE)
        unit_cost_inc_tax: unit_cost including tax_rate (derived at creation)
        tax_rate: Tax rate applicable to the purchase
        status: LotStatus value
        depleted_at: When the lot was depleted or expired

    Relationships:
        product: Many-to-One with Product
        consumptions: One-to-Many with CostConsumption
    """

    __tablename__ = TABLE_INVENTORY_LOTS

    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Provenance
    invoice_id = Column(Integer, nullable=True)
    receipt_id = Column(Integer, nullable=True)
    lot_number = Column(String(100), nullable=True)

    purchase_date = Column(Date, nullable=False, default=today, index=True)
    expiration_date = Column(Date, nullable=True, index=True)

    original_quantity = Column(Numeric(12, QUANTITY_DECIMAL_PLACES), nullable=False)
    remaining_quantity = Column(Numeric(12, QUANTITY_DECIMAL_PLACES), nullable=False)

    unit_cost = Column(Numeric(12, COST_DECIMAL_PLACES), nullable=False)
    unit_cost_inc_tax = Column(Numeric(12, COST_DECIMAL_PLACES), nullable=False)
    tax_rate = Column(Numeric(6, TAX_RATE_DECIMAL_PLACES), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=LotStatus.ACTIVE.value, index=True)
    depleted_at = Column(DateTime, nullable=True)

    product = relationship("Product", back_populates="lots")
    consumptions = relationship("CostConsumption", back_populates="lot")

    __table_args__ = (
        CheckConstraint("original_quantity > 0", name="ck_lot_original_quantity_positive"),
        CheckConstraint("remaining_quantity >= 0", name="ck_lot_remaining_non_negative"),
        CheckConstraint("unit_cost >= 0", name="ck_lot_unit_cost_non_negative"),
        CheckConstraint(
            "status IN ('active', 'depleted', 'expired')", name="ck_lot_status_valid"
        ),
        Index("idx_lot_product_status", "product_id", "status"),
        Index("idx_lot_purchase_date", "purchase_date"),
        Index("idx_lot_expiration", "expiration_date"),
    )

    def __repr__(self) -> str:
        """String representation of inventory lot."""
        return (
            f"InventoryLot(id={self.id}, "
            f"product_id={self.product_id}, "
            f"remaining={self.remaining_quantity}/{self.original_quantity}, "
            f"status='{self.status}')"
        )

    @property
    def is_active(self) -> bool:
        """True if the lot can still be drawn from."""
        return self.status == LotStatus.ACTIVE.value and self.remaining_quantity > 0

    @property
    def consumed_quantity(self) -> Decimal:
        """Quantity drawn from this lot so far."""
        return Decimal(self.original_quantity) - Decimal(self.remaining_quantity)

    @property
    def remaining_value(self) -> Decimal:
        """Tax-exclusive value of what is left in the lot."""
        return Decimal(self.remaining_quantity) * Decimal(self.unit_cost)

    def is_expired(self, as_of: Optional[date] = None) -> bool:
        """
        Check whether the expiration date has passed.

        Args:
            as_of: Day to compare against (default: today)

        Returns:
            True if expiration_date is before as_of
        """
        if not self.expiration_date:
            return False
        return self.expiration_date < (as_of or today())

    def days_until_expiration(self, as_of: Optional[date] = None) -> Optional[int]:
        """
        Days until expiration.

        Returns:
            Days until expiration (negative once expired), or None without an
            expiration date
        """
        if not self.expiration_date:
            return None
        return (self.expiration_date - (as_of or today())).days

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert lot to dictionary with calculated fields.

        Args:
            include_relationships: If True, include related objects

        Returns:
            Dictionary representation
        """
        result = super().to_dict(include_relationships)
        result["remaining_value"] = str(self.remaining_value)
        result["days_until_expiration"] = self.days_until_expiration()
        return result
