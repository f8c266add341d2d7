"""
CostConsumption model for tracking withdrawals from inventory lots.

Each record is one atomic draw of a quantity from one lot (or, for products
without enough lot coverage, from no lot at all) attributed to exactly one
sale, return, or adjustment. Records are the join key for reversals and the
source of cost-of-goods-sold reporting.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Column,
    Integer,
    Date,
    ForeignKey,
    Index,
    Numeric,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import ReferenceKind
from .reference import Reference
from src.utils.constants import (
    COST_DECIMAL_PLACES,
    LEGACY_NO_LOT,
    QUANTITY_DECIMAL_PLACES,
    TABLE_COST_CONSUMPTIONS,
)
from src.utils.datetime_utils import today


class CostConsumption(BaseModel):
    """
    CostConsumption model.

    Attributes:
        sale_id / return_id / adjustment_id: Source document (exactly one set)
        lot_id: Lot drawn from; NULL when no lot could cover the draw
        product_id: Product consumed
        quantity: Quantity drawn (positive)
        unit_cost: Tax-exclusive unit cost copied from the lot at draw time
        total_cost: quantity * unit_cost
        consumption_date: Calendar day of the draw
        created_at: Creation timestamp (draw order within a reference)

    Relationships:
        lot: The InventoryLot drawn from (None for legacy draws)

    Note:
        unit_cost is never recomputed. Partial returns shrink quantity and
        total_cost together.
    """

    __tablename__ = TABLE_COST_CONSUMPTIONS

    sale_id = Column(Integer, nullable=True, index=True)
    return_id = Column(Integer, nullable=True, index=True)
    adjustment_id = Column(Integer, nullable=True, index=True)

    lot_id = Column(
        Integer, ForeignKey("inventory_lots.id", ondelete="RESTRICT"), nullable=True, index=True
    )
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    quantity = Column(Numeric(12, QUANTITY_DECIMAL_PLACES), nullable=False)
    unit_cost = Column(Numeric(12, COST_DECIMAL_PLACES), nullable=False)
    total_cost = Column(Numeric(14, COST_DECIMAL_PLACES), nullable=False)

    consumption_date = Column(Date, nullable=False, default=today, index=True)

    lot = relationship("InventoryLot", back_populates="consumptions")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_consumption_quantity_positive"),
        CheckConstraint("unit_cost >= 0", name="ck_consumption_unit_cost_non_negative"),
        CheckConstraint(
            "(CASE WHEN sale_id IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN return_id IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN adjustment_id IS NOT NULL THEN 1 ELSE 0 END) = 1",
            name="ck_consumption_single_reference",
        ),
        Index("idx_consumption_sale_product", "sale_id", "product_id"),
        Index("idx_consumption_date", "consumption_date"),
    )

    def __repr__(self) -> str:
        """String representation of cost consumption."""
        return (
            f"CostConsumption(id={self.id}, "
            f"ref={self.reference}, "
            f"lot_id={self.lot_id if self.lot_id is not None else LEGACY_NO_LOT}, "
            f"quantity={self.quantity})"
        )

    @property
    def is_legacy(self) -> bool:
        """True if this draw was not taken from a real lot."""
        return self.lot_id is None

    @property
    def reference(self) -> Optional[Reference]:
        """The source document this consumption is attributed to."""
        for kind in ReferenceKind:
            value = getattr(self, kind.column_name)
            if value is not None:
                return Reference(kind, value)
        return None

    @property
    def lot_label(self) -> str:
        """Lot id as text, or LEGACY_NO_LOT for legacy draws."""
        return LEGACY_NO_LOT if self.is_legacy else str(self.lot_id)

    def cost_of(self, quantity: Decimal) -> Decimal:
        """Cost of `quantity` units at this record's unit cost."""
        return Decimal(quantity) * Decimal(self.unit_cost)

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert consumption to dictionary.

        Args:
            include_relationships: If True, include the lot

        Returns:
            Dictionary representation; legacy draws report lot_id as LEGACY_NO_LOT
        """
        result = super().to_dict(include_relationships)
        result["lot_id"] = self.lot_label
        return result
