"""
Product model for items sold at the register.

Only the fields the cost ledger reads are modelled here: the last purchase
price (and whether it includes tax) used as a fallback cost, and the legacy
on-hand stock used for products that predate lot tracking.
"""

from sqlalchemy import Column, String, Boolean, Date, Numeric, Index
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import COST_DECIMAL_PLACES, QUANTITY_DECIMAL_PLACES, TABLE_PRODUCTS


class Product(BaseModel):
    """
    Product model.

    Attributes:
        name: Display name
        last_price: Most recent purchase price (cost)
        cost_includes_tax: Whether last_price includes tax (default True)
        cost_tax_rate: Tax rate on cost (None means the configured default)
        current_stock: Legacy on-hand quantity, used when no lots exist
        last_stock_update: Date current_stock was last changed
        last_purchase_date: Date of the most recent purchase

    Relationships:
        lots: InventoryLots received for this product
    """

    __tablename__ = TABLE_PRODUCTS

    name = Column(String(200), nullable=False, index=True)

    last_price = Column(Numeric(12, COST_DECIMAL_PLACES), nullable=False, default=0)
    cost_includes_tax = Column(Boolean, nullable=False, default=True)
    cost_tax_rate = Column(Numeric(6, 4), nullable=True)

    current_stock = Column(Numeric(12, QUANTITY_DECIMAL_PLACES), nullable=False, default=0)
    last_stock_update = Column(Date, nullable=True)
    last_purchase_date = Column(Date, nullable=True)

    lots = relationship("InventoryLot", back_populates="product")

    __table_args__ = (Index("idx_product_name", "name"),)

    def __repr__(self) -> str:
        """String representation of product."""
        return f"Product(id={self.id}, name='{self.name}', current_stock={self.current_stock})"
