"""
Sale model.

A register sale, grouped into a shift. The ledger only needs the sale id
and its shift to total cost of goods sold at shift close.
"""

from sqlalchemy import Column, Integer, Date, Numeric, Index

from .base import BaseModel
from src.utils.constants import TABLE_SALES
from src.utils.datetime_utils import today


class Sale(BaseModel):
    """
    Sale model.

    Attributes:
        shift_id: Cash-register shift the sale belongs to
        sale_date: Calendar day of the sale
        total: Sale total as charged
    """

    __tablename__ = TABLE_SALES

    shift_id = Column(Integer, nullable=False, index=True)
    sale_date = Column(Date, nullable=False, default=today)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    __table_args__ = (Index("idx_sale_shift", "shift_id"),)

    def __repr__(self) -> str:
        """String representation of sale."""
        return f"Sale(id={self.id}, shift_id={self.shift_id}, total={self.total})"
