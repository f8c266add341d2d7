"""
Enumerations for FIFO cost tracking.

This module contains enums used across ledger models and services:
- LotStatus: Lifecycle state of an inventory lot
- ReferenceKind: Source document type that caused a consumption
"""

from enum import Enum


class LotStatus(str, Enum):
    """
    Inventory lot lifecycle status.

    Transitions:
        ACTIVE -> DEPLETED: remaining quantity reaches zero through consumption
        DEPLETED -> ACTIVE: a reversal restores remaining quantity above zero
        ACTIVE -> EXPIRED: explicit marking (terminal)

    Values:
        ACTIVE: Lot can be drawn from
        DEPLETED: Lot fully consumed
        EXPIRED: Lot written off; never drawn from again
    """

    ACTIVE = "active"
    DEPLETED = "depleted"
    EXPIRED = "expired"


class ReferenceKind(str, Enum):
    """
    Kind of source document a consumption is attributed to.

    The value names the consumption column that stores the reference id.
    """

    SALE = "sale"
    RETURN = "return"
    ADJUSTMENT = "adjustment"

    @property
    def column_name(self) -> str:
        return f"{self.value}_id"
