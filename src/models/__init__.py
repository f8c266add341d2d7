"""
Database models package.

This package contains all SQLAlchemy ORM models for the ledger.
"""

from .base import Base, BaseModel
from .enums import LotStatus, ReferenceKind
from .reference import Reference
from .product import Product
from .sale import Sale
from .inventory_lot import InventoryLot
from .cost_consumption import CostConsumption
from .accounting_audit_entry import AccountingAuditEntry

__all__ = [
    "Base",
    "BaseModel",
    # Enums and value types
    "LotStatus",
    "ReferenceKind",
    "Reference",
    # Collaborator data
    "Product",
    "Sale",
    # Ledger
    "InventoryLot",
    "CostConsumption",
    "AccountingAuditEntry",
]
