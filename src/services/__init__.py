"""Services package - costing logic for the FIFO Cost Ledger.

Architecture:
- Stores: persistence behind small protocols (stores.py), SQLAlchemy-backed
- Components: classes taking their stores as constructor dependencies
- Transactions: each store call is its own session_scope() unit of work
- Exceptions: consistent error handling via the ServiceError hierarchy
- Audit: best-effort structured audit events (audit_service.py)

Service Modules:
- lot_service: LotManager - lot creation, FIFO and average cost, availability
- consumption_service: ConsumptionEngine - FIFO consumption with fallback
- reversal_service: ReversalEngine - full and partial consumption reversal
- expiration_service: ExpirationTracker - expiring/expired lots
- valuation_service: ValuationReporter - inventory valuation and COGS
- lot_migration_service: legacy stock to INITIAL lots
- fifo_ledger: FifoLedger wiring and get_ledger()

Infrastructure:
- database: Session management and database utilities
- exceptions: Custom exception classes for service layer errors
- tax_service: Tax-exclusive cost helpers
- logging_utils: Structured service logging
"""

from . import database

from .audit_service import AuditEvent, AuditRecorder, AuditSink, SqlAuditSink, get_audit_log
from .consumption_service import ConsumptionEngine
from .dto import (
    ConsumptionResult,
    InventoryValuation,
    PeriodCOGS,
    ProductCOGS,
    ProductValuation,
    RestoreResult,
    ReversalResult,
)
from .exceptions import (
    DatabaseError,
    InsufficientLots,
    LotNotFound,
    ServiceError,
    StorageFailure,
    ValidationError,
)
from .expiration_service import ExpirationTracker
from .fifo_ledger import FifoLedger, get_ledger, reset_ledger
from .lot_migration_service import create_initial_lots_for_existing_products
from .lot_service import LotManager
from .reversal_service import ReversalEngine
from .stores import (
    ConsumptionStore,
    LotStore,
    ProductStore,
    SaleStore,
    SqlConsumptionStore,
    SqlLotStore,
    SqlProductStore,
    SqlSaleStore,
)
from .tax_service import price_with_tax, price_without_tax, product_cost_ex_tax
from .valuation_service import ValuationReporter

__all__ = [
    "database",
    # Components
    "LotManager",
    "ConsumptionEngine",
    "ReversalEngine",
    "ExpirationTracker",
    "ValuationReporter",
    "FifoLedger",
    "get_ledger",
    "reset_ledger",
    "create_initial_lots_for_existing_products",
    # Stores
    "LotStore",
    "ConsumptionStore",
    "ProductStore",
    "SaleStore",
    "SqlLotStore",
    "SqlConsumptionStore",
    "SqlProductStore",
    "SqlSaleStore",
    # Audit
    "AuditEvent",
    "AuditRecorder",
    "AuditSink",
    "SqlAuditSink",
    "get_audit_log",
    # Results
    "ConsumptionResult",
    "RestoreResult",
    "ReversalResult",
    "ProductValuation",
    "InventoryValuation",
    "ProductCOGS",
    "PeriodCOGS",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "LotNotFound",
    "InsufficientLots",
    "DatabaseError",
    "StorageFailure",
    # Tax
    "price_without_tax",
    "price_with_tax",
    "product_cost_ex_tax",
]
