"""FIFO Ledger - wiring of the costing services.

FifoLedger builds every costing component over one set of stores and one
audit recorder, so callers get a consistent view without reaching for
global state inside the components themselves.

Example Usage:
    >>> ledger = get_ledger()
    >>> lot = ledger.lots.add_lot(12, Decimal("24"), Decimal("35.50"), Decimal("0.18"))
    >>> result = ledger.consumption.consume(12, Decimal("5"), Reference.sale(5001))
    >>> ledger.reversal.revert_consumption(Reference.sale(5001))
    >>> ledger.valuation.get_product_inventory_valuation(12).total_quantity
    Decimal('24')
"""

from typing import Optional

from .audit_service import AuditRecorder, AuditSink, SqlAuditSink
from .consumption_service import ConsumptionEngine
from .expiration_service import ExpirationTracker
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
from .valuation_service import ValuationReporter


class FifoLedger:
    """
    Costing components sharing one set of stores.

    Attributes:
        lots: LotManager
        consumption: ConsumptionEngine
        reversal: ReversalEngine
        expiration: ExpirationTracker
        valuation: ValuationReporter
    """

    def __init__(
        self,
        lot_store: LotStore,
        consumption_store: ConsumptionStore,
        product_store: ProductStore,
        sale_store: SaleStore,
        audit_sink: Optional[AuditSink] = None,
    ):
        self.lot_store = lot_store
        self.consumption_store = consumption_store
        self.product_store = product_store
        self.sale_store = sale_store
        self.audit = AuditRecorder(audit_sink)

        self.lots = LotManager(lot_store, product_store, audit=self.audit)
        self.consumption = ConsumptionEngine(
            lot_store, consumption_store, product_store, audit=self.audit
        )
        self.reversal = ReversalEngine(lot_store, consumption_store, audit=self.audit)
        self.expiration = ExpirationTracker(lot_store, audit=self.audit)
        self.valuation = ValuationReporter(lot_store, consumption_store, sale_store)

    @classmethod
    def with_sql_stores(cls, audit_sink: Optional[AuditSink] = None) -> "FifoLedger":
        """Ledger over the SQLAlchemy stores; audit goes to the database by default."""
        return cls(
            lot_store=SqlLotStore(),
            consumption_store=SqlConsumptionStore(),
            product_store=SqlProductStore(),
            sale_store=SqlSaleStore(),
            audit_sink=audit_sink if audit_sink is not None else SqlAuditSink(),
        )

    def migrate_legacy_stock(self) -> int:
        """Create INITIAL lots for products that only have legacy stock."""
        return create_initial_lots_for_existing_products(
            self.lots, self.lot_store, self.product_store
        )


_ledger_instance: Optional[FifoLedger] = None


def get_ledger() -> FifoLedger:
    """
    Get the application ledger over the default SQL stores.

    Returns:
        FifoLedger instance (created on first call)
    """
    global _ledger_instance

    if _ledger_instance is None:
        _ledger_instance = FifoLedger.with_sql_stores()

    return _ledger_instance


def reset_ledger() -> None:
    """
    Drop the application ledger instance.

    Useful for testing.
    """
    global _ledger_instance
    _ledger_instance = None
