"""Record stores for the FIFO Cost Ledger.

The costing services never touch sessions directly. They receive stores as
constructor dependencies and talk to them through the protocols below:

- LotStore: inventory lots, queried by product/status, FIFO ordered
- ConsumptionStore: cost consumption records, queried by reference, sale,
  lot, or date range
- ProductStore: read-only product lookups (fallback cost, legacy stock)
- SaleStore: read-only sale lookups (shift membership)

The Sql* classes implement the protocols on SQLAlchemy. Every call runs in
its own session_scope(), so each write is committed individually; a failure
part way through a multi-step operation leaves earlier writes in place.
Any SQLAlchemyError is re-raised as StorageFailure.

Returned records are detached (sessions use expire_on_commit=False). Treat
them as snapshots: after update(), use the returned record, not the one you
held before.
"""

from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, ContextManager, Iterable, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import CostConsumption, InventoryLot, LotStatus, Product, Reference, Sale
from .database import session_scope
from .exceptions import StorageFailure

ScopeFactory = Callable[[], ContextManager[Session]]


# ============================================================================
# Protocols
# ============================================================================


class LotStore(Protocol):
    """Durable collection of InventoryLot records."""

    def add(self, lot: InventoryLot) -> InventoryLot: ...

    def get(self, lot_id: int) -> Optional[InventoryLot]: ...

    def update(self, lot_id: int, **fields: Any) -> Optional[InventoryLot]: ...

    def find_active_by_product(self, product_id: int) -> List[InventoryLot]: ...

    def find_by_product(self, product_id: int) -> List[InventoryLot]: ...

    def find_active(self) -> List[InventoryLot]: ...

    def find_active_expiring_between(self, start: date, end: date) -> List[InventoryLot]: ...

    def find_active_expired_before(self, day: date) -> List[InventoryLot]: ...

    def count_by_product(self, product_id: int) -> int: ...


class ConsumptionStore(Protocol):
    """Durable collection of CostConsumption records."""

    def add(self, consumption: CostConsumption) -> CostConsumption: ...

    def get(self, consumption_id: int) -> Optional[CostConsumption]: ...

    def update(self, consumption_id: int, **fields: Any) -> Optional[CostConsumption]: ...

    def delete(self, consumption_id: int) -> bool: ...

    def find_by_reference(self, reference: Reference) -> List[CostConsumption]: ...

    def find_by_sale_and_product(self, sale_id: int, product_id: int) -> List[CostConsumption]: ...

    def find_by_sale_ids(self, sale_ids: Iterable[int]) -> List[CostConsumption]: ...

    def find_by_date_range(self, start: date, end: date) -> List[CostConsumption]: ...

    def find_by_lot(self, lot_id: int) -> List[CostConsumption]: ...


class ProductStore(Protocol):
    """Read access to products."""

    def get(self, product_id: int) -> Optional[Product]: ...

    def all(self) -> List[Product]: ...


class SaleStore(Protocol):
    """Read access to sales."""

    def ids_for_shift(self, shift_id: int) -> List[int]: ...


# ============================================================================
# SQLAlchemy implementations
# ============================================================================


class _SqlStore:
    """Shared session handling for the SQL stores."""

    def __init__(self, scope: Optional[ScopeFactory] = None):
        self._scope = scope or session_scope

    @contextmanager
    def _session(self, operation: str):
        try:
            with self._scope() as session:
                yield session
        except SQLAlchemyError as e:
            raise StorageFailure(f"{type(self).__name__}.{operation} failed", original_error=e) from e

    @staticmethod
    def _apply(record: Any, fields: dict) -> None:
        for key, value in fields.items():
            if key in ("id", "uuid", "created_at"):
                raise ValueError(f"Field '{key}' cannot be updated")
            if not hasattr(record, key):
                raise ValueError(f"Unknown field '{key}' for {type(record).__name__}")
            setattr(record, key, value)


class SqlLotStore(_SqlStore):
    """LotStore backed by the inventory_lots table."""

    @staticmethod
    def _fifo_order(query):
        # Ties on purchase_date fall back to insertion order
        return query.order_by(InventoryLot.purchase_date.asc(), InventoryLot.id.asc())

    @staticmethod
    def _active(query):
        return query.filter(
            InventoryLot.status == LotStatus.ACTIVE.value,
            InventoryLot.remaining_quantity > 0,
        )

    def add(self, lot: InventoryLot) -> InventoryLot:
        with self._session("add") as session:
            session.add(lot)
            session.flush()
            return lot

    def get(self, lot_id: int) -> Optional[InventoryLot]:
        with self._session("get") as session:
            return session.query(InventoryLot).filter_by(id=lot_id).first()

    def update(self, lot_id: int, **fields: Any) -> Optional[InventoryLot]:
        with self._session("update") as session:
            lot = session.query(InventoryLot).filter_by(id=lot_id).first()
            if lot is None:
                return None
            self._apply(lot, fields)
            session.flush()
            return lot

    def find_active_by_product(self, product_id: int) -> List[InventoryLot]:
        with self._session("find_active_by_product") as session:
            query = session.query(InventoryLot).filter(InventoryLot.product_id == product_id)
            return self._fifo_order(self._active(query)).all()

    def find_by_product(self, product_id: int) -> List[InventoryLot]:
        with self._session("find_by_product") as session:
            query = session.query(InventoryLot).filter(InventoryLot.product_id == product_id)
            return self._fifo_order(query).all()

    def find_active(self) -> List[InventoryLot]:
        with self._session("find_active") as session:
            query = self._active(session.query(InventoryLot))
            return query.order_by(
                InventoryLot.product_id.asc(),
                InventoryLot.purchase_date.asc(),
                InventoryLot.id.asc(),
            ).all()

    def find_active_expiring_between(self, start: date, end: date) -> List[InventoryLot]:
        with self._session("find_active_expiring_between") as session:
            query = self._active(session.query(InventoryLot)).filter(
                InventoryLot.expiration_date.isnot(None),
                InventoryLot.expiration_date >= start,
                InventoryLot.expiration_date <= end,
            )
            return query.order_by(
                InventoryLot.expiration_date.asc(), InventoryLot.id.asc()
            ).all()

    def find_active_expired_before(self, day: date) -> List[InventoryLot]:
        with self._session("find_active_expired_before") as session:
            query = self._active(session.query(InventoryLot)).filter(
                InventoryLot.expiration_date.isnot(None),
                InventoryLot.expiration_date < day,
            )
            return query.order_by(
                InventoryLot.expiration_date.asc(), InventoryLot.id.asc()
            ).all()

    def count_by_product(self, product_id: int) -> int:
        with self._session("count_by_product") as session:
            return session.query(InventoryLot).filter(InventoryLot.product_id == product_id).count()


class SqlConsumptionStore(_SqlStore):
    """ConsumptionStore backed by the cost_consumptions table."""

    @staticmethod
    def _creation_order(query):
        return query.order_by(CostConsumption.created_at.asc(), CostConsumption.id.asc())

    def add(self, consumption: CostConsumption) -> CostConsumption:
        with self._session("add") as session:
            session.add(consumption)
            session.flush()
            return consumption

    def get(self, consumption_id: int) -> Optional[CostConsumption]:
        with self._session("get") as session:
            return session.query(CostConsumption).filter_by(id=consumption_id).first()

    def update(self, consumption_id: int, **fields: Any) -> Optional[CostConsumption]:
        with self._session("update") as session:
            record = session.query(CostConsumption).filter_by(id=consumption_id).first()
            if record is None:
                return None
            self._apply(record, fields)
            session.flush()
            return record

    def delete(self, consumption_id: int) -> bool:
        with self._session("delete") as session:
            record = session.query(CostConsumption).filter_by(id=consumption_id).first()
            if record is None:
                return False
            session.delete(record)
            return True

    def find_by_reference(self, reference: Reference) -> List[CostConsumption]:
        column = getattr(CostConsumption, reference.column_name)
        with self._session("find_by_reference") as session:
            query = session.query(CostConsumption).filter(column == reference.id)
            return self._creation_order(query).all()

    def find_by_sale_and_product(self, sale_id: int, product_id: int) -> List[CostConsumption]:
        with self._session("find_by_sale_and_product") as session:
            query = session.query(CostConsumption).filter(
                CostConsumption.sale_id == sale_id,
                CostConsumption.product_id == product_id,
            )
            return self._creation_order(query).all()

    def find_by_sale_ids(self, sale_ids: Iterable[int]) -> List[CostConsumption]:
        sale_ids = list(sale_ids)
        if not sale_ids:
            return []
        with self._session("find_by_sale_ids") as session:
            query = session.query(CostConsumption).filter(CostConsumption.sale_id.in_(sale_ids))
            return self._creation_order(query).all()

    def find_by_date_range(self, start: date, end: date) -> List[CostConsumption]:
        with self._session("find_by_date_range") as session:
            query = session.query(CostConsumption).filter(
                CostConsumption.consumption_date >= start,
                CostConsumption.consumption_date <= end,
            )
            return self._creation_order(query).all()

    def find_by_lot(self, lot_id: int) -> List[CostConsumption]:
        with self._session("find_by_lot") as session:
            query = session.query(CostConsumption).filter(CostConsumption.lot_id == lot_id)
            return self._creation_order(query).all()


class SqlProductStore(_SqlStore):
    """ProductStore backed by the products table."""

    def get(self, product_id: int) -> Optional[Product]:
        with self._session("get") as session:
            return session.query(Product).filter_by(id=product_id).first()

    def all(self) -> List[Product]:
        with self._session("all") as session:
            return session.query(Product).order_by(Product.id.asc()).all()


class SqlSaleStore(_SqlStore):
    """SaleStore backed by the sales table."""

    def ids_for_shift(self, shift_id: int) -> List[int]:
        with self._session("ids_for_shift") as session:
            rows = (
                session.query(Sale.id)
                .filter(Sale.shift_id == shift_id)
                .order_by(Sale.id.asc())
                .all()
            )
            return [row.id for row in rows]
