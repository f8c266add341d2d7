"""Pytest configuration and fixtures for ledger service tests."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from src.models.base import Base
from src.services.database import get_session_factory
from src.utils.config import reset_config


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    # Create in-memory SQLite database for testing
    engine = create_engine("sqlite:///:memory:", echo=False)

    # Create all tables
    import src.models  # noqa: F401

    Base.metadata.create_all(engine)

    # Create session factory
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    # Provide database to test
    yield Session

    # Cleanup
    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    # Restore original session factory
    db_module.get_session_factory = original_get_session


@pytest.fixture(autouse=True)
def clean_config():
    """Make every test read configuration from its own environment."""
    reset_config()
    yield
    reset_config()


class RecordingAuditSink:
    """AuditSink keeping events in memory."""

    def __init__(self):
        self.events = []

    def record(self, event):
        self.events.append(event)

    def actions(self):
        return [event.action for event in self.events]


class FailingAuditSink:
    """AuditSink that always raises."""

    def record(self, event):
        raise RuntimeError("audit backend unavailable")


@pytest.fixture
def audit_sink():
    """Provide an in-memory audit sink."""
    return RecordingAuditSink()


@pytest.fixture
def failing_audit_sink():
    """Provide an audit sink that fails on every event."""
    return FailingAuditSink()


@pytest.fixture
def make_product(test_db):
    """Factory creating products directly in the test database."""
    from src.models import Product

    def _make(
        name="Arroz Selecto 5lb",
        last_price=Decimal("0"),
        cost_includes_tax=False,
        cost_tax_rate=Decimal("0"),
        current_stock=Decimal("0"),
        last_stock_update=None,
        last_purchase_date=None,
    ):
        session = test_db()
        product = Product(
            name=name,
            last_price=last_price,
            cost_includes_tax=cost_includes_tax,
            cost_tax_rate=cost_tax_rate,
            current_stock=current_stock,
            last_stock_update=last_stock_update,
            last_purchase_date=last_purchase_date,
        )
        session.add(product)
        session.commit()
        return product

    return _make


@pytest.fixture
def product(make_product):
    """A product with no lots and a tax-exclusive fallback cost of 10."""
    return make_product(name="Aceite Crisol 1L", last_price=Decimal("10.00"))


@pytest.fixture
def make_sale(test_db):
    """Factory creating sales directly in the test database."""
    from src.models import Sale

    def _make(shift_id=1, total=Decimal("0")):
        session = test_db()
        sale = Sale(shift_id=shift_id, total=total)
        session.add(sale)
        session.commit()
        return sale

    return _make


@pytest.fixture
def ledger(test_db, audit_sink):
    """FifoLedger over the SQL stores with an in-memory audit sink."""
    from src.services.fifo_ledger import FifoLedger

    return FifoLedger.with_sql_stores(audit_sink=audit_sink)


@pytest.fixture
def three_lots(ledger, product):
    """Three lots of `product`: 5 @ 10 (oldest), 10 @ 12, 8 @ 15 (newest)."""
    base = date(2026, 1, 1)
    return [
        ledger.lots.add_lot(
            product.id, Decimal("5"), Decimal("10"), Decimal("0"), purchase_date=base
        ),
        ledger.lots.add_lot(
            product.id,
            Decimal("10"),
            Decimal("12"),
            Decimal("0"),
            purchase_date=base + timedelta(days=10),
        ),
        ledger.lots.add_lot(
            product.id,
            Decimal("8"),
            Decimal("15"),
            Decimal("0"),
            purchase_date=base + timedelta(days=20),
        ),
    ]
