"""
Constants for the FIFO Cost Ledger.

This module defines all system-wide constants including:
- Application metadata
- Lot numbering and the legacy lot label
- Audit action names
- Numeric precision for quantities and money
- Database table names
"""

from decimal import Decimal

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "FIFO Cost Ledger"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"

# ============================================================================
# Lots
# ============================================================================

# Label shown for consumption records that were not drawn from a real lot
LEGACY_NO_LOT = "LEGACY_NO_LOT"

# Lot number given to lots created by the legacy stock migration
INITIAL_LOT_NUMBER = "INITIAL"

# ============================================================================
# Audit Actions
# ============================================================================

AUDIT_ENTITY_FIFO_LOT = "fifo_lot"
AUDIT_ENTITY_COST_CONSUMPTION = "cost_consumption"

AUDIT_LOT_CREATED = "fifo_lot_created"
AUDIT_CONSUMPTION = "fifo_consumption"
AUDIT_LEGACY_FALLBACK = "fifo_legacy_fallback"
AUDIT_CONSUMPTION_REVERTED = "fifo_consumption_reverted"
AUDIT_CONSUMPTION_RESTORED = "fifo_consumption_restored"
AUDIT_LOT_EXPIRED = "fifo_lot_expired"

# ============================================================================
# Defaults
# ============================================================================

DEFAULT_TAX_RATE = Decimal("0.18")  # ITBIS
DEFAULT_EXPIRY_WARNING_DAYS = 7
DEFAULT_DB_TIMEOUT = 30

# ============================================================================
# Precision
# ============================================================================

QUANTITY_DECIMAL_PLACES = 3
COST_DECIMAL_PLACES = 4
CURRENCY_DECIMAL_PLACES = 2
TAX_RATE_DECIMAL_PLACES = 4

ZERO = Decimal("0")

# ============================================================================
# Database
# ============================================================================

DATABASE_FILENAME = "fifo_ledger.db"

TABLE_PRODUCTS = "products"
TABLE_SALES = "sales"
TABLE_INVENTORY_LOTS = "inventory_lots"
TABLE_COST_CONSUMPTIONS = "cost_consumptions"
TABLE_ACCOUNTING_AUDIT_LOG = "accounting_audit_log"
