"""
Lot migration service for moving legacy stock onto FIFO lots.

Products created before lot tracking carry their stock in
Product.current_stock only. This migration gives each such product one
INITIAL lot holding that stock at the product's tax-exclusive cost, so
later consumption draws from a real lot instead of the legacy fallback.

The migration is idempotent: any product that already has a lot (in any
status) is skipped.
"""

from decimal import Decimal
from typing import Callable

from ..models import Product
from ..utils.constants import INITIAL_LOT_NUMBER
from ..utils.datetime_utils import today
from .dto import as_decimal
from .logging_utils import get_service_logger, log_operation
from .lot_service import LotManager
from .stores import LotStore, ProductStore
from .tax_service import effective_cost_tax_rate, product_cost_ex_tax

logger = get_service_logger(__name__)


def create_initial_lots_for_existing_products(
    lot_manager: LotManager,
    lot_store: LotStore,
    product_store: ProductStore,
    cost_ex_tax: Callable[[Product], Decimal] = product_cost_ex_tax,
) -> int:
    """
    Create an INITIAL lot for every product with legacy stock and no lots.

    The lot is dated at the product's last stock update, else its last
    purchase date, else today.

    Args:
        lot_manager: Used to create the lots (audit and validation included)
        lot_store: Used to check for existing lots
        product_store: Products to migrate
        cost_ex_tax: Tax-exclusive product cost function

    Returns:
        Number of lots created

    Raises:
        StorageFailure: If a store fails; lots created before the failure stay
    """
    lots_created = 0
    skipped = 0

    for product in product_store.all():
        stock = as_decimal(product.current_stock or 0)
        if stock <= 0:
            continue
        if lot_store.count_by_product(product.id) > 0:
            skipped += 1
            continue

        lot_manager.add_lot(
            product_id=product.id,
            quantity=stock,
            unit_cost_ex_tax=cost_ex_tax(product),
            tax_rate=effective_cost_tax_rate(product),
            lot_number=INITIAL_LOT_NUMBER,
            purchase_date=product.last_stock_update or product.last_purchase_date or today(),
        )
        lots_created += 1

    log_operation(
        logger,
        operation="create_initial_lots",
        outcome="success",
        lots_created=lots_created,
        products_skipped=skipped,
    )
    return lots_created
