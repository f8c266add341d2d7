"""Tax helpers for cost calculations.

Pure functions, no database access. Costing always works on tax-exclusive
amounts; these helpers strip (or add) tax the way prices are configured on
each product.

Example:
    >>> from decimal import Decimal
    >>> price_without_tax(Decimal("118.00"), Decimal("0.18"), includes_tax=True)
    Decimal('100.00')
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..models import Product
from ..utils.config import get_config
from ..utils.constants import CURRENCY_DECIMAL_PLACES, ZERO

_CENTS = Decimal(1).scaleb(-CURRENCY_DECIMAL_PLACES)


def _round_currency(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP)


def price_without_tax(price: Decimal, tax_rate: Decimal, includes_tax: bool) -> Decimal:
    """
    Strip tax from a price.

    Args:
        price: Price as configured
        tax_rate: Tax rate as a fraction (0.18 for 18%)
        includes_tax: Whether `price` already includes the tax

    Returns:
        Tax-exclusive price, rounded to cents when tax was removed
    """
    price = Decimal(price)
    tax_rate = Decimal(tax_rate)
    if not includes_tax or tax_rate == 0:
        return price
    return _round_currency(price / (1 + tax_rate))


def price_with_tax(price: Decimal, tax_rate: Decimal, includes_tax: bool) -> Decimal:
    """
    Add tax to a tax-exclusive price.

    Args:
        price: Price as configured
        tax_rate: Tax rate as a fraction
        includes_tax: Whether `price` already includes the tax

    Returns:
        Tax-inclusive price, rounded to cents when tax was added
    """
    price = Decimal(price)
    tax_rate = Decimal(tax_rate)
    if includes_tax or tax_rate == 0:
        return price
    return _round_currency(price * (1 + tax_rate))


def effective_cost_tax_rate(product: Product) -> Decimal:
    """Tax rate on a product's cost, falling back to the configured default."""
    if product.cost_tax_rate is not None:
        return Decimal(product.cost_tax_rate)
    return get_config().default_tax_rate


def product_cost_ex_tax(product: Optional[Product]) -> Decimal:
    """
    Tax-exclusive unit cost of a product from its last purchase price.

    Used as the fallback cost when no lot can supply one.

    Args:
        product: Product, or None

    Returns:
        Tax-exclusive cost; 0 for a missing product or missing price
    """
    if product is None:
        return ZERO
    cost = Decimal(product.last_price or 0)
    includes_tax = True if product.cost_includes_tax is None else bool(product.cost_includes_tax)
    return price_without_tax(cost, effective_cost_tax_rate(product), includes_tax)
