"""Service layer exception classes for the FIFO Cost Ledger.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the ledger.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── LotNotFound
    ├── InsufficientLots
    └── DatabaseError
        └── StorageFailure

Propagation policy:
    - StorageFailure is raised by the stores and propagated unchanged by the
      engines. Nothing in the service layer retries.
    - InsufficientLots is raised only by strict consumption.
    - Audit sink failures never surface as exceptions.
"""

from decimal import Decimal
from typing import List, Optional, Union


class ServiceError(Exception):
    """Base exception for all service layer errors.

    Args:
        message: Human-readable error message
        correlation_id: Optional id for tracing the failing operation
    """

    def __init__(self, message: str = "", correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails.

    Args:
        errors: One message or a list of messages

    Example:
        >>> raise ValidationError(["Quantity must be positive"])
        ValidationError: Validation failed: Quantity must be positive
    """

    def __init__(self, errors: Union[List[str], str]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(f"Validation failed: {'; '.join(self.errors)}")


class LotNotFound(ServiceError):
    """Raised when an inventory lot cannot be found by ID.

    Example:
        >>> raise LotNotFound(456)
        LotNotFound: Inventory lot with ID 456 not found
    """

    def __init__(self, lot_id: int):
        self.lot_id = lot_id
        super().__init__(f"Inventory lot with ID {lot_id} not found")


class InsufficientLots(ServiceError):
    """Raised by strict consumption when active lots cannot cover a request.

    Draws already taken from real lots before this is raised stay committed;
    only the uncovered remainder is rejected.

    Args:
        product_id: Product being consumed
        requested: Quantity requested
        available: Quantity the active lots actually supplied

    Example:
        >>> raise InsufficientLots(7, Decimal("5"), Decimal("3"))
        InsufficientLots: Insufficient FIFO lots for product 7: requested 5, available 3
    """

    def __init__(self, product_id: int, requested: Decimal, available: Decimal):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient FIFO lots for product {product_id}: "
            f"requested {requested}, available {available}"
        )

    @property
    def shortfall(self) -> Decimal:
        """Quantity that could not be covered."""
        return Decimal(self.requested) - Decimal(self.available)


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class StorageFailure(DatabaseError):
    """Raised by a lot/consumption/product store when persistence fails.

    Each store write is committed on its own, so a StorageFailure part way
    through an operation leaves earlier writes in place.
    """
