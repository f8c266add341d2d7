"""Expiration Service - perishable lot monitoring.

Classifies active lots against today's date. Dates are compared as calendar
days; a lot expiring today is "expiring", not "expired".
"""

from datetime import timedelta
from typing import List, Optional

from ..models import InventoryLot, LotStatus
from ..utils.config import get_config
from ..utils.constants import AUDIT_ENTITY_FIFO_LOT, AUDIT_LOT_EXPIRED
from ..utils.datetime_utils import today, utc_now
from .audit_service import AuditEvent, AuditRecorder
from .exceptions import LotNotFound, ValidationError
from .logging_utils import get_service_logger, log_operation
from .stores import LotStore

logger = get_service_logger(__name__)


class ExpirationTracker:
    """
    Finds expiring and expired lots and writes lots off as EXPIRED.

    Args:
        lot_store: Lots to inspect
        audit: Audit recorder (default: drops events)
    """

    def __init__(self, lot_store: LotStore, audit: Optional[AuditRecorder] = None):
        self.lot_store = lot_store
        self.audit = audit or AuditRecorder()

    def get_expiring_lots(self, days_until_expiry: Optional[int] = None) -> List[InventoryLot]:
        """
        Active lots with stock whose expiration falls in [today, today + days].

        Args:
            days_until_expiry: Look-ahead window (default from config, 7)

        Returns:
            Lots ordered by expiration date, soonest first
        """
        if days_until_expiry is None:
            days_until_expiry = get_config().expiry_warning_days
        if days_until_expiry < 0:
            raise ValidationError(["days_until_expiry cannot be negative"])

        start = today()
        return self.lot_store.find_active_expiring_between(
            start, start + timedelta(days=days_until_expiry)
        )

    def get_expired_lots(self) -> List[InventoryLot]:
        """Active lots with stock whose expiration date is before today."""
        return self.lot_store.find_active_expired_before(today())

    def mark_lot_expired(self, lot_id: int) -> InventoryLot:
        """
        Write a lot off as EXPIRED.

        Unconditional and terminal. Expired lots drop out of the active-lot
        query, so consumption never draws from them.

        Raises:
            LotNotFound: If the lot doesn't exist
            StorageFailure: If the lot store fails
        """
        lot = self.lot_store.update(
            lot_id, status=LotStatus.EXPIRED.value, depleted_at=utc_now()
        )
        if lot is None:
            raise LotNotFound(lot_id)

        self.audit.record(
            AuditEvent(
                action=AUDIT_LOT_EXPIRED,
                entity_type=AUDIT_ENTITY_FIFO_LOT,
                entity_id=lot_id,
                details={
                    "product_id": lot.product_id,
                    "remaining": lot.remaining_quantity,
                    "expiration_date": lot.expiration_date,
                },
            )
        )
        log_operation(
            logger,
            operation="mark_lot_expired",
            outcome="success",
            lot_id=lot_id,
            product_id=lot.product_id,
            written_off=str(lot.remaining_quantity),
        )
        return lot
