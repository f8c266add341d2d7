"""
AccountingAuditEntry model for the ledger audit trail.

Append-only log of costing events (lot created, lot consumed, consumption
reverted, ...). Entries are written best-effort by the audit service and
never updated.
"""

import json
from typing import Any, Dict

from sqlalchemy import Column, String, Text, DateTime, Index

from .base import BaseModel
from src.utils.constants import TABLE_ACCOUNTING_AUDIT_LOG
from src.utils.datetime_utils import utc_now


class AccountingAuditEntry(BaseModel):
    """
    AccountingAuditEntry model.

    Attributes:
        action: Audit action name (e.g., "fifo_consumption")
        entity_type: Kind of entity the action touched (e.g., "fifo_lot")
        entity_id: Identifier of that entity, as text
        details_json: JSON-encoded details
        timestamp: When the action happened
    """

    __tablename__ = TABLE_ACCOUNTING_AUDIT_LOG

    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=False)
    details_json = Column(Text, nullable=False, default="{}")
    timestamp = Column(DateTime, nullable=False, default=utc_now, index=True)

    __table_args__ = (Index("idx_audit_entity", "entity_type", "entity_id"),)

    @property
    def details(self) -> Dict[str, Any]:
        """Parse and return the details JSON."""
        try:
            return json.loads(self.details_json or "{}")
        except json.JSONDecodeError:
            return {}

    def __repr__(self) -> str:
        """String representation of audit entry."""
        return (
            f"AccountingAuditEntry(id={self.id}, action='{self.action}', "
            f"{self.entity_type}={self.entity_id})"
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """Convert audit entry to dictionary with parsed details."""
        result = super().to_dict(include_relationships)
        result.pop("details_json", None)
        result["details"] = self.details
        return result
