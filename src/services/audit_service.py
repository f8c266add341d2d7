"""Audit Service - best-effort accounting audit trail.

Costing operations describe what they did as AuditEvent records and hand
them to an AuditRecorder. The recorder forwards to a sink and never lets a
sink failure reach the caller: the audit trail is an observability side
channel, not part of the ledger's invariants.

Usage:
    from src.services.audit_service import AuditEvent, AuditRecorder, SqlAuditSink

    audit = AuditRecorder(SqlAuditSink())
    audit.record(AuditEvent(
        action="fifo_lot_created",
        entity_type="fifo_lot",
        entity_id=lot.id,
        details={"product_id": lot.product_id, "quantity": lot.original_quantity},
    ))

    entries = get_audit_log(actions=["fifo_consumption"])
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol

from sqlalchemy.orm import Session

from ..models import AccountingAuditEntry
from .database import session_scope
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


@dataclass
class AuditEvent:
    """One structured audit record.

    Attributes:
        action: What happened (see AUDIT_* in utils.constants)
        entity_type: Kind of entity touched
        entity_id: Id of that entity
        details: Free-form context; Decimals and dates are stored as text
    """

    action: str
    entity_type: str
    entity_id: Any
    details: Dict[str, Any] = field(default_factory=dict)


class AuditSink(Protocol):
    """Destination for audit events."""

    def record(self, event: AuditEvent) -> None: ...


class SqlAuditSink:
    """AuditSink that appends to the accounting_audit_log table."""

    def __init__(self, scope=None):
        self._scope = scope or session_scope

    def record(self, event: AuditEvent) -> None:
        with self._scope() as session:
            session.add(
                AccountingAuditEntry(
                    action=event.action,
                    entity_type=event.entity_type,
                    entity_id=str(event.entity_id),
                    details_json=json.dumps(event.details, default=str, sort_keys=True),
                )
            )


class AuditRecorder:
    """
    Fire-and-forget front for an AuditSink.

    Failures from the sink are logged at WARNING and swallowed so they never
    abort the caller's primary operation. A recorder without a sink drops
    events.
    """

    def __init__(self, sink: Optional[AuditSink] = None):
        self.sink = sink

    def record(self, event: AuditEvent) -> None:
        if self.sink is None:
            return
        try:
            self.sink.record(event)
        except Exception as e:
            log_operation(
                logger,
                operation="audit_record",
                outcome="failed",
                level=logging.WARNING,
                action=event.action,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                error=str(e),
            )


def get_audit_log(
    actions: Optional[Iterable[str]] = None,
    entity_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    session: Optional[Session] = None,
) -> List[AccountingAuditEntry]:
    """
    Query the audit log, newest first.

    Args:
        actions: Only include these actions
        entity_type: Only include this entity type
        start: Only include entries at or after this time
        end: Only include entries at or before this time
        session: Optional database session for transaction composability

    Returns:
        Matching AccountingAuditEntry records ordered newest first
    """

    def _do_query(sess: Session) -> List[AccountingAuditEntry]:
        query = sess.query(AccountingAuditEntry)
        action_list = list(actions) if actions else []
        if action_list:
            query = query.filter(AccountingAuditEntry.action.in_(action_list))
        if entity_type:
            query = query.filter(AccountingAuditEntry.entity_type == entity_type)
        if start is not None:
            query = query.filter(AccountingAuditEntry.timestamp >= start)
        if end is not None:
            query = query.filter(AccountingAuditEntry.timestamp <= end)
        return query.order_by(
            AccountingAuditEntry.timestamp.desc(), AccountingAuditEntry.id.desc()
        ).all()

    if session is not None:
        return _do_query(session)
    with session_scope() as sess:
        return _do_query(sess)
