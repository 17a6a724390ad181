# Overview: Append-only activity log; entries join the caller's transaction.

from __future__ import annotations

from ..extensions import db
from ..models import AuditLog
from ..time_utils import utcnow

"""
Audit log invariants:

- Append-only: entries are never updated or deleted.
- Written inside the same DB transaction as the change they record, so a
  rolled-back operation leaves no trace and a committed one always does.
- user_id is None for system actions (CLI seeding, maintenance).
"""

MAX_LOG_LIMIT = 500


def log_action(
    *,
    user_id: int | None,
    details: str,
    action: str = "ACTION",
    entity_type: str | None = None,
    entity_id=None,
) -> AuditLog:
    """Append one audit entry. Flushes, never commits."""
    entry = AuditLog(
        action=action,
        user_id=user_id,
        details=details,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        occurred_at=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_logs(*, limit: int = 100, user_id: int | None = None, action: str | None = None) -> list[AuditLog]:
    """Newest first; ties on timestamp fall back to insertion order."""
    limit = max(1, min(int(limit), MAX_LOG_LIMIT))
    query = db.session.query(AuditLog)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    return (
        query.order_by(AuditLog.occurred_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
