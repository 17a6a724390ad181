from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Append-only activity trail.

    - Rows are never updated or deleted.
    - Written inside the same transaction as the change they describe, so a
      rolled-back operation leaves no entry.
    - Read newest first (occurred_at DESC, id DESC).
    """
    __tablename__ = "logs"
    __table_args__ = (
        db.Index("ix_logs_occurred_id", "occurred_at", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # e.g. TRANSFER_INITIATED, SALE_RECORDED, PERMISSION_DENIED
    action = db.Column(db.String(64), nullable=False, index=True)

    # NULL for system actions (CLI seeding, maintenance)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    details = db.Column(db.Text, nullable=False)

    # Generic pointer to the affected record; chassis numbers are strings
    entity_type = db.Column(db.String(32), nullable=True, index=True)
    entity_id = db.Column(db.String(64), nullable=True, index=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "user_id": self.user_id,
            "details": self.details,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "timestamp": to_utc_z(self.occurred_at),
        }
