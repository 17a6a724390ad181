from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .enums import TransferStatus, TRANSFER_STATUS_LABELS, sql_in


class Transfer(db.Model):
    """
    A batch move of motorcycles from one location to a branch.

    LIFECYCLE:
    1. PENDING_APPROVAL: requested by a branch manager, bikes still at origin
    2. PENDING: dispatched, every listed bike is IN_TRANSIT ("IN TRANSIT")
    3. COMPLETED: received at destination, bikes AT_BRANCH there
    4. CANCELLED: terminal; bikes back at origin. Transfers are never deleted.

    Status and the listed bikes' status/location change in the same
    transaction (see transfer_service).
    """
    __tablename__ = "transfers"
    __table_args__ = (
        db.CheckConstraint(f"status IN ({sql_in(TransferStatus.ALL)})", name="ck_transfers_status"),
        db.CheckConstraint("from_location_id <> to_location_id", name="ck_transfers_distinct_locations"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Document number, e.g. "TR-000001"
    reference = db.Column(db.String(32), nullable=False, unique=True, index=True)

    from_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    to_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, index=True)
    note = db.Column(db.Text, nullable=True)

    # User attribution for accountability
    initiated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    received_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    cancelled_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Timestamps for each lifecycle stage
    initiated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    from_location = db.relationship("Location", foreign_keys=[from_location_id])
    to_location = db.relationship("Location", foreign_keys=[to_location_id])
    initiated_by = db.relationship("User", foreign_keys=[initiated_by_user_id])
    received_by = db.relationship("User", foreign_keys=[received_by_user_id])
    items = db.relationship(
        "TransferItem",
        back_populates="transfer",
        order_by="TransferItem.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def chassis_numbers(self) -> list[str]:
        return [item.chassis_number for item in self.items]

    @property
    def status_label(self) -> str:
        return TRANSFER_STATUS_LABELS.get(self.status, self.status)

    def __repr__(self) -> str:
        return f"<Transfer {self.reference} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "from_location_id": self.from_location_id,
            "to_location_id": self.to_location_id,
            "chassis_numbers": self.chassis_numbers,
            "status": self.status,
            "status_label": self.status_label,
            "note": self.note,
            "initiated_by_user_id": self.initiated_by_user_id,
            "approved_by_user_id": self.approved_by_user_id,
            "received_by_user_id": self.received_by_user_id,
            "cancelled_by_user_id": self.cancelled_by_user_id,
            "initiated_at": to_utc_z(self.initiated_at),
            "approved_at": to_utc_z(self.approved_at) if self.approved_at else None,
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "cancellation_reason": self.cancellation_reason,
            "version_id": self.version_id,
        }


class TransferItem(db.Model):
    """One motorcycle listed on a transfer. A chassis appears at most once per transfer."""
    __tablename__ = "transfer_items"
    __table_args__ = (
        db.UniqueConstraint("transfer_id", "chassis_number", name="uq_transfer_items_transfer_chassis"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey("transfers.id"), nullable=False, index=True)
    chassis_number = db.Column(
        db.String(64),
        db.ForeignKey("motorcycles.chassis_number"),
        nullable=False,
        index=True,
    )

    transfer = db.relationship("Transfer", back_populates="items")
    motorcycle = db.relationship("Motorcycle")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transfer_id": self.transfer_id,
            "chassis_number": self.chassis_number,
        }


class DocumentSequence(db.Model):
    """
    Atomic document sequences (transfer and sale references).

    WHY: Prevent two concurrent requests from minting the same reference.
    """
    __tablename__ = "document_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "document_type": self.document_type,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
