from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .enums import MotorcycleStatus, TRANSIT_LOCATION, sql_in


class Motorcycle(db.Model):
    """
    A single physical motorcycle, keyed by its chassis number.

    STATE INVARIANTS (enforced by CHECK constraints, so a bad combination
    cannot be written even by code that bypasses the services):
    - IN_TRANSIT  <=> current_location_id IS NULL (the TRANSIT pseudo-location)
    - SOLD        <=> sold_at and price_cents are both set
    - any other status has neither sold_at nor price_cents

    The cross-table rule (IN_WAREHOUSE only at a WAREHOUSE, AT_BRANCH only at a
    BRANCH) is checked by stock_service.

    status / current_location_id / sold_at / price_cents are written only by
    stock_service. Details edits (model_type, color) never touch them.
    """
    __tablename__ = "motorcycles"
    __table_args__ = (
        db.CheckConstraint(f"status IN ({sql_in(MotorcycleStatus.ALL)})", name="ck_motorcycles_status"),
        db.CheckConstraint(
            "(status = 'IN_TRANSIT' AND current_location_id IS NULL) OR "
            "(status <> 'IN_TRANSIT' AND current_location_id IS NOT NULL)",
            name="ck_motorcycles_transit_location",
        ),
        db.CheckConstraint(
            "(status = 'SOLD' AND sold_at IS NOT NULL AND price_cents IS NOT NULL) OR "
            "(status <> 'SOLD' AND sold_at IS NULL AND price_cents IS NULL)",
            name="ck_motorcycles_sold_fields",
        ),
        db.Index("ix_motorcycles_location_status", "current_location_id", "status"),
    )

    chassis_number = db.Column(db.String(64), primary_key=True)

    model_type = db.Column(db.String(120), nullable=False)
    color = db.Column(db.String(64), nullable=False)

    status = db.Column(db.String(16), nullable=False, index=True)
    current_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=True)

    imported_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    sold_at = db.Column(db.DateTime(timezone=True), nullable=True)
    price_cents = db.Column(db.Integer, nullable=True)

    # Soft delete: retired bikes are hidden and refused by every transition
    is_retired = db.Column(db.Boolean, nullable=False, default=False, index=True)
    retired_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    current_location = db.relationship("Location", backref=db.backref("motorcycles", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def location_ref(self) -> int | str:
        """Location id, or the TRANSIT pseudo-location while moving."""
        if self.status == MotorcycleStatus.IN_TRANSIT:
            return TRANSIT_LOCATION
        return self.current_location_id

    def __repr__(self) -> str:
        return f"<Motorcycle {self.chassis_number} status={self.status} location={self.location_ref}>"

    def to_dict(self) -> dict:
        return {
            "chassis_number": self.chassis_number,
            "model_type": self.model_type,
            "color": self.color,
            "status": self.status,
            "current_location_id": self.current_location_id,
            "current_location": self.location_ref,
            "imported_at": to_utc_z(self.imported_at),
            "sold_at": to_utc_z(self.sold_at) if self.sold_at else None,
            "price_cents": self.price_cents,
            "is_retired": self.is_retired,
            "retired_at": to_utc_z(self.retired_at) if self.retired_at else None,
            "version_id": self.version_id,
        }
