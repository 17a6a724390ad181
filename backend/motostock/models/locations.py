from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .enums import LocationType, sql_in


class Location(db.Model):
    """
    A warehouse (import/storage point) or a branch (point of sale).

    The type is fixed at creation: motorcycle statuses are derived from it
    (WAREHOUSE -> IN_WAREHOUSE, BRANCH -> AT_BRANCH), so changing it would
    silently invalidate every bike stored there.
    """
    __tablename__ = "locations"
    __table_args__ = (
        db.CheckConstraint(f"type IN ({sql_in(LocationType.ALL)})", name="ck_locations_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-facing identifier, e.g. "loc_wh_1"
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    type = db.Column(db.String(16), nullable=False, index=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_warehouse(self) -> bool:
        return self.type == LocationType.WAREHOUSE

    @property
    def is_branch(self) -> bool:
        return self.type == LocationType.BRANCH

    def __repr__(self) -> str:
        return f"<Location id={self.id} code={self.code!r} type={self.type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "type": self.type,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
