from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Sale(db.Model):
    """
    A recorded sale of one motorcycle at a branch.

    Creating a sale marks the bike SOLD (with the same price); deleting it
    returns the bike to stock. A bike has at most one sale at a time because
    only a non-SOLD bike can be sold.

    The chassis number is immutable: moving a sale to another bike would mean
    unwinding and replaying status transitions.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("price_cents > 0", name="ck_sales_price_positive"),
        db.Index("ix_sales_branch_sold_at", "branch_id", "sold_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Document number, e.g. "S-000001"
    reference = db.Column(db.String(32), nullable=False, unique=True, index=True)

    chassis_number = db.Column(
        db.String(64),
        db.ForeignKey("motorcycles.chassis_number"),
        nullable=False,
        index=True,
    )

    customer_name = db.Column(db.String(120), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=True)
    price_cents = db.Column(db.Integer, nullable=False)

    sales_officer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)

    sold_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    motorcycle = db.relationship("Motorcycle")
    sales_officer = db.relationship("User")
    branch = db.relationship("Location")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Sale {self.reference} chassis={self.chassis_number}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reference": self.reference,
            "chassis_number": self.chassis_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "price_cents": self.price_cents,
            "sales_officer_id": self.sales_officer_id,
            "branch_id": self.branch_id,
            "sold_at": to_utc_z(self.sold_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
