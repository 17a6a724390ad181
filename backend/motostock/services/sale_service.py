"""
Sales Service - recording, editing and deleting motorcycle sales

WHY: A sale and the SOLD status of its motorcycle are two views of one fact.
Creating, repricing or deleting a sale rewrites the bike in the same
transaction, so the sale record and the bike never disagree.

OWNERSHIP:
- Admin: any sale, recorded at the bike's current branch
- Branch manager: sales at their branch
- Sales officer: records at their branch; edits and deletes only their own
"""

from ..extensions import db
from ..models import Sale, Location, LocationType, Role
from ..time_utils import utcnow
from ..validation import (
    validate_price_cents,
    require_text,
    optional_text,
    parse_datetime_field,
)
from . import policy_service, stock_service
from .audit_service import log_action
from .concurrency import lock_for_update
from .document_service import next_reference, SALE_DOCUMENT
from .errors import MotostockError, ValidationError, NotFoundError, PermissionDeniedError


class SaleError(MotostockError):
    """Raised for sale operation errors."""
    pass


class SaleValidationError(ValidationError, SaleError):
    pass


class SaleNotFoundError(NotFoundError, SaleError):
    pass


def _selling_branch(actor, bike) -> Location:
    """
    Staff sell at their assigned branch. An admin has no branch and sells at
    wherever the bike currently is.
    """
    if policy_service.is_admin(actor):
        location_id = bike.current_location_id
        location = db.session.get(Location, location_id) if location_id is not None else None
        if location is None or location.type != LocationType.BRANCH:
            raise stock_service.StockPreconditionError(
                f"Motorcycle {bike.chassis_number} is {bike.status}, not AT_BRANCH. Refresh and try again.",
                details={"chassis_numbers": [bike.chassis_number]},
            )
        return location

    location = db.session.get(Location, actor.location_id) if actor.location_id is not None else None
    if location is None or location.type != LocationType.BRANCH:
        raise SaleValidationError("Sales can only be recorded by staff assigned to a branch")
    return location


def _load_sale(sale_id: int, *, lock: bool = True) -> Sale:
    query = db.session.query(Sale).filter_by(id=sale_id)
    if lock:
        query = lock_for_update(query)
    sale = query.first()
    if not sale:
        raise SaleNotFoundError(f"Sale {sale_id} not found")
    return sale


def _require_manage(actor, sale: Sale) -> None:
    policy_service.require_permission(actor, "MANAGE_SALES")
    if not policy_service.can_manage_sale(actor, sale):
        if actor.role == Role.SALES_OFFICER:
            raise PermissionDeniedError("Sales officers can only change their own sales")
        raise PermissionDeniedError("Sale is outside your assigned scope")


def record_sale(
    actor,
    *,
    chassis_number: str,
    customer_name: str,
    price_cents,
    customer_phone: str | None = None,
    sold_at=None,
) -> Sale:
    """Sell a bike that is AT_BRANCH at the seller's branch; the bike becomes SOLD."""
    policy_service.require_permission(actor, "CREATE_SALE")

    chassis_number = require_text(chassis_number, "chassis_number", max_length=64)
    customer_name = require_text(customer_name, "customer_name", max_length=120)
    customer_phone = optional_text(customer_phone, "customer_phone", max_length=32)
    price_cents = validate_price_cents(price_cents)
    sold_at = parse_datetime_field(sold_at, "sold_at") or utcnow()

    bike = stock_service.load_motorcycles([chassis_number])[0]
    branch = _selling_branch(actor, bike)
    stock_service.require_available_at([bike], branch)

    sale = Sale(
        reference=next_reference(document_type=SALE_DOCUMENT, prefix="S"),
        chassis_number=bike.chassis_number,
        customer_name=customer_name,
        customer_phone=customer_phone,
        price_cents=price_cents,
        sales_officer_id=actor.id,
        branch_id=branch.id,
        sold_at=sold_at,
    )
    db.session.add(sale)
    stock_service.mark_sold(bike, sold_at=sold_at, price_cents=price_cents)
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="SALE_RECORDED",
        details=f"Sold motorcycle {bike.chassis_number} to {customer_name} ({sale.reference})",
        entity_type="sale",
        entity_id=sale.id,
    )
    return sale


def update_sale(
    actor,
    sale_id: int,
    *,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    price_cents=None,
) -> Sale:
    """
    Edit customer details and price. A price change is mirrored onto the bike.

    The chassis number is not editable: moving a sale to another bike would
    mean unwinding one sale and recording another.
    """
    sale = _load_sale(sale_id)
    _require_manage(actor, sale)

    changes = []
    if customer_name is not None:
        sale.customer_name = require_text(customer_name, "customer_name", max_length=120)
        changes.append("customer")
    if customer_phone is not None:
        sale.customer_phone = optional_text(customer_phone, "customer_phone", max_length=32)
        changes.append("phone")
    if price_cents is not None:
        price_cents = validate_price_cents(price_cents)
        if price_cents != sale.price_cents:
            bike = stock_service.load_motorcycles([sale.chassis_number])[0]
            stock_service.reprice_sold(bike, price_cents)
            sale.price_cents = price_cents
            changes.append("price")

    db.session.flush()

    if changes:
        log_action(
            user_id=actor.id,
            action="SALE_UPDATED",
            details=f"Updated sale {sale.reference} ({', '.join(changes)})",
            entity_type="sale",
            entity_id=sale.id,
        )
    return sale


def delete_sale(actor, sale_id: int) -> None:
    """
    Remove a sale and return its bike to stock.

    The bike gets the resting status of the location it still sits at, with
    sold_at and price cleared.
    """
    sale = _load_sale(sale_id)
    _require_manage(actor, sale)

    bike = stock_service.load_motorcycles([sale.chassis_number])[0]
    stock_service.clear_sale(bike)

    reference, sale_ref_id = sale.reference, sale.id
    db.session.delete(sale)
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="SALE_DELETED",
        details=f"Deleted sale {reference}; motorcycle {bike.chassis_number} returned to {bike.status}",
        entity_type="sale",
        entity_id=sale_ref_id,
    )


def get_sale(actor, sale_id: int) -> Sale:
    policy_service.require_permission(actor, "VIEW_SALES")
    sale = _load_sale(sale_id, lock=False)
    if not policy_service.sale_visible_to(actor, sale):
        raise PermissionDeniedError("Sale is outside your assigned scope")
    return sale


def list_sales(actor, *, start=None, end=None) -> list[Sale]:
    """Admin: all. Branch manager: their branch. Sales officer: their own."""
    policy_service.require_permission(actor, "VIEW_SALES")

    query = db.session.query(Sale)
    if not policy_service.is_admin(actor):
        if actor.role == Role.SALES_OFFICER:
            query = query.filter(Sale.sales_officer_id == actor.id)
        else:
            query = query.filter(Sale.branch_id == actor.location_id)

    start = parse_datetime_field(start, "start")
    end = parse_datetime_field(end, "end")
    if start and end and start > end:
        raise SaleValidationError("start must be before end")
    if start:
        query = query.filter(Sale.sold_at >= start)
    if end:
        query = query.filter(Sale.sold_at <= end)

    return query.order_by(Sale.sold_at.desc(), Sale.id.desc()).all()
