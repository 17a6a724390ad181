# Overview: Read-only stock, sales and transfer summaries, scoped to the requesting user.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_, false

from ..extensions import db
from ..models import (
    Location,
    Motorcycle,
    MotorcycleStatus,
    Role,
    Sale,
    Transfer,
    TransferItem,
    TransferStatus,
    TRANSFER_STATUS_LABELS,
    TRANSIT_LOCATION,
)
from ..time_utils import utcnow, to_utc_z, to_iso_date
from ..validation import parse_datetime_field
from . import policy_service
from .errors import ValidationError
from .stock_service import stock_levels


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""
    pass


def _scope_location_ids(actor) -> list[int] | None:
    """None means every location (admin)."""
    if policy_service.is_admin(actor):
        return None
    return [actor.location_id] if actor.location_id is not None else []


def _scoped_sales(actor):
    query = db.session.query(Sale)
    if policy_service.is_admin(actor):
        return query
    if actor.role == Role.SALES_OFFICER:
        return query.filter(Sale.sales_officer_id == actor.id)
    if actor.role == Role.BRANCH_MANAGER:
        return query.filter(Sale.branch_id == actor.location_id)
    return query.filter(false())


def _scoped_transfers(actor):
    query = db.session.query(Transfer)
    if policy_service.is_admin(actor):
        return query
    if actor.role == Role.SALES_OFFICER:
        return query.filter(false())
    return query.filter(
        or_(
            Transfer.from_location_id == actor.location_id,
            Transfer.to_location_id == actor.location_id,
        )
    )


def _in_transit_count(actor) -> int:
    """Bikes on dispatched transfers; for staff, transfers touching their location."""
    transfers = _scoped_transfers(actor).filter(Transfer.status == TransferStatus.PENDING)
    ids = [t.id for t in transfers.with_entities(Transfer.id).all()]
    if not ids:
        return 0
    return db.session.query(TransferItem).filter(TransferItem.transfer_id.in_(ids)).count()


def stock_report(actor) -> dict:
    policy_service.require_permission(actor, "VIEW_REPORTS")

    location_ids = _scope_location_ids(actor)
    levels = stock_levels(location_ids)
    locations = {loc.id: loc for loc in db.session.query(Location).all()}

    rows = []
    totals = {status: 0 for status in MotorcycleStatus.ALL}
    for key, counts in levels.items():
        for status, count in counts.items():
            totals[status] += count
        if key == TRANSIT_LOCATION:
            continue
        location = locations.get(key)
        rows.append({
            "location_id": key,
            "location_code": location.code if location else None,
            "location_name": location.name if location else None,
            "location_type": location.type if location else None,
            "counts": counts,
            "available": counts[MotorcycleStatus.IN_WAREHOUSE] + counts[MotorcycleStatus.AT_BRANCH],
        })
    rows.sort(key=lambda row: (row["location_name"] or ""))

    if location_ids is not None:
        totals[MotorcycleStatus.IN_TRANSIT] = _in_transit_count(actor)

    return {
        "generated_at": to_utc_z(utcnow()),
        "total": sum(totals.values()),
        "available": totals[MotorcycleStatus.IN_WAREHOUSE] + totals[MotorcycleStatus.AT_BRANCH],
        "in_transit": totals[MotorcycleStatus.IN_TRANSIT],
        "sold": totals[MotorcycleStatus.SOLD],
        "by_status": totals,
        "by_location": rows,
    }


def sales_report(actor, *, start=None, end=None) -> dict:
    policy_service.require_permission(actor, "VIEW_REPORTS")

    start_dt = parse_datetime_field(start, "start")
    end_dt = parse_datetime_field(end, "end")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")

    query = _scoped_sales(actor)
    if start_dt:
        query = query.filter(Sale.sold_at >= start_dt)
    if end_dt:
        query = query.filter(Sale.sold_at <= end_dt)

    count, revenue = query.with_entities(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.price_cents), 0),
    ).one()

    by_branch = [
        {
            "branch_id": branch_id,
            "branch_name": name,
            "sales_count": n,
            "revenue_cents": int(total or 0),
        }
        for branch_id, name, n, total in query.join(Location, Location.id == Sale.branch_id)
        .with_entities(Sale.branch_id, Location.name, func.count(Sale.id), func.sum(Sale.price_cents))
        .group_by(Sale.branch_id, Location.name)
        .order_by(Location.name.asc())
        .all()
    ]

    day = func.date(Sale.sold_at)
    by_day = [
        {"date": to_iso_date(d), "sales_count": n, "revenue_cents": int(total or 0)}
        for d, n, total in query.with_entities(day, func.count(Sale.id), func.sum(Sale.price_cents))
        .group_by(day)
        .order_by(day.asc())
        .all()
    ]

    return {
        "start": to_utc_z(start_dt),
        "end": to_utc_z(end_dt),
        "sales_count": count,
        "revenue_cents": int(revenue),
        "by_branch": by_branch,
        "by_day": by_day,
    }


def transfer_report(actor) -> dict:
    policy_service.require_permission(actor, "VIEW_REPORTS")

    counts = dict(
        _scoped_transfers(actor)
        .with_entities(Transfer.status, func.count(Transfer.id))
        .group_by(Transfer.status)
        .all()
    )
    by_status = [
        {"status": status, "label": TRANSFER_STATUS_LABELS[status], "count": counts.get(status, 0)}
        for status in TransferStatus.ALL
    ]
    return {
        "total": sum(counts.values()),
        "open": sum(counts.get(status, 0) for status in TransferStatus.OPEN),
        "by_status": by_status,
    }


def dashboard(actor) -> dict:
    """
    Headline numbers for the landing page.

    total_stock counts unsold bikes in the actor's scope; low_stock flags it
    when that falls under LOW_STOCK_THRESHOLD.
    """
    policy_service.require_permission(actor, "VIEW_DASHBOARD")

    bikes = db.session.query(Motorcycle).filter(Motorcycle.is_retired.is_(False))
    location_ids = _scope_location_ids(actor)
    if location_ids is not None:
        bikes = bikes.filter(Motorcycle.current_location_id.in_(location_ids))

    breakdown = {status: 0 for status in MotorcycleStatus.ALL}
    for status, count in bikes.with_entities(Motorcycle.status, func.count()).group_by(Motorcycle.status).all():
        breakdown[status] = count

    total_stock = sum(count for status, count in breakdown.items() if status != MotorcycleStatus.SOLD)
    sales = _scoped_sales(actor)
    sales_count, sales_total = sales.with_entities(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.price_cents), 0),
    ).one()

    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 5)
    open_transfers = (
        _scoped_transfers(actor).filter(Transfer.status.in_(TransferStatus.OPEN)).count()
        if policy_service.user_can(actor, "VIEW_TRANSFERS") else 0
    )

    return {
        "total_stock": total_stock,
        "sales_count": sales_count,
        "sales_total_cents": int(sales_total),
        "low_stock": total_stock < threshold,
        "low_stock_threshold": threshold,
        "open_transfers": open_transfers,
        "status_breakdown": breakdown,
    }
