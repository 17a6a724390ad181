"""
Motorcycle Service - stock intake, detail edits and retirement

WHY: Import is the only way a bike enters the system, and its first status
comes from the type of the location it lands at. Detail edits touch model
type and color only; status and location stay with the transition engine.
"""

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Motorcycle, MotorcycleStatus
from ..time_utils import utcnow
from ..validation import require_text, optional_text, parse_datetime_field
from . import policy_service, stock_service
from .audit_service import log_action
from .errors import ValidationError, ConflictError, PermissionDeniedError, PreconditionError
from .location_service import get_location
from .transfer_service import open_transfer_chassis


def import_motorcycle(
    actor,
    *,
    chassis_number: str,
    model_type: str,
    color: str,
    location_id: int | None = None,
    status: str | None = None,
    imported_at=None,
) -> Motorcycle:
    """
    Register a newly imported bike.

    Warehouse managers import into their own warehouse; admins must name the
    target location. An explicit status is accepted only when it matches the
    target location's type.
    """
    policy_service.require_permission(actor, "IMPORT_STOCK")

    chassis_number = require_text(chassis_number, "chassis_number", max_length=64)
    model_type = require_text(model_type, "model_type", max_length=120)
    color = require_text(color, "color", max_length=64)
    imported_at = parse_datetime_field(imported_at, "imported_at") or utcnow()

    if location_id is None:
        if policy_service.is_admin(actor):
            raise ValidationError("location_id is required")
        location_id = actor.location_id
    location = get_location(location_id)
    policy_service.require_location_scope(actor, location.id)

    resting = stock_service.resting_status_for(location)
    if status is not None and status != resting:
        raise ValidationError(
            f"Imported motorcycles at a {location.type} must be {resting}",
            details={"status": status, "expected_status": resting},
        )

    if db.session.get(Motorcycle, chassis_number) is not None:
        raise ConflictError(f"Chassis number {chassis_number} already exists")

    bike = Motorcycle(
        chassis_number=chassis_number,
        model_type=model_type,
        color=color,
        imported_at=imported_at,
    )
    stock_service.place_at(bike, location)
    db.session.add(bike)
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="MOTORCYCLE_IMPORTED",
        details=f"Imported motorcycle {chassis_number}",
        entity_type="motorcycle",
        entity_id=chassis_number,
    )
    return bike


def update_motorcycle_details(actor, chassis_number: str, *, model_type=None, color=None) -> Motorcycle:
    policy_service.require_permission(actor, "EDIT_MOTORCYCLE")

    bike = stock_service.load_motorcycles([chassis_number])[0]
    if not policy_service.is_admin(actor) and bike.current_location_id != actor.location_id:
        raise PermissionDeniedError("Motorcycle is outside your assigned scope")

    changes = []
    if model_type is not None:
        bike.model_type = require_text(model_type, "model_type", max_length=120)
        changes.append("model type")
    if color is not None:
        bike.color = require_text(color, "color", max_length=64)
        changes.append("color")
    db.session.flush()

    if changes:
        log_action(
            user_id=actor.id,
            action="MOTORCYCLE_UPDATED",
            details=f"Updated motorcycle {chassis_number} ({', '.join(changes)})",
            entity_type="motorcycle",
            entity_id=chassis_number,
        )
    return bike


def retire_motorcycle(actor, chassis_number: str, reason: str | None = None) -> Motorcycle:
    """
    Soft delete. Only bikes at rest and not listed on an open transfer can be
    retired; sold bikes stay for their sale record.
    """
    policy_service.require_permission(actor, "RETIRE_MOTORCYCLE")

    bike = stock_service.load_motorcycles([chassis_number])[0]
    if bike.status not in MotorcycleStatus.AT_REST:
        raise PreconditionError(
            f"Motorcycle {chassis_number} is {bike.status} and cannot be retired",
            details={"chassis_numbers": [chassis_number]},
        )
    if open_transfer_chassis([chassis_number]):
        raise PreconditionError(
            f"Motorcycle {chassis_number} is listed on an open transfer",
            details={"chassis_numbers": [chassis_number]},
        )

    bike.is_retired = True
    bike.retired_at = utcnow()
    db.session.flush()

    reason = optional_text(reason, "reason")
    log_action(
        user_id=actor.id,
        action="MOTORCYCLE_RETIRED",
        details=f"Retired motorcycle {chassis_number}" + (f" ({reason})" if reason else ""),
        entity_type="motorcycle",
        entity_id=chassis_number,
    )
    return bike


def get_motorcycle(actor, chassis_number: str) -> Motorcycle:
    policy_service.require_permission(actor, "VIEW_INVENTORY")
    bike = stock_service.get_motorcycle(chassis_number)
    if not policy_service.motorcycle_visible_to(actor, bike):
        raise PermissionDeniedError("Motorcycle is outside your assigned scope")
    return bike


def list_motorcycles(
    actor,
    *,
    status: str | None = None,
    location_id: int | None = None,
    q: str | None = None,
) -> list[Motorcycle]:
    """Admin: every bike. Everyone else: bikes at their location."""
    policy_service.require_permission(actor, "VIEW_INVENTORY")

    query = db.session.query(Motorcycle).filter(Motorcycle.is_retired.is_(False))
    if not policy_service.is_admin(actor):
        query = query.filter(Motorcycle.current_location_id == actor.location_id)
    elif location_id is not None:
        query = query.filter(Motorcycle.current_location_id == location_id)

    if status:
        if status not in MotorcycleStatus.ALL:
            raise ValidationError(f"Unknown motorcycle status {status}")
        query = query.filter(Motorcycle.status == status)

    if q:
        pattern = f"%{q.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Motorcycle.chassis_number).like(pattern),
                func.lower(Motorcycle.model_type).like(pattern),
            )
        )
    return query.order_by(Motorcycle.chassis_number.asc()).all()
