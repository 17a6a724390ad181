from __future__ import annotations

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Location, LocationType, Motorcycle, Sale, Transfer, User, TRANSIT_LOCATION
from . import policy_service
from .audit_service import log_action
from .concurrency import lock_for_update
from .errors import MotostockError, ValidationError, NotFoundError, ConflictError


class LocationError(MotostockError):
    """Raised when location operations fail."""
    pass


class LocationValidationError(ValidationError, LocationError):
    pass


class LocationNotFoundError(NotFoundError, LocationError):
    pass


class LocationConflictError(ConflictError, LocationError):
    pass


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validate_code(code: str) -> None:
    if code.upper() == TRANSIT_LOCATION:
        raise LocationValidationError(f"Location code {TRANSIT_LOCATION} is reserved")


def _require_unique(*, code: str | None, name: str | None, exclude_id: int | None = None) -> None:
    if code is not None:
        query = db.session.query(Location.id).filter(func.lower(Location.code) == code.lower())
        if exclude_id is not None:
            query = query.filter(Location.id != exclude_id)
        if query.first():
            raise LocationConflictError(f"Location code {code} already exists")
    if name is not None:
        query = db.session.query(Location.id).filter(func.lower(Location.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(Location.id != exclude_id)
        if query.first():
            raise LocationConflictError(f"Location name {name} already exists")


def get_location(location_id) -> Location:
    location = db.session.get(Location, location_id) if location_id is not None else None
    if not location:
        raise LocationNotFoundError(f"Location {location_id} not found")
    return location


def get_location_by_code(code: str) -> Location | None:
    return db.session.query(Location).filter(func.lower(Location.code) == code.lower()).first()


def list_locations(location_type: str | None = None) -> list[Location]:
    query = db.session.query(Location)
    if location_type:
        if location_type not in LocationType.ALL:
            raise LocationValidationError(f"Unknown location type {location_type}")
        query = query.filter(Location.type == location_type)
    return query.order_by(Location.type.desc(), Location.name.asc()).all()


def create_location(actor, *, code: str, name: str, location_type: str, address: str | None = None) -> Location:
    policy_service.require_permission(actor, "MANAGE_LOCATIONS")

    code = _clean(code)
    name = _clean(name)
    if not code:
        raise LocationValidationError("Location code is required")
    if not name:
        raise LocationValidationError("Location name is required")
    if location_type not in LocationType.ALL:
        raise LocationValidationError(
            f"Location type must be one of: {', '.join(LocationType.ALL)}"
        )
    _validate_code(code)
    _require_unique(code=code, name=name)

    location = Location(code=code, name=name, type=location_type, address=_clean(address))
    db.session.add(location)
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="LOCATION_CREATED",
        details=f"Created {location_type.lower()} {name} ({code})",
        entity_type="location",
        entity_id=location.id,
    )
    return location


def update_location(
    actor,
    location_id: int,
    *,
    code: str | None = None,
    name: str | None = None,
    address: str | None = None,
    location_type: str | None = None,
) -> Location:
    policy_service.require_permission(actor, "MANAGE_LOCATIONS")

    location = lock_for_update(db.session.query(Location).filter_by(id=location_id)).first()
    if not location:
        raise LocationNotFoundError(f"Location {location_id} not found")

    # Resting statuses of stored bikes are derived from the type
    if location_type is not None and location_type != location.type:
        raise LocationValidationError("Location type cannot be changed after creation")

    code = _clean(code)
    name = _clean(name)
    if code is not None:
        _validate_code(code)
    _require_unique(code=code, name=name, exclude_id=location.id)

    if code is not None:
        location.code = code
    if name is not None:
        location.name = name
    if address is not None:
        location.address = _clean(address)
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="LOCATION_UPDATED",
        details=f"Updated location {location.name} ({location.code})",
        entity_type="location",
        entity_id=location.id,
    )
    return location


def location_references(location_id: int) -> dict[str, int]:
    return {
        "motorcycles": db.session.query(Motorcycle).filter_by(current_location_id=location_id).count(),
        "users": db.session.query(User).filter_by(location_id=location_id).count(),
        "transfers": db.session.query(Transfer).filter(
            or_(Transfer.from_location_id == location_id, Transfer.to_location_id == location_id)
        ).count(),
        "sales": db.session.query(Sale).filter_by(branch_id=location_id).count(),
    }


def delete_location(actor, location_id: int) -> None:
    policy_service.require_permission(actor, "MANAGE_LOCATIONS")

    location = lock_for_update(db.session.query(Location).filter_by(id=location_id)).first()
    if not location:
        raise LocationNotFoundError(f"Location {location_id} not found")

    references = {k: v for k, v in location_references(location.id).items() if v}
    if references:
        summary = ", ".join(f"{count} {kind}" for kind, count in references.items())
        raise LocationConflictError(
            f"Location {location.name} is still referenced by {summary}",
            details={"references": references},
        )

    name, code = location.name, location.code
    db.session.delete(location)
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="LOCATION_DELETED",
        details=f"Deleted location {name} ({code})",
        entity_type="location",
        entity_id=location_id,
    )
