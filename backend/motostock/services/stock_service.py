# Overview: Motorcycle status/location primitives shared by transfers, sales and imports.

"""
Stock State Invariants (authoritative)

- IN_TRANSIT  <=> no current location (the TRANSIT pseudo-location)
- SOLD        <=> sold_at and price_cents are set; otherwise both are unset
- IN_WAREHOUSE only at a WAREHOUSE, AT_BRANCH only at a BRANCH
- The resting status is derived from Location.type, never from the id

Functions here are the only code that writes Motorcycle.status,
current_location_id, sold_at and price_cents. They mutate and flush; the
caller owns the transaction.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Location, LocationType, Motorcycle, MotorcycleStatus, TRANSIT_LOCATION
from .concurrency import lock_for_update
from .errors import NotFoundError, PreconditionError, MotostockError


class StockError(MotostockError):
    """Base class for stock errors."""
    pass


class MotorcycleNotFoundError(NotFoundError, StockError):
    pass


class StockPreconditionError(PreconditionError, StockError):
    """A bike is not where (or in the state) the caller expected."""
    pass


class StockInvariantError(StockError):
    """Stored state violates a stock invariant."""
    status_code = 500


def resting_status_for(location: Location) -> str:
    if location.type == LocationType.WAREHOUSE:
        return MotorcycleStatus.IN_WAREHOUSE
    return MotorcycleStatus.AT_BRANCH


# =============================================================================
# LOADING
# =============================================================================

def get_motorcycle(chassis_number: str, *, include_retired: bool = False) -> Motorcycle:
    bike = db.session.get(Motorcycle, chassis_number)
    if bike is None or (bike.is_retired and not include_retired):
        raise MotorcycleNotFoundError(
            f"Motorcycle {chassis_number} not found",
            details={"chassis_numbers": [chassis_number]},
        )
    return bike


def load_motorcycles(chassis_numbers: list[str], *, lock: bool = True) -> list[Motorcycle]:
    """
    Load bikes by chassis number, in the order given.

    Locks the rows for the rest of the transaction. Raises
    MotorcycleNotFoundError naming every unknown (or retired) chassis.
    """
    query = db.session.query(Motorcycle).filter(Motorcycle.chassis_number.in_(chassis_numbers))
    if lock:
        query = lock_for_update(query)
    found = {bike.chassis_number: bike for bike in query.all()}

    missing = [cn for cn in chassis_numbers if cn not in found or found[cn].is_retired]
    if missing:
        raise MotorcycleNotFoundError(
            f"Unknown motorcycle(s): {', '.join(missing)}",
            details={"chassis_numbers": missing},
        )
    return [found[cn] for cn in chassis_numbers]


# =============================================================================
# PRECONDITIONS
# =============================================================================

def require_available_at(bikes: list[Motorcycle], location: Location) -> None:
    """
    Every bike must be at rest at the location with the status its type implies.

    WHY: The UI selection may be stale; this is re-checked on the locked rows
    right before the write.
    """
    expected = resting_status_for(location)
    stale = [
        bike.chassis_number
        for bike in bikes
        if bike.is_retired
        or bike.status != expected
        or bike.current_location_id != location.id
    ]
    if stale:
        raise StockPreconditionError(
            f"Motorcycle(s) no longer {expected} at {location.name}: {', '.join(stale)}. "
            "Refresh and try again.",
            details={"chassis_numbers": stale, "expected_status": expected},
        )


def require_in_transit(bikes: list[Motorcycle]) -> None:
    stale = [bike.chassis_number for bike in bikes if bike.status != MotorcycleStatus.IN_TRANSIT]
    if stale:
        raise StockPreconditionError(
            f"Motorcycle(s) not in transit: {', '.join(stale)}. Refresh and try again.",
            details={"chassis_numbers": stale, "expected_status": MotorcycleStatus.IN_TRANSIT},
        )


# =============================================================================
# TRANSITIONS
# =============================================================================

def move_to_transit(bike: Motorcycle) -> None:
    bike.status = MotorcycleStatus.IN_TRANSIT
    bike.current_location_id = None


def place_at(bike: Motorcycle, location: Location) -> None:
    """Put an unsold bike at rest at a location."""
    bike.status = resting_status_for(location)
    bike.current_location_id = location.id
    bike.sold_at = None
    bike.price_cents = None


def mark_sold(bike: Motorcycle, *, sold_at: datetime, price_cents: int) -> None:
    """SOLD bikes keep their location: the branch that sold them."""
    if bike.status != MotorcycleStatus.AT_BRANCH:
        raise StockPreconditionError(
            f"Motorcycle {bike.chassis_number} is {bike.status}, not AT_BRANCH",
            details={"chassis_numbers": [bike.chassis_number]},
        )
    bike.status = MotorcycleStatus.SOLD
    bike.sold_at = sold_at
    bike.price_cents = price_cents


def reprice_sold(bike: Motorcycle, price_cents: int) -> None:
    """Keep the bike's mirrored price in step with its sale."""
    if bike.status != MotorcycleStatus.SOLD:
        raise StockPreconditionError(
            f"Motorcycle {bike.chassis_number} is {bike.status}, not SOLD",
            details={"chassis_numbers": [bike.chassis_number]},
        )
    bike.price_cents = price_cents


def clear_sale(bike: Motorcycle) -> None:
    """Return a sold bike to the resting status of the location it sits at."""
    if bike.status != MotorcycleStatus.SOLD:
        raise StockPreconditionError(
            f"Motorcycle {bike.chassis_number} is {bike.status}, not SOLD",
            details={"chassis_numbers": [bike.chassis_number]},
        )
    location = db.session.get(Location, bike.current_location_id)
    place_at(bike, location)


# =============================================================================
# CONSISTENCY
# =============================================================================

def find_violations(bike: Motorcycle, location: Location | None = None) -> list[str]:
    """Every broken invariant for one bike, as human-readable strings."""
    problems = []
    if bike.status not in MotorcycleStatus.ALL:
        problems.append(f"unknown status {bike.status!r}")

    in_transit = bike.status == MotorcycleStatus.IN_TRANSIT
    if in_transit != (bike.current_location_id is None):
        problems.append(f"status {bike.status} with location {bike.current_location_id!r}")

    sold = bike.status == MotorcycleStatus.SOLD
    if sold and (bike.sold_at is None or bike.price_cents is None):
        problems.append("SOLD without sold_at/price")
    if not sold and (bike.sold_at is not None or bike.price_cents is not None):
        problems.append(f"{bike.status} with sold_at/price set")

    if bike.status in MotorcycleStatus.AT_REST and bike.current_location_id is not None:
        if location is None:
            location = db.session.get(Location, bike.current_location_id)
        if location is None:
            problems.append(f"location {bike.current_location_id} does not exist")
        elif resting_status_for(location) != bike.status:
            problems.append(f"{bike.status} at {location.type} {location.code}")
    return problems


def assert_consistent(bike: Motorcycle) -> None:
    problems = find_violations(bike)
    if problems:
        raise StockInvariantError(
            f"Motorcycle {bike.chassis_number} is inconsistent: {'; '.join(problems)}",
            details={"chassis_number": bike.chassis_number, "problems": problems},
        )


def verify_all() -> dict[str, list[str]]:
    """chassis_number -> problems, for every bike that breaks an invariant."""
    locations = {loc.id: loc for loc in db.session.query(Location).all()}
    report = {}
    for bike in db.session.query(Motorcycle).order_by(Motorcycle.chassis_number).all():
        problems = find_violations(bike, locations.get(bike.current_location_id))
        if problems:
            report[bike.chassis_number] = problems
    return report


def stock_levels(location_ids: list[int] | None = None) -> dict:
    """
    Counts per status per location (TRANSIT for bikes between locations).

    Retired bikes are excluded. When location_ids is given, bikes in transit
    are left out: they belong to no location.
    """
    query = (
        db.session.query(Motorcycle.current_location_id, Motorcycle.status, func.count())
        .filter(Motorcycle.is_retired.is_(False))
        .group_by(Motorcycle.current_location_id, Motorcycle.status)
    )
    if location_ids is not None:
        query = query.filter(Motorcycle.current_location_id.in_(location_ids))

    levels: dict = {}
    for location_id, status, count in query.all():
        key = TRANSIT_LOCATION if location_id is None else location_id
        levels.setdefault(key, {s: 0 for s in MotorcycleStatus.ALL})
        levels[key][status] = count
    return levels
