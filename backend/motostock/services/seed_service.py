# Overview: Idempotent demo dataset: three locations, one user per role, twenty motorcycles.

from __future__ import annotations

from ..extensions import db
from ..models import Location, LocationType, Motorcycle, Role, User
from ..time_utils import utcnow
from . import auth_service, stock_service
from .audit_service import log_action
from .location_service import get_location_by_code


DEFAULT_PASSWORD = "Password123!"

DEMO_LOCATIONS = [
    ("loc_wh_1", "Central Warehouse", LocationType.WAREHOUSE, "123 Industrial Park"),
    ("loc_br_1", "Downtown Branch", LocationType.BRANCH, "45 City Center"),
    ("loc_br_2", "Northside Branch", LocationType.BRANCH, "88 North Road"),
]

# (name, email, role, location code)
DEMO_USERS = [
    ("Admin User", "admin@binawoo.com", Role.ADMIN, None),
    ("Warehouse Mgr", "warehouse@binawoo.com", Role.WAREHOUSE_MANAGER, "loc_wh_1"),
    ("Branch Mgr 1", "branch1@binawoo.com", Role.BRANCH_MANAGER, "loc_br_1"),
    ("Sales Officer 1", "sales1@binawoo.com", Role.SALES_OFFICER, "loc_br_1"),
]

DEMO_BIKE_COUNT = 20
DEMO_COLORS = ("Red", "Black", "White")


def demo_bikes() -> list[tuple[str, str, str, str]]:
    """(chassis, model type, color, location code); first half in the warehouse, rest at Downtown."""
    bikes = []
    for i in range(DEMO_BIKE_COUNT):
        bikes.append((
            f"BW-{1000 + i}",
            "Sport 150cc" if i % 2 == 0 else "Cruiser 250cc",
            DEMO_COLORS[i % 3],
            "loc_wh_1" if i < DEMO_BIKE_COUNT // 2 else "loc_br_1",
        ))
    return bikes


def seed_demo_data(password: str = DEFAULT_PASSWORD) -> dict[str, int]:
    """
    Create whatever part of the demo dataset is missing. Flushes, never commits.

    Returns counts of records created per kind; running twice creates nothing
    the second time.
    """
    created = {"locations": 0, "users": 0, "motorcycles": 0}

    for code, name, location_type, address in DEMO_LOCATIONS:
        if get_location_by_code(code):
            continue
        db.session.add(Location(code=code, name=name, type=location_type, address=address))
        created["locations"] += 1
    db.session.flush()

    for name, email, role, location_code in DEMO_USERS:
        if db.session.query(User.id).filter_by(email=email).first():
            continue
        location = get_location_by_code(location_code) if location_code else None
        auth_service.create_user(
            name=name,
            email=email,
            password=password,
            role=role,
            location_id=location.id if location else None,
        )
        created["users"] += 1

    now = utcnow()
    for chassis, model_type, color, location_code in demo_bikes():
        if db.session.get(Motorcycle, chassis) is not None:
            continue
        bike = Motorcycle(chassis_number=chassis, model_type=model_type, color=color, imported_at=now)
        stock_service.place_at(bike, get_location_by_code(location_code))
        db.session.add(bike)
        created["motorcycles"] += 1
    db.session.flush()

    if any(created.values()):
        log_action(
            user_id=None,
            action="SYSTEM_SEEDED",
            details=(
                f"Seeded demo data: {created['locations']} location(s), "
                f"{created['users']} user(s), {created['motorcycles']} motorcycle(s)"
            ),
        )
    return created
