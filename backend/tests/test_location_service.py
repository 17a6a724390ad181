# Overview: Pytest coverage for warehouse and branch management.

import pytest

from motostock.models import Location, LocationType
from motostock.services import location_service
from motostock.services.errors import ConflictError, PermissionDeniedError, ValidationError
from motostock.services.location_service import LocationNotFoundError


def test_create_location(db_session, admin):
    location = location_service.create_location(
        admin, code="loc_br_9", name="Harbour Branch", location_type=LocationType.BRANCH, address=" 1 Quay ",
    )
    db_session.commit()

    stored = db_session.get(Location, location.id)
    assert stored.type == LocationType.BRANCH
    assert stored.address == "1 Quay"


def test_code_and_name_unique_case_insensitive(db_session, admin, warehouse):
    with pytest.raises(ConflictError):
        location_service.create_location(
            admin, code="LOC_WH_1", name="Second Warehouse", location_type=LocationType.WAREHOUSE,
        )
    with pytest.raises(ConflictError):
        location_service.create_location(
            admin, code="loc_wh_2", name="central warehouse", location_type=LocationType.WAREHOUSE,
        )


@pytest.mark.parametrize("code,location_type", [
    ("TRANSIT", LocationType.BRANCH),
    ("transit", LocationType.WAREHOUSE),
    ("loc_x", "SHOWROOM"),
    ("", LocationType.BRANCH),
])
def test_invalid_locations_rejected(db_session, admin, code, location_type):
    with pytest.raises(ValidationError):
        location_service.create_location(admin, code=code, name="Somewhere", location_type=location_type)


def test_type_cannot_change(db_session, admin, warehouse):
    with pytest.raises(ValidationError):
        location_service.update_location(admin, warehouse.id, location_type=LocationType.BRANCH)


def test_rename(db_session, admin, branch):
    location_service.update_location(admin, branch.id, name="Downtown Flagship")
    db_session.commit()

    assert db_session.get(Location, branch.id).name == "Downtown Flagship"


def test_delete_unused_location(db_session, admin):
    location = location_service.create_location(
        admin, code="loc_tmp", name="Pop-up Branch", location_type=LocationType.BRANCH,
    )
    db_session.commit()

    location_service.delete_location(admin, location.id)
    db_session.commit()

    with pytest.raises(LocationNotFoundError):
        location_service.get_location(location.id)


def test_delete_referenced_location_refused(db_session, admin, branch, make_bikes):
    make_bikes(branch, 2)

    with pytest.raises(ConflictError) as exc_info:
        location_service.delete_location(admin, branch.id)
    assert exc_info.value.details["references"] == {"motorcycles": 2}


def test_only_admin_manages_locations(db_session, warehouse_manager):
    with pytest.raises(PermissionDeniedError):
        location_service.create_location(
            warehouse_manager, code="loc_wh_9", name="Overflow", location_type=LocationType.WAREHOUSE,
        )


def test_list_by_type(db_session, warehouse, branch, other_branch):
    branches = location_service.list_locations(LocationType.BRANCH)

    assert [loc.code for loc in branches] == ["loc_br_1", "loc_br_2"]
    assert len(location_service.list_locations()) == 3
