# Overview: Pytest coverage for stock intake, detail edits, retirement and inventory listing.

import pytest

from motostock.extensions import db
from motostock.models import AuditLog, MotorcycleStatus
from motostock.services import motorcycle_service, transfer_service
from motostock.services.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)

from conftest import bike


def _import(actor, chassis_number, **kwargs):
    created = motorcycle_service.import_motorcycle(
        actor,
        chassis_number=chassis_number,
        model_type=kwargs.pop("model_type", "Sport 150cc"),
        color=kwargs.pop("color", "Black"),
        **kwargs,
    )
    db.session.commit()
    return created


class TestImport:

    def test_warehouse_manager_imports_into_own_warehouse(self, db_session, warehouse, warehouse_manager):
        created = _import(warehouse_manager, "BW-2000")

        assert created.status == MotorcycleStatus.IN_WAREHOUSE
        assert created.current_location_id == warehouse.id
        assert created.price_cents is None
        entry = db_session.query(AuditLog).filter_by(action="MOTORCYCLE_IMPORTED").one()
        assert entry.details == "Imported motorcycle BW-2000"
        assert entry.entity_id == "BW-2000"

    def test_admin_import_at_branch_gets_branch_status(self, db_session, branch, admin):
        created = _import(admin, "BW-2001", location_id=branch.id)

        assert created.status == MotorcycleStatus.AT_BRANCH

    def test_admin_must_name_location(self, db_session, admin):
        with pytest.raises(ValidationError):
            _import(admin, "BW-2002")

    def test_status_must_match_location_type(self, db_session, warehouse, warehouse_manager):
        with pytest.raises(ValidationError):
            _import(warehouse_manager, "BW-2003", status=MotorcycleStatus.AT_BRANCH)

        created = _import(warehouse_manager, "BW-2004", status=MotorcycleStatus.IN_WAREHOUSE)
        assert created.status == MotorcycleStatus.IN_WAREHOUSE

    def test_duplicate_chassis_conflicts(self, db_session, warehouse, warehouse_manager):
        _import(warehouse_manager, "BW-2005")

        with pytest.raises(ConflictError):
            _import(warehouse_manager, "BW-2005", color="Red")

    def test_manager_cannot_import_elsewhere(self, db_session, warehouse, branch, warehouse_manager):
        with pytest.raises(PermissionDeniedError):
            _import(warehouse_manager, "BW-2006", location_id=branch.id)

    def test_branch_manager_cannot_import(self, db_session, branch, branch_manager):
        with pytest.raises(PermissionDeniedError):
            _import(branch_manager, "BW-2007")

    def test_unknown_location(self, db_session, admin):
        with pytest.raises(NotFoundError):
            _import(admin, "BW-2008", location_id=4040)

    def test_blank_fields_rejected(self, db_session, warehouse, warehouse_manager):
        with pytest.raises(ValidationError):
            _import(warehouse_manager, "  ")
        with pytest.raises(ValidationError):
            _import(warehouse_manager, "BW-2009", color="")


class TestDetails:

    def test_edit_changes_details_only(self, db_session, warehouse, warehouse_manager, make_bikes):
        chassis = make_bikes(warehouse, 1)[0]

        motorcycle_service.update_motorcycle_details(warehouse_manager, chassis, color="Blue")
        db_session.commit()

        edited = bike(chassis)
        assert edited.color == "Blue"
        assert edited.status == MotorcycleStatus.IN_WAREHOUSE
        assert edited.current_location_id == warehouse.id

    def test_edit_outside_scope_denied(self, db_session, branch, warehouse_manager, make_bikes):
        chassis = make_bikes(branch, 1)[0]

        with pytest.raises(PermissionDeniedError):
            motorcycle_service.update_motorcycle_details(warehouse_manager, chassis, color="Blue")


class TestRetire:

    def test_retire_hides_bike(self, db_session, warehouse, admin, warehouse_manager, make_bikes):
        keep, retire = make_bikes(warehouse, 2)

        motorcycle_service.retire_motorcycle(admin, retire, reason="Water damage")
        db_session.commit()

        assert bike(retire).is_retired is True
        listed = motorcycle_service.list_motorcycles(warehouse_manager)
        assert [b.chassis_number for b in listed] == [keep]
        with pytest.raises(NotFoundError):
            motorcycle_service.get_motorcycle(admin, retire)

    def test_bike_on_open_transfer_cannot_be_retired(
        self, db_session, branch, other_branch, branch_manager, admin, make_bikes
    ):
        chassis = make_bikes(branch, 1)
        transfer_service.initiate_transfer(
            branch_manager, from_location_id=branch.id, to_location_id=other_branch.id, chassis_numbers=chassis,
        )
        db_session.commit()

        with pytest.raises(PreconditionError):
            motorcycle_service.retire_motorcycle(admin, chassis[0])

    def test_only_admin_retires(self, db_session, warehouse, warehouse_manager, make_bikes):
        chassis = make_bikes(warehouse, 1)[0]

        with pytest.raises(PermissionDeniedError):
            motorcycle_service.retire_motorcycle(warehouse_manager, chassis)


class TestInventoryListing:

    def test_scoped_to_own_location(self, db_session, warehouse, branch, admin, branch_manager, make_bikes):
        make_bikes(warehouse, 2)
        at_branch = make_bikes(branch, 1, prefix="BR")

        assert len(motorcycle_service.list_motorcycles(admin)) == 3
        assert [b.chassis_number for b in motorcycle_service.list_motorcycles(branch_manager)] == at_branch

    def test_location_filter_ignored_for_staff(self, db_session, warehouse, branch, branch_manager, make_bikes):
        make_bikes(warehouse, 2)
        make_bikes(branch, 1, prefix="BR")

        listed = motorcycle_service.list_motorcycles(branch_manager, location_id=warehouse.id)

        assert all(b.current_location_id == branch.id for b in listed)

    def test_filters(self, db_session, warehouse, admin, make_bikes):
        make_bikes(warehouse, 2)
        _import(admin, "ZX-1", model_type="Cruiser 250cc", location_id=warehouse.id)

        assert [b.chassis_number for b in motorcycle_service.list_motorcycles(admin, q="cruiser")] == ["ZX-1"]
        assert motorcycle_service.list_motorcycles(admin, status=MotorcycleStatus.SOLD) == []
        with pytest.raises(ValidationError):
            motorcycle_service.list_motorcycles(admin, status="MISSING")

    def test_foreign_bike_hidden(self, db_session, warehouse, branch_manager, make_bikes):
        chassis = make_bikes(warehouse, 1)[0]

        with pytest.raises(PermissionDeniedError):
            motorcycle_service.get_motorcycle(branch_manager, chassis)
