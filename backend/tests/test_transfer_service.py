# Overview: Pytest coverage for the transfer workflow and its stock transitions.

"""
Transfer Workflow Tests

Verifies:
- Dispatch by a warehouse manager moves every bike to transit at once
- Branch manager requests wait for admin approval before anything moves
- Receive and cancel move bikes to the destination / back to the origin
- Each transition is all-or-nothing and fails cleanly on stale selections
"""

import pytest

from motostock.extensions import db
from motostock.models import AuditLog, MotorcycleStatus, Transfer, TransferStatus
from motostock.services import transfer_service
from motostock.services.errors import PermissionDeniedError, PreconditionError, NotFoundError
from motostock.services.transfer_service import (
    TransferStateError,
    TransferValidationError,
    TransferNotFoundError,
)
from motostock.services.stock_service import StockPreconditionError

from conftest import bike


def _initiate(actor, origin, destination, chassis_numbers, **kwargs):
    transfer = transfer_service.initiate_transfer(
        actor,
        from_location_id=origin.id,
        to_location_id=destination.id,
        chassis_numbers=chassis_numbers,
        **kwargs,
    )
    db.session.commit()
    return transfer


# =============================================================================
# DISPATCH (warehouse manager / admin)
# =============================================================================


class TestDispatch:

    def test_warehouse_dispatch_moves_bikes_to_transit(
        self, db_session, warehouse, branch, warehouse_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 2)

        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)

        assert transfer.status == TransferStatus.PENDING
        assert transfer.status_label == "IN TRANSIT"
        assert transfer.reference == "TR-000001"
        assert transfer.chassis_numbers == chassis
        for cn in chassis:
            moved = bike(cn)
            assert moved.status == MotorcycleStatus.IN_TRANSIT
            assert moved.current_location_id is None
            assert moved.location_ref == "TRANSIT"

    def test_references_are_sequential(self, db_session, warehouse, branch, warehouse_manager, make_bikes):
        first, second = make_bikes(warehouse, 2)

        t1 = _initiate(warehouse_manager, warehouse, branch, [first])
        t2 = _initiate(warehouse_manager, warehouse, branch, [second])

        assert (t1.reference, t2.reference) == ("TR-000001", "TR-000002")

    def test_dispatch_is_audited(self, db_session, warehouse, branch, warehouse_manager, make_bikes):
        chassis = make_bikes(warehouse, 1)

        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)

        entry = db_session.query(AuditLog).filter_by(action="TRANSFER_INITIATED").one()
        assert entry.user_id == warehouse_manager.id
        assert entry.entity_id == str(transfer.id)
        assert transfer.reference in entry.details

    def test_receive_places_bikes_at_destination(
        self, db_session, warehouse, branch, warehouse_manager, branch_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 3)
        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)

        transfer_service.receive_transfer(branch_manager, transfer.id)
        db_session.commit()

        transfer = db_session.get(Transfer, transfer.id)
        assert transfer.status == TransferStatus.COMPLETED
        assert transfer.received_by_user_id == branch_manager.id
        assert transfer.completed_at is not None
        for cn in chassis:
            received = bike(cn)
            assert received.status == MotorcycleStatus.AT_BRANCH
            assert received.current_location_id == branch.id

    def test_second_receive_fails_without_changes(
        self, db_session, warehouse, branch, warehouse_manager, branch_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 1)
        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)
        transfer_service.receive_transfer(branch_manager, transfer.id)
        db_session.commit()
        logs_before = db_session.query(AuditLog).count()

        with pytest.raises(TransferStateError):
            transfer_service.receive_transfer(branch_manager, transfer.id)
        db_session.rollback()

        assert bike(chassis[0]).status == MotorcycleStatus.AT_BRANCH
        assert db_session.query(AuditLog).count() == logs_before

    def test_cancel_dispatched_transfer_restores_origin(
        self, db_session, warehouse, branch, warehouse_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 3)
        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)

        transfer_service.cancel_transfer(warehouse_manager, transfer.id, reason="Truck unavailable")
        db_session.commit()

        transfer = db_session.get(Transfer, transfer.id)
        assert transfer.status == TransferStatus.CANCELLED
        assert transfer.cancellation_reason == "Truck unavailable"
        for cn in chassis:
            restored = bike(cn)
            assert restored.status == MotorcycleStatus.IN_WAREHOUSE
            assert restored.current_location_id == warehouse.id

    def test_cancelled_transfer_cannot_be_received(
        self, db_session, warehouse, branch, warehouse_manager, branch_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 1)
        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)
        transfer_service.cancel_transfer(warehouse_manager, transfer.id)
        db_session.commit()

        with pytest.raises(TransferStateError):
            transfer_service.receive_transfer(branch_manager, transfer.id)

    def test_completed_transfer_cannot_be_cancelled(
        self, db_session, warehouse, branch, admin, make_bikes
    ):
        chassis = make_bikes(warehouse, 1)
        transfer = _initiate(admin, warehouse, branch, chassis)
        transfer_service.receive_transfer(admin, transfer.id)
        db_session.commit()

        with pytest.raises(TransferStateError):
            transfer_service.cancel_transfer(admin, transfer.id)

    def test_branch_to_branch_by_admin(self, db_session, branch, other_branch, admin, make_bikes):
        chassis = make_bikes(branch, 1)

        transfer = _initiate(admin, branch, other_branch, chassis)
        transfer_service.receive_transfer(admin, transfer.id)
        db_session.commit()

        assert bike(chassis[0]).current_location_id == other_branch.id
        assert bike(chassis[0]).status == MotorcycleStatus.AT_BRANCH


# =============================================================================
# APPROVAL (branch manager requests)
# =============================================================================


class TestApproval:

    def test_branch_manager_request_waits_for_approval(
        self, db_session, branch, other_branch, branch_manager, make_bikes
    ):
        chassis = make_bikes(branch, 1)

        transfer = _initiate(branch_manager, branch, other_branch, chassis)

        assert transfer.status == TransferStatus.PENDING_APPROVAL
        untouched = bike(chassis[0])
        assert untouched.status == MotorcycleStatus.AT_BRANCH
        assert untouched.current_location_id == branch.id

    def test_approve_then_receive(
        self, db_session, branch, other_branch, branch_manager, other_branch_manager, admin, make_bikes
    ):
        chassis = make_bikes(branch, 1)
        transfer = _initiate(branch_manager, branch, other_branch, chassis)

        transfer_service.approve_transfer(admin, transfer.id)
        db_session.commit()

        assert db_session.get(Transfer, transfer.id).status == TransferStatus.PENDING
        assert bike(chassis[0]).status == MotorcycleStatus.IN_TRANSIT
        assert bike(chassis[0]).current_location_id is None

        transfer_service.receive_transfer(other_branch_manager, transfer.id)
        db_session.commit()

        received = bike(chassis[0])
        assert received.status == MotorcycleStatus.AT_BRANCH
        assert received.current_location_id == other_branch.id

    def test_only_admin_approves(self, db_session, branch, other_branch, branch_manager, make_bikes):
        chassis = make_bikes(branch, 1)
        transfer = _initiate(branch_manager, branch, other_branch, chassis)

        with pytest.raises(PermissionDeniedError):
            transfer_service.approve_transfer(branch_manager, transfer.id)

    def test_approving_twice_fails(self, db_session, branch, other_branch, branch_manager, admin, make_bikes):
        chassis = make_bikes(branch, 1)
        transfer = _initiate(branch_manager, branch, other_branch, chassis)
        transfer_service.approve_transfer(admin, transfer.id)
        db_session.commit()

        with pytest.raises(TransferStateError):
            transfer_service.approve_transfer(admin, transfer.id)

    def test_pending_approval_cannot_be_received(
        self, db_session, branch, other_branch, branch_manager, other_branch_manager, make_bikes
    ):
        chassis = make_bikes(branch, 1)
        transfer = _initiate(branch_manager, branch, other_branch, chassis)

        with pytest.raises(TransferStateError):
            transfer_service.receive_transfer(other_branch_manager, transfer.id)

    def test_cancel_request_leaves_bikes_untouched(
        self, db_session, branch, other_branch, branch_manager, make_bikes
    ):
        chassis = make_bikes(branch, 2)
        transfer = _initiate(branch_manager, branch, other_branch, chassis)

        transfer_service.cancel_transfer(branch_manager, transfer.id)
        db_session.commit()

        assert db_session.get(Transfer, transfer.id).status == TransferStatus.CANCELLED
        for cn in chassis:
            assert bike(cn).status == MotorcycleStatus.AT_BRANCH
            assert bike(cn).current_location_id == branch.id

    def test_bike_cannot_be_requested_twice(self, db_session, branch, other_branch, branch_manager, make_bikes):
        chassis = make_bikes(branch, 1)
        _initiate(branch_manager, branch, other_branch, chassis)

        with pytest.raises(TransferStateError) as exc_info:
            transfer_service.initiate_transfer(
                branch_manager,
                from_location_id=branch.id,
                to_location_id=other_branch.id,
                chassis_numbers=chassis,
            )
        assert exc_info.value.details["chassis_numbers"] == chassis

    def test_approval_fails_when_bike_was_sold_meanwhile(
        self, db_session, branch, other_branch, branch_manager, sales_officer, admin, make_bikes
    ):
        from motostock.services import sale_service

        chassis = make_bikes(branch, 1)
        transfer = _initiate(branch_manager, branch, other_branch, chassis)
        sale_service.record_sale(sales_officer, chassis_number=chassis[0], customer_name="Ann", price_cents=15000)
        db_session.commit()

        with pytest.raises(StockPreconditionError):
            transfer_service.approve_transfer(admin, transfer.id)
        db_session.rollback()

        assert db_session.get(Transfer, transfer.id).status == TransferStatus.PENDING_APPROVAL
        assert bike(chassis[0]).status == MotorcycleStatus.SOLD


# =============================================================================
# VALIDATION AND PRECONDITIONS
# =============================================================================


class TestInitiateValidation:

    @pytest.mark.parametrize("chassis_numbers", [[], None])
    def test_empty_selection_rejected_without_writes(
        self, db_session, warehouse, branch, warehouse_manager, chassis_numbers
    ):
        with pytest.raises(TransferValidationError):
            transfer_service.initiate_transfer(
                warehouse_manager,
                from_location_id=warehouse.id,
                to_location_id=branch.id,
                chassis_numbers=chassis_numbers,
            )
        db_session.rollback()

        assert db_session.query(Transfer).count() == 0
        assert db_session.query(AuditLog).count() == 0

    @pytest.mark.parametrize("chassis_numbers", [5, {"BW-1000": 1}, "BW-1000", ["BW-1000", 7]])
    def test_malformed_selection_rejected_without_writes(
        self, db_session, warehouse, branch, warehouse_manager, make_bikes, chassis_numbers
    ):
        make_bikes(warehouse, 1)

        with pytest.raises(TransferValidationError):
            transfer_service.initiate_transfer(
                warehouse_manager,
                from_location_id=warehouse.id,
                to_location_id=branch.id,
                chassis_numbers=chassis_numbers,
            )
        db_session.rollback()

        assert db_session.query(Transfer).count() == 0
        assert bike("BW-1000").status == MotorcycleStatus.IN_WAREHOUSE

    def test_duplicate_chassis_rejected(self, db_session, warehouse, branch, warehouse_manager, make_bikes):
        chassis = make_bikes(warehouse, 1)

        with pytest.raises(TransferValidationError) as exc_info:
            transfer_service.initiate_transfer(
                warehouse_manager,
                from_location_id=warehouse.id,
                to_location_id=branch.id,
                chassis_numbers=[chassis[0], chassis[0]],
            )
        assert exc_info.value.details["chassis_numbers"] == chassis

    def test_same_origin_and_destination_rejected(self, db_session, branch, admin, make_bikes):
        chassis = make_bikes(branch, 1)

        with pytest.raises(TransferValidationError):
            transfer_service.initiate_transfer(
                admin, from_location_id=branch.id, to_location_id=branch.id, chassis_numbers=chassis,
            )

    def test_destination_must_be_branch(self, db_session, warehouse, branch, admin, make_bikes):
        chassis = make_bikes(branch, 1)

        with pytest.raises(TransferValidationError):
            transfer_service.initiate_transfer(
                admin, from_location_id=branch.id, to_location_id=warehouse.id, chassis_numbers=chassis,
            )

    def test_unknown_location(self, db_session, warehouse, admin, make_bikes):
        chassis = make_bikes(warehouse, 1)

        with pytest.raises(NotFoundError):
            transfer_service.initiate_transfer(
                admin, from_location_id=warehouse.id, to_location_id=99999, chassis_numbers=chassis,
            )

    def test_unknown_chassis_named_in_error(self, db_session, warehouse, branch, warehouse_manager, make_bikes):
        chassis = make_bikes(warehouse, 1)

        with pytest.raises(NotFoundError) as exc_info:
            transfer_service.initiate_transfer(
                warehouse_manager,
                from_location_id=warehouse.id,
                to_location_id=branch.id,
                chassis_numbers=[chassis[0], "NOPE-1"],
            )
        assert exc_info.value.details["chassis_numbers"] == ["NOPE-1"]

    def test_stale_selection_moves_nothing(self, db_session, warehouse, branch, warehouse_manager, make_bikes):
        first, second = make_bikes(warehouse, 2)
        _initiate(warehouse_manager, warehouse, branch, [second])

        with pytest.raises(PreconditionError) as exc_info:
            transfer_service.initiate_transfer(
                warehouse_manager,
                from_location_id=warehouse.id,
                to_location_id=branch.id,
                chassis_numbers=[first, second],
            )
        db_session.rollback()

        assert exc_info.value.retryable is True
        assert exc_info.value.details["chassis_numbers"] == [second]
        assert bike(first).status == MotorcycleStatus.IN_WAREHOUSE
        assert bike(first).current_location_id == warehouse.id
        assert db_session.query(Transfer).count() == 1

    def test_bike_at_another_location_is_stale(
        self, db_session, warehouse, branch, warehouse_manager, make_bikes
    ):
        chassis = make_bikes(branch, 1)

        with pytest.raises(StockPreconditionError):
            transfer_service.initiate_transfer(
                warehouse_manager,
                from_location_id=warehouse.id,
                to_location_id=branch.id,
                chassis_numbers=chassis,
            )


# =============================================================================
# SCOPE AND READS
# =============================================================================


class TestScope:

    def test_manager_cannot_send_from_foreign_location(
        self, db_session, branch, other_branch, other_branch_manager, make_bikes
    ):
        chassis = make_bikes(branch, 1)

        with pytest.raises(PermissionDeniedError):
            transfer_service.initiate_transfer(
                other_branch_manager,
                from_location_id=branch.id,
                to_location_id=other_branch.id,
                chassis_numbers=chassis,
            )

    def test_only_destination_receives(
        self, db_session, warehouse, branch, other_branch, warehouse_manager, other_branch_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 1)
        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)

        with pytest.raises(PermissionDeniedError):
            transfer_service.receive_transfer(other_branch_manager, transfer.id)

    def test_only_origin_cancels(
        self, db_session, warehouse, branch, warehouse_manager, branch_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 1)
        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)

        with pytest.raises(PermissionDeniedError):
            transfer_service.cancel_transfer(branch_manager, transfer.id)

    def test_sales_officer_cannot_initiate(self, db_session, branch, other_branch, sales_officer, make_bikes):
        chassis = make_bikes(branch, 1)

        with pytest.raises(PermissionDeniedError):
            transfer_service.initiate_transfer(
                sales_officer,
                from_location_id=branch.id,
                to_location_id=other_branch.id,
                chassis_numbers=chassis,
            )

    def test_list_is_scoped_to_own_location(
        self, db_session, warehouse, branch, other_branch, admin, warehouse_manager,
        branch_manager, other_branch_manager, make_bikes
    ):
        to_branch = make_bikes(warehouse, 1)
        between_branches = make_bikes(branch, 1)
        _initiate(warehouse_manager, warehouse, branch, to_branch)
        _initiate(admin, branch, other_branch, between_branches)

        assert len(transfer_service.list_transfers(admin)) == 2
        assert len(transfer_service.list_transfers(warehouse_manager)) == 1
        assert len(transfer_service.list_transfers(branch_manager)) == 2
        assert len(transfer_service.list_transfers(other_branch_manager)) == 1

    def test_list_filters_by_status(self, db_session, warehouse, branch, warehouse_manager, make_bikes):
        first, second = make_bikes(warehouse, 2)
        t1 = _initiate(warehouse_manager, warehouse, branch, [first])
        _initiate(warehouse_manager, warehouse, branch, [second])
        transfer_service.cancel_transfer(warehouse_manager, t1.id)
        db_session.commit()

        cancelled = transfer_service.list_transfers(warehouse_manager, status=TransferStatus.CANCELLED)
        assert [t.id for t in cancelled] == [t1.id]

        with pytest.raises(TransferValidationError):
            transfer_service.list_transfers(warehouse_manager, status="LOST")

    def test_get_foreign_transfer_denied(
        self, db_session, warehouse, branch, warehouse_manager, other_branch_manager, make_bikes
    ):
        chassis = make_bikes(warehouse, 1)
        transfer = _initiate(warehouse_manager, warehouse, branch, chassis)

        with pytest.raises(PermissionDeniedError):
            transfer_service.get_transfer(other_branch_manager, transfer.id)

    def test_get_unknown_transfer(self, db_session, admin):
        with pytest.raises(TransferNotFoundError):
            transfer_service.get_transfer(admin, 424242)
