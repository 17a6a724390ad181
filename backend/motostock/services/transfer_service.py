# backend/motostock/services/transfer_service.py
"""
Transfer workflow: moving batches of motorcycles to a branch.

WHY: A transfer changes the transfer record and every listed bike together.
Each operation below performs all of its writes in the caller's transaction
(flush, never commit), so either the transfer and all of its bikes move, or
nothing does.

LIFECYCLE:
1. PENDING_APPROVAL: branch manager request; bikes stay at rest at the origin
2. PENDING ("IN TRANSIT"): bikes are IN_TRANSIT with no location
3. COMPLETED: received; bikes AT_BRANCH at the destination
4. CANCELLED: bikes back at the origin (PENDING) or never moved (PENDING_APPROVAL)

Every transition re-reads and locks the bikes and re-checks their status,
so a selection made against stale data fails as a precondition error
instead of double-moving a bike.
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Transfer, TransferItem, TransferStatus, LocationType
from ..time_utils import utcnow
from . import policy_service, stock_service
from .audit_service import log_action
from .concurrency import lock_for_update
from .document_service import next_reference, TRANSFER_DOCUMENT
from .errors import (
    MotostockError,
    ValidationError,
    PreconditionError,
    NotFoundError,
    PermissionDeniedError,
)
from .location_service import get_location


class TransferError(MotostockError):
    """Raised when transfer operations fail."""
    pass


class TransferValidationError(ValidationError, TransferError):
    pass


class TransferStateError(PreconditionError, TransferError):
    """The transfer is not in the state the requested transition starts from."""
    pass


class TransferNotFoundError(NotFoundError, TransferError):
    pass


def _normalize_chassis_numbers(chassis_numbers) -> list[str]:
    if chassis_numbers is None:
        raise TransferValidationError("Select at least one motorcycle")
    if not isinstance(chassis_numbers, (list, tuple)):
        raise TransferValidationError("chassis_numbers must be a list")
    if not chassis_numbers:
        raise TransferValidationError("Select at least one motorcycle")
    if any(not isinstance(cn, str) for cn in chassis_numbers):
        raise TransferValidationError("Chassis numbers must be strings")

    cleaned = [cn.strip() for cn in chassis_numbers]
    if any(not cn for cn in cleaned):
        raise TransferValidationError("Chassis numbers cannot be blank")

    seen = set()
    duplicates = []
    for cn in cleaned:
        if cn in seen and cn not in duplicates:
            duplicates.append(cn)
        seen.add(cn)
    if duplicates:
        raise TransferValidationError(
            f"Duplicate chassis number(s): {', '.join(duplicates)}",
            details={"chassis_numbers": duplicates},
        )
    return cleaned


def _load_transfer(transfer_id: int, *, lock: bool = True) -> Transfer:
    query = db.session.query(Transfer).filter_by(id=transfer_id)
    if lock:
        query = lock_for_update(query)
    transfer = query.first()
    if not transfer:
        raise TransferNotFoundError(f"Transfer {transfer_id} not found")
    return transfer


def _require_status(transfer: Transfer, expected: tuple[str, ...], action: str) -> None:
    if transfer.status not in expected:
        raise TransferStateError(
            f"Cannot {action} transfer {transfer.reference}: it is {transfer.status_label}",
            details={"transfer_id": transfer.id, "status": transfer.status},
        )


def _awaiting_approval(chassis_numbers: list[str]) -> list[str]:
    """Bikes already requested on another transfer that has not been approved yet."""
    rows = (
        db.session.query(TransferItem.chassis_number)
        .join(Transfer, Transfer.id == TransferItem.transfer_id)
        .filter(
            Transfer.status == TransferStatus.PENDING_APPROVAL,
            TransferItem.chassis_number.in_(chassis_numbers),
        )
        .all()
    )
    return sorted({row[0] for row in rows})


def open_transfer_chassis(chassis_numbers: list[str]) -> list[str]:
    """Bikes listed on any transfer that is still open."""
    rows = (
        db.session.query(TransferItem.chassis_number)
        .join(Transfer, Transfer.id == TransferItem.transfer_id)
        .filter(
            Transfer.status.in_(TransferStatus.OPEN),
            TransferItem.chassis_number.in_(chassis_numbers),
        )
        .all()
    )
    return sorted({row[0] for row in rows})


# =============================================================================
# TRANSITIONS
# =============================================================================

def initiate_transfer(
    actor,
    *,
    from_location_id: int,
    to_location_id: int,
    chassis_numbers: list[str],
    note: str | None = None,
) -> Transfer:
    """
    Create a transfer of bikes at rest at the origin to a branch.

    Branch managers create PENDING_APPROVAL requests and nothing moves yet.
    Everyone else dispatches immediately: the transfer starts PENDING and the
    bikes go IN_TRANSIT in the same transaction.
    """
    policy_service.require_permission(actor, "INITIATE_TRANSFER")

    chassis_numbers = _normalize_chassis_numbers(chassis_numbers)
    if from_location_id is None or to_location_id is None:
        raise TransferValidationError("Origin and destination are required")
    if from_location_id == to_location_id:
        raise TransferValidationError("Origin and destination must differ")

    origin = get_location(from_location_id)
    destination = get_location(to_location_id)
    if destination.type != LocationType.BRANCH:
        raise TransferValidationError(
            f"Destination {destination.name} is not a branch",
            details={"to_location_id": destination.id},
        )

    policy_service.require_location_scope(actor, origin.id)

    bikes = stock_service.load_motorcycles(chassis_numbers)
    stock_service.require_available_at(bikes, origin)

    already_requested = _awaiting_approval(chassis_numbers)
    if already_requested:
        raise TransferStateError(
            f"Motorcycle(s) already on a transfer awaiting approval: {', '.join(already_requested)}",
            details={"chassis_numbers": already_requested},
        )

    status = policy_service.initial_transfer_status(actor)
    now = utcnow()

    transfer = Transfer(
        reference=next_reference(document_type=TRANSFER_DOCUMENT, prefix="TR"),
        from_location_id=origin.id,
        to_location_id=destination.id,
        status=status,
        note=note,
        initiated_by_user_id=actor.id,
        initiated_at=now,
    )
    transfer.items = [TransferItem(chassis_number=cn) for cn in chassis_numbers]
    db.session.add(transfer)

    if status == TransferStatus.PENDING:
        for bike in bikes:
            stock_service.move_to_transit(bike)

    db.session.flush()

    log_action(
        user_id=actor.id,
        action="TRANSFER_INITIATED",
        details=(
            f"Initiated transfer {transfer.reference} of {len(bikes)} motorcycle(s) "
            f"from {origin.name} to {destination.name} ({transfer.status_label})"
        ),
        entity_type="transfer",
        entity_id=transfer.id,
    )
    return transfer


def approve_transfer(actor, transfer_id: int) -> Transfer:
    """PENDING_APPROVAL -> PENDING; the deferred move to transit happens now."""
    policy_service.require_permission(actor, "APPROVE_TRANSFER")

    transfer = _load_transfer(transfer_id)
    _require_status(transfer, (TransferStatus.PENDING_APPROVAL,), "approve")

    origin = get_location(transfer.from_location_id)
    bikes = stock_service.load_motorcycles(transfer.chassis_numbers)
    stock_service.require_available_at(bikes, origin)

    for bike in bikes:
        stock_service.move_to_transit(bike)

    transfer.status = TransferStatus.PENDING
    transfer.approved_by_user_id = actor.id
    transfer.approved_at = utcnow()
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="TRANSFER_APPROVED",
        details=f"Approved transfer {transfer.reference}; {len(bikes)} motorcycle(s) now in transit",
        entity_type="transfer",
        entity_id=transfer.id,
    )
    return transfer


def receive_transfer(actor, transfer_id: int) -> Transfer:
    """
    PENDING -> COMPLETED at the destination branch.

    A second receive fails with TransferStateError and changes nothing.
    """
    policy_service.require_permission(actor, "RECEIVE_TRANSFER")

    transfer = _load_transfer(transfer_id)
    policy_service.require_location_scope(actor, transfer.to_location_id)
    _require_status(transfer, (TransferStatus.PENDING,), "receive")

    destination = get_location(transfer.to_location_id)
    bikes = stock_service.load_motorcycles(transfer.chassis_numbers)
    stock_service.require_in_transit(bikes)

    for bike in bikes:
        stock_service.place_at(bike, destination)

    transfer.status = TransferStatus.COMPLETED
    transfer.received_by_user_id = actor.id
    transfer.completed_at = utcnow()
    db.session.flush()

    log_action(
        user_id=actor.id,
        action="TRANSFER_RECEIVED",
        details=f"Received transfer {transfer.reference} at {destination.name}",
        entity_type="transfer",
        entity_id=transfer.id,
    )
    return transfer


def cancel_transfer(actor, transfer_id: int, reason: str | None = None) -> Transfer:
    """
    PENDING_APPROVAL | PENDING -> CANCELLED.

    Bikes of a PENDING transfer return to the origin with the resting status
    of its location type. Bikes of a PENDING_APPROVAL transfer never left and
    are not touched.
    """
    policy_service.require_permission(actor, "CANCEL_TRANSFER")

    transfer = _load_transfer(transfer_id)
    policy_service.require_location_scope(actor, transfer.from_location_id)
    _require_status(transfer, TransferStatus.OPEN, "cancel")

    moved = 0
    if transfer.status == TransferStatus.PENDING:
        origin = get_location(transfer.from_location_id)
        bikes = stock_service.load_motorcycles(transfer.chassis_numbers)
        stock_service.require_in_transit(bikes)
        for bike in bikes:
            stock_service.place_at(bike, origin)
        moved = len(bikes)

    transfer.status = TransferStatus.CANCELLED
    transfer.cancelled_by_user_id = actor.id
    transfer.cancelled_at = utcnow()
    transfer.cancellation_reason = reason
    db.session.flush()

    details = f"Cancelled transfer {transfer.reference}"
    if moved:
        details += f"; {moved} motorcycle(s) returned to origin"
    if reason:
        details += f" ({reason})"
    log_action(
        user_id=actor.id,
        action="TRANSFER_CANCELLED",
        details=details,
        entity_type="transfer",
        entity_id=transfer.id,
    )
    return transfer


# =============================================================================
# READS
# =============================================================================

def get_transfer(actor, transfer_id: int) -> Transfer:
    policy_service.require_permission(actor, "VIEW_TRANSFERS")
    transfer = _load_transfer(transfer_id, lock=False)
    if not policy_service.transfer_visible_to(actor, transfer):
        raise PermissionDeniedError("Transfer is outside your assigned scope")
    return transfer


def list_transfers(actor, *, status: str | None = None) -> list[Transfer]:
    """Admin: all transfers. Managers: transfers from or to their location."""
    policy_service.require_permission(actor, "VIEW_TRANSFERS")

    query = db.session.query(Transfer)
    if not policy_service.is_admin(actor):
        query = query.filter(
            or_(
                Transfer.from_location_id == actor.location_id,
                Transfer.to_location_id == actor.location_id,
            )
        )
    if status:
        if status not in TransferStatus.ALL:
            raise TransferValidationError(f"Unknown transfer status {status}")
        query = query.filter(Transfer.status == status)
    return query.order_by(Transfer.initiated_at.desc(), Transfer.id.desc()).all()
