# Overview: Access policy predicates over the static role -> permission table.

"""
Access Policy

WHY: The same rules that decide which buttons the UI shows must be checked
again at the point of mutation. Every engine operation calls into this module
before it writes anything; routes call it once more through the
require_permission decorator.

DESIGN PRINCIPLES:
- Pure functions: no database access, no side effects
- Fail closed: unknown roles, inactive users and missing locations are denied
- Two layers: a permission code (what kind of action) and a location scope
  (where the action may happen). Admin is unscoped.
"""

from __future__ import annotations

from ..models import Role, TransferStatus
from ..permissions import ROLE_PERMISSIONS, pages_for
from .errors import PermissionDeniedError


# =============================================================================
# ROLE / PERMISSION LOOKUPS
# =============================================================================

def permissions_for(role: str) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def has_permission(role: str, permission_code: str) -> bool:
    return permission_code in permissions_for(role)


def is_admin(user) -> bool:
    return user is not None and user.role == Role.ADMIN


def user_can(user, permission_code: str) -> bool:
    """True when the user is active and their role grants the permission."""
    if user is None or not user.is_active:
        return False
    return has_permission(user.role, permission_code)


def require_permission(user, permission_code: str) -> None:
    """
    Raise PermissionDeniedError unless the user holds the permission.

    Does NOT log: the caller decides whether a denial is worth an audit entry.
    """
    if user is None:
        raise PermissionDeniedError("Authentication required")
    if not user.is_active:
        raise PermissionDeniedError("User account is inactive")
    if not has_permission(user.role, permission_code):
        raise PermissionDeniedError(
            f"Permission {permission_code} required",
            details={"required_permission": permission_code},
        )


def user_summary(user) -> dict:
    """What the UI needs to decide what to show: the user, their codes and pages."""
    return {
        "user": user.to_dict(),
        "permissions": sorted(permissions_for(user.role)),
        "pages": pages_for(user.role),
    }


# =============================================================================
# LOCATION SCOPE
# =============================================================================

def can_access_location(user, location_id) -> bool:
    """Admin reaches every location; everyone else only their assigned one."""
    if user is None or not user.is_active:
        return False
    if is_admin(user):
        return True
    return user.location_id is not None and user.location_id == location_id


def require_location_scope(user, location_id) -> None:
    if not can_access_location(user, location_id):
        raise PermissionDeniedError(
            "Location is outside your assigned scope",
            details={"location_id": location_id},
        )


# =============================================================================
# TRANSFERS
# =============================================================================

def initial_transfer_status(user) -> str:
    """
    Branch managers raise requests that wait for approval; warehouse managers
    and admins dispatch directly.
    """
    if user.role == Role.BRANCH_MANAGER:
        return TransferStatus.PENDING_APPROVAL
    return TransferStatus.PENDING


def transfer_visible_to(user, transfer) -> bool:
    if not user_can(user, "VIEW_TRANSFERS"):
        return False
    if is_admin(user):
        return True
    return user.location_id in (transfer.from_location_id, transfer.to_location_id)


def can_approve_transfer(user, transfer) -> bool:
    return (
        user_can(user, "APPROVE_TRANSFER")
        and transfer.status == TransferStatus.PENDING_APPROVAL
    )


def can_receive_transfer(user, transfer) -> bool:
    return (
        user_can(user, "RECEIVE_TRANSFER")
        and transfer.status == TransferStatus.PENDING
        and can_access_location(user, transfer.to_location_id)
    )


def can_cancel_transfer(user, transfer) -> bool:
    return (
        user_can(user, "CANCEL_TRANSFER")
        and transfer.status in TransferStatus.OPEN
        and can_access_location(user, transfer.from_location_id)
    )


def transfer_actions(user, transfer) -> list[str]:
    """Actions the UI may offer on a transfer right now."""
    actions = []
    if can_approve_transfer(user, transfer):
        actions.append("approve")
    if can_receive_transfer(user, transfer):
        actions.append("receive")
    if can_cancel_transfer(user, transfer):
        actions.append("cancel")
    return actions


# =============================================================================
# SALES
# =============================================================================

def sale_visible_to(user, sale) -> bool:
    if not user_can(user, "VIEW_SALES"):
        return False
    if is_admin(user):
        return True
    if user.role == Role.SALES_OFFICER:
        return sale.sales_officer_id == user.id
    return sale.branch_id == user.location_id


def can_manage_sale(user, sale) -> bool:
    """
    Admin: any sale. Branch manager: sales at their branch.
    Sales officer: only sales they recorded.
    """
    if not user_can(user, "MANAGE_SALES"):
        return False
    if is_admin(user):
        return True
    if user.role == Role.BRANCH_MANAGER:
        return sale.branch_id == user.location_id
    if user.role == Role.SALES_OFFICER:
        return sale.sales_officer_id == user.id
    return False


def sale_actions(user, sale) -> list[str]:
    if can_manage_sale(user, sale):
        return ["edit", "delete"]
    return []


# =============================================================================
# MOTORCYCLES
# =============================================================================

def motorcycle_visible_to(user, motorcycle) -> bool:
    """Bikes in transit belong to no location, so only admins see them here."""
    if not user_can(user, "VIEW_INVENTORY") or motorcycle.is_retired:
        return False
    if is_admin(user):
        return True
    return motorcycle.current_location_id is not None and motorcycle.current_location_id == user.location_id
