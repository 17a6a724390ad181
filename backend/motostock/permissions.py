"""
Access policy: permission codes and the role -> permission lookup table.

WHY: One static table is the single source of truth for what each role may
do. The UI reads it (through /api/auth/me) to show or hide controls; routes
and services consult the same table before every mutation, so hiding a
button is never the only thing standing between a user and a change.

DESIGN PRINCIPLES:
- Permissions are granular (one action per permission)
- Location scope (which warehouse/branch a user may touch) is applied on top
  of these codes by policy_service
- Admin has all permissions
"""

from .models.enums import Role


# =============================================================================
# PERMISSION CATEGORIES
# =============================================================================

class PermissionCategory:
    """Permission categories for organization."""
    INVENTORY = "INVENTORY"
    TRANSFERS = "TRANSFERS"
    SALES = "SALES"
    REPORTS = "REPORTS"
    ADMINISTRATION = "ADMINISTRATION"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    # INVENTORY PERMISSIONS
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "List motorcycles at the user's location (all locations for admin)",
        PermissionCategory.INVENTORY
    ),
    (
        "IMPORT_STOCK",
        "Import Stock",
        "Register newly imported motorcycles",
        PermissionCategory.INVENTORY
    ),
    (
        "EDIT_MOTORCYCLE",
        "Edit Motorcycle",
        "Edit motorcycle model type and color",
        PermissionCategory.INVENTORY
    ),
    (
        "RETIRE_MOTORCYCLE",
        "Retire Motorcycle",
        "Remove a motorcycle from stock (soft delete)",
        PermissionCategory.INVENTORY
    ),
    (
        "VIEW_LOCATIONS",
        "View Locations",
        "View warehouses and branches",
        PermissionCategory.INVENTORY
    ),

    # TRANSFER PERMISSIONS
    (
        "VIEW_TRANSFERS",
        "View Transfers",
        "View transfers from or to the user's location",
        PermissionCategory.TRANSFERS
    ),
    (
        "INITIATE_TRANSFER",
        "Initiate Transfer",
        "Send (or request) a transfer out of the user's location",
        PermissionCategory.TRANSFERS
    ),
    (
        "APPROVE_TRANSFER",
        "Approve Transfer",
        "Approve transfer requests raised by branch managers",
        PermissionCategory.TRANSFERS
    ),
    (
        "RECEIVE_TRANSFER",
        "Receive Transfer",
        "Confirm receipt of a transfer at the user's location",
        PermissionCategory.TRANSFERS
    ),
    (
        "CANCEL_TRANSFER",
        "Cancel Transfer",
        "Cancel an open transfer out of the user's location",
        PermissionCategory.TRANSFERS
    ),

    # SALES PERMISSIONS
    (
        "VIEW_SALES",
        "View Sales",
        "View sales records in the user's scope",
        PermissionCategory.SALES
    ),
    (
        "CREATE_SALE",
        "Create Sale",
        "Record the sale of a motorcycle at the user's branch",
        PermissionCategory.SALES
    ),
    (
        "MANAGE_SALES",
        "Manage Sales",
        "Edit or delete sales (branch managers: their branch; sales officers: their own)",
        PermissionCategory.SALES
    ),

    # REPORTING PERMISSIONS
    (
        "VIEW_DASHBOARD",
        "View Dashboard",
        "View the stock and sales dashboard",
        PermissionCategory.REPORTS
    ),
    (
        "VIEW_REPORTS",
        "View Reports",
        "View stock, transfer and sales reports",
        PermissionCategory.REPORTS
    ),
    (
        "VIEW_AUDIT_LOG",
        "View Audit Log",
        "View the system activity log",
        PermissionCategory.REPORTS
    ),

    # ADMINISTRATION PERMISSIONS
    (
        "MANAGE_LOCATIONS",
        "Manage Locations",
        "Create, edit and delete warehouses and branches",
        PermissionCategory.ADMINISTRATION
    ),
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit, deactivate users and reset passwords",
        PermissionCategory.ADMINISTRATION
    ),
]

ALL_PERMISSION_CODES = frozenset(code for code, _, _, _ in PERMISSION_DEFINITIONS)


# =============================================================================
# ROLE PERMISSION MAPPINGS
# =============================================================================

# WHY these mappings:
# - ADMIN: everything, across all locations
# - WAREHOUSE_MANAGER: stock intake and dispatch from their warehouse
# - BRANCH_MANAGER: transfer requests, receipts and sales at their branch
# - SALES_OFFICER: selling at their branch, managing only their own sales

ROLE_PERMISSIONS = {
    Role.ADMIN: ALL_PERMISSION_CODES,
    Role.WAREHOUSE_MANAGER: frozenset({
        "VIEW_DASHBOARD",
        "VIEW_INVENTORY",
        "VIEW_LOCATIONS",
        "IMPORT_STOCK",
        "EDIT_MOTORCYCLE",
        "VIEW_TRANSFERS",
        "INITIATE_TRANSFER",
        "RECEIVE_TRANSFER",
        "CANCEL_TRANSFER",
        "VIEW_REPORTS",
    }),
    Role.BRANCH_MANAGER: frozenset({
        "VIEW_DASHBOARD",
        "VIEW_INVENTORY",
        "VIEW_LOCATIONS",
        "VIEW_TRANSFERS",
        "INITIATE_TRANSFER",
        "RECEIVE_TRANSFER",
        "CANCEL_TRANSFER",
        "VIEW_SALES",
        "CREATE_SALE",
        "MANAGE_SALES",
        "VIEW_REPORTS",
    }),
    Role.SALES_OFFICER: frozenset({
        "VIEW_DASHBOARD",
        "VIEW_INVENTORY",
        "VIEW_LOCATIONS",
        "VIEW_SALES",
        "CREATE_SALE",
        "MANAGE_SALES",
    }),
}


# =============================================================================
# PAGE ACCESS (navigation)
# =============================================================================

PAGE_ACCESS = {
    "dashboard": (Role.ADMIN, Role.WAREHOUSE_MANAGER, Role.BRANCH_MANAGER, Role.SALES_OFFICER),
    "warehouses": (Role.ADMIN, Role.WAREHOUSE_MANAGER),
    "branches": (Role.ADMIN, Role.BRANCH_MANAGER),
    "inventory": (Role.ADMIN, Role.WAREHOUSE_MANAGER, Role.BRANCH_MANAGER),
    "transfers": (Role.ADMIN, Role.WAREHOUSE_MANAGER, Role.BRANCH_MANAGER),
    "sales": (Role.ADMIN, Role.BRANCH_MANAGER, Role.SALES_OFFICER),
    "users": (Role.ADMIN,),
    "reports": (Role.ADMIN, Role.WAREHOUSE_MANAGER, Role.BRANCH_MANAGER),
}


def pages_for(role: str) -> list[str]:
    """Navigation entries visible to a role, in menu order."""
    return [page for page, roles in PAGE_ACCESS.items() if role in roles]
