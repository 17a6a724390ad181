"""
Status and role vocabularies shared by the models, the access policy and the
stock state-transition services.

Values are stored as plain strings; each class exposes ``ALL`` for CHECK
constraints and input validation.
"""


class Role:
    ADMIN = "ADMIN"
    WAREHOUSE_MANAGER = "WAREHOUSE_MANAGER"
    BRANCH_MANAGER = "BRANCH_MANAGER"
    SALES_OFFICER = "SALES_OFFICER"

    ALL = (ADMIN, WAREHOUSE_MANAGER, BRANCH_MANAGER, SALES_OFFICER)


class LocationType:
    WAREHOUSE = "WAREHOUSE"
    BRANCH = "BRANCH"

    ALL = (WAREHOUSE, BRANCH)


class MotorcycleStatus:
    IN_WAREHOUSE = "IN_WAREHOUSE"
    IN_TRANSIT = "IN_TRANSIT"
    AT_BRANCH = "AT_BRANCH"
    SOLD = "SOLD"

    ALL = (IN_WAREHOUSE, IN_TRANSIT, AT_BRANCH, SOLD)

    # Statuses a bike can be picked from for a transfer or a sale
    AT_REST = (IN_WAREHOUSE, AT_BRANCH)


class TransferStatus:
    """
    Transfer lifecycle:

    PENDING_APPROVAL -> PENDING -> COMPLETED
    PENDING_APPROVAL | PENDING -> CANCELLED

    PENDING is the operational "in transit" state; it is shown to users as
    "IN TRANSIT" through TRANSFER_STATUS_LABELS.
    """
    PENDING_APPROVAL = "PENDING_APPROVAL"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    ALL = (PENDING_APPROVAL, PENDING, COMPLETED, CANCELLED)
    OPEN = (PENDING_APPROVAL, PENDING)


TRANSFER_STATUS_LABELS = {
    TransferStatus.PENDING_APPROVAL: "PENDING APPROVAL",
    TransferStatus.PENDING: "IN TRANSIT",
    TransferStatus.COMPLETED: "COMPLETED",
    TransferStatus.CANCELLED: "CANCELLED",
}


# Reserved pseudo-location for bikes between locations. Stored as a NULL
# current_location_id, so it can never collide with a real location.
TRANSIT_LOCATION = "TRANSIT"


def sql_in(values) -> str:
    """Render a tuple of string constants for use inside a CHECK constraint."""
    return ", ".join(f"'{value}'" for value in values)
