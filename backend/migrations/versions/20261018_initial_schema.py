"""Initial schema: locations, users, motorcycles, transfers, sales, sessions, logs

Revision ID: 20261018_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _now():
    return sa.text("CURRENT_TIMESTAMP")


def upgrade():
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.CheckConstraint("type IN ('WAREHOUSE', 'BRANCH')", name="ck_locations_type"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_locations_code", "locations", ["code"], unique=True)
    op.create_index("ix_locations_type", "locations", ["type"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "role IN ('ADMIN', 'WAREHOUSE_MANAGER', 'BRANCH_MANAGER', 'SALES_OFFICER')",
            name="ck_users_role",
        ),
        sa.CheckConstraint("role = 'ADMIN' OR location_id IS NOT NULL", name="ck_users_location_required"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)
    op.create_index("ix_users_location_id", "users", ["location_id"], unique=False)

    op.create_table(
        "motorcycles",
        sa.Column("chassis_number", sa.String(length=64), nullable=False),
        sa.Column("model_type", sa.String(length=120), nullable=False),
        sa.Column("color", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("current_location_id", sa.Integer(), nullable=True),
        sa.Column("imported_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("sold_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=True),
        sa.Column("is_retired", sa.Boolean(), nullable=False),
        sa.Column("retired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "status IN ('IN_WAREHOUSE', 'IN_TRANSIT', 'AT_BRANCH', 'SOLD')",
            name="ck_motorcycles_status",
        ),
        sa.CheckConstraint(
            "(status = 'IN_TRANSIT' AND current_location_id IS NULL) OR "
            "(status <> 'IN_TRANSIT' AND current_location_id IS NOT NULL)",
            name="ck_motorcycles_transit_location",
        ),
        sa.CheckConstraint(
            "(status = 'SOLD' AND sold_at IS NOT NULL AND price_cents IS NOT NULL) OR "
            "(status <> 'SOLD' AND sold_at IS NULL AND price_cents IS NULL)",
            name="ck_motorcycles_sold_fields",
        ),
        sa.ForeignKeyConstraint(["current_location_id"], ["locations.id"]),
        sa.PrimaryKeyConstraint("chassis_number"),
    )
    op.create_index("ix_motorcycles_status", "motorcycles", ["status"], unique=False)
    op.create_index("ix_motorcycles_is_retired", "motorcycles", ["is_retired"], unique=False)
    op.create_index("ix_motorcycles_location_status", "motorcycles", ["current_location_id", "status"], unique=False)

    op.create_table(
        "transfers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(length=32), nullable=False),
        sa.Column("from_location_id", sa.Integer(), nullable=False),
        sa.Column("to_location_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("initiated_by_user_id", sa.Integer(), nullable=False),
        sa.Column("approved_by_user_id", sa.Integer(), nullable=True),
        sa.Column("received_by_user_id", sa.Integer(), nullable=True),
        sa.Column("cancelled_by_user_id", sa.Integer(), nullable=True),
        sa.Column("initiated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "status IN ('PENDING_APPROVAL', 'PENDING', 'COMPLETED', 'CANCELLED')",
            name="ck_transfers_status",
        ),
        sa.CheckConstraint("from_location_id <> to_location_id", name="ck_transfers_distinct_locations"),
        sa.ForeignKeyConstraint(["from_location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["to_location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["initiated_by_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["approved_by_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["received_by_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["cancelled_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transfers_reference", "transfers", ["reference"], unique=True)
    op.create_index("ix_transfers_from_location_id", "transfers", ["from_location_id"], unique=False)
    op.create_index("ix_transfers_to_location_id", "transfers", ["to_location_id"], unique=False)
    op.create_index("ix_transfers_status", "transfers", ["status"], unique=False)

    op.create_table(
        "transfer_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("transfer_id", sa.Integer(), nullable=False),
        sa.Column("chassis_number", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(["transfer_id"], ["transfers.id"]),
        sa.ForeignKeyConstraint(["chassis_number"], ["motorcycles.chassis_number"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transfer_id", "chassis_number", name="uq_transfer_items_transfer_chassis"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_transfer_items_transfer_id", "transfer_items", ["transfer_id"], unique=False)
    op.create_index("ix_transfer_items_chassis_number", "transfer_items", ["chassis_number"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reference", sa.String(length=32), nullable=False),
        sa.Column("chassis_number", sa.String(length=64), nullable=False),
        sa.Column("customer_name", sa.String(length=120), nullable=False),
        sa.Column("customer_phone", sa.String(length=32), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("sales_officer_id", sa.Integer(), nullable=False),
        sa.Column("branch_id", sa.Integer(), nullable=False),
        sa.Column("sold_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint("price_cents > 0", name="ck_sales_price_positive"),
        sa.ForeignKeyConstraint(["chassis_number"], ["motorcycles.chassis_number"]),
        sa.ForeignKeyConstraint(["sales_officer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["locations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sales_reference", "sales", ["reference"], unique=True)
    op.create_index("ix_sales_chassis_number", "sales", ["chassis_number"], unique=False)
    op.create_index("ix_sales_sales_officer_id", "sales", ["sales_officer_id"], unique=False)
    op.create_index("ix_sales_branch_sold_at", "sales", ["branch_id", "sold_at"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", sa.String(length=255), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_session_tokens_user_id", "session_tokens", ["user_id"], unique=False)
    op.create_index("ix_session_tokens_token_hash", "session_tokens", ["token_hash"], unique=True)
    op.create_index("ix_session_tokens_is_revoked", "session_tokens", ["is_revoked"], unique=False)

    op.create_table(
        "logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=True),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_logs_action", "logs", ["action"], unique=False)
    op.create_index("ix_logs_user_id", "logs", ["user_id"], unique=False)
    op.create_index("ix_logs_entity_type", "logs", ["entity_type"], unique=False)
    op.create_index("ix_logs_entity_id", "logs", ["entity_id"], unique=False)
    op.create_index("ix_logs_occurred_id", "logs", ["occurred_at", "id"], unique=False)

    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(length=32), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_type"),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table("document_sequences")

    op.drop_index("ix_logs_occurred_id", table_name="logs")
    op.drop_index("ix_logs_entity_id", table_name="logs")
    op.drop_index("ix_logs_entity_type", table_name="logs")
    op.drop_index("ix_logs_user_id", table_name="logs")
    op.drop_index("ix_logs_action", table_name="logs")
    op.drop_table("logs")

    op.drop_index("ix_session_tokens_is_revoked", table_name="session_tokens")
    op.drop_index("ix_session_tokens_token_hash", table_name="session_tokens")
    op.drop_index("ix_session_tokens_user_id", table_name="session_tokens")
    op.drop_table("session_tokens")

    op.drop_index("ix_sales_branch_sold_at", table_name="sales")
    op.drop_index("ix_sales_sales_officer_id", table_name="sales")
    op.drop_index("ix_sales_chassis_number", table_name="sales")
    op.drop_index("ix_sales_reference", table_name="sales")
    op.drop_table("sales")

    op.drop_index("ix_transfer_items_chassis_number", table_name="transfer_items")
    op.drop_index("ix_transfer_items_transfer_id", table_name="transfer_items")
    op.drop_table("transfer_items")

    op.drop_index("ix_transfers_status", table_name="transfers")
    op.drop_index("ix_transfers_to_location_id", table_name="transfers")
    op.drop_index("ix_transfers_from_location_id", table_name="transfers")
    op.drop_index("ix_transfers_reference", table_name="transfers")
    op.drop_table("transfers")

    op.drop_index("ix_motorcycles_location_status", table_name="motorcycles")
    op.drop_index("ix_motorcycles_is_retired", table_name="motorcycles")
    op.drop_index("ix_motorcycles_status", table_name="motorcycles")
    op.drop_table("motorcycles")

    op.drop_index("ix_users_location_id", table_name="users")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_locations_type", table_name="locations")
    op.drop_index("ix_locations_code", table_name="locations")
    op.drop_table("locations")
