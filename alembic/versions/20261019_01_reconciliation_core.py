"""Create stores, operations, warehouse accounts, orders and provider staging tables."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = sa.dialects.postgresql.UUID(as_uuid=True)

STAGING_TABLES = (
    "european_fulfillment_leads",
    "fhb_orders",
    "elogy_orders",
    "digistore_deliveries",
)

provider_key_enum = sa.Enum("european_fulfillment", "fhb", "elogy", "digistore", name="provider_key_enum")
account_status_enum = sa.Enum("active", "pending", "paused", "error", name="warehouse_account_status_enum")
operation_status_enum = sa.Enum("active", "paused", "archived", name="operation_status_enum")
order_status_enum = sa.Enum(
    "pending",
    "processing",
    "confirmed",
    "shipped",
    "delivered",
    "returned",
    "cancelled",
    name="order_status_enum",
)
order_data_source_enum = sa.Enum("shopify", "cartpanda", "digistore", "manual", name="order_data_source_enum")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _create_staging_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "account_id",
            UUID,
            sa.ForeignKey("warehouse_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider_record_id", sa.String(length=128), nullable=False),
        sa.Column("order_number_hint", sa.String(length=128), nullable=True),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("customer_email", sa.String(), nullable=True),
        sa.Column("customer_phone", sa.String(length=64), nullable=True),
        sa.Column("customer_city", sa.String(), nullable=True),
        sa.Column("order_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("status", sa.String(length=64), nullable=True),
        sa.Column("tracking_code", sa.String(length=128), nullable=True),
        sa.Column("raw_payload", sa.JSON(), nullable=True),
        sa.Column("processed_to_orders", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("linked_order_id", UUID, sa.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("match_tier", sa.Integer(), nullable=True),
        sa.Column("match_method", sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("account_id", "provider_record_id", name=f"uq_{name}_account_record"),
    )
    op.create_index(f"ix_{name}_pending", name, ["processed_to_orders", "created_at"])


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_table(
        "operations",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("store_id", UUID, sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("order_number_prefix", sa.String(length=32), nullable=True),
        sa.Column("country", sa.String(length=2), nullable=True),
        sa.Column("status", operation_status_enum, nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_table(
        "warehouse_accounts",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("provider_key", provider_key_enum, nullable=False),
        sa.Column("status", account_status_enum, nullable=False, server_default="pending"),
        sa.Column("label", sa.String(), nullable=True),
        sa.Column("credentials", sa.JSON(), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sync_cursor", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_warehouse_accounts_provider_key", "warehouse_accounts", ["provider_key"])
    op.create_table(
        "warehouse_account_operations",
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "account_id",
            UUID,
            sa.ForeignKey("warehouse_accounts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("operation_id", UUID, sa.ForeignKey("operations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("account_id", "operation_id", name="uq_account_operation"),
    )
    op.create_index(
        "ix_warehouse_account_operations_account_id",
        "warehouse_account_operations",
        ["account_id"],
    )
    op.create_table(
        "orders",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("store_id", UUID, sa.ForeignKey("stores.id", ondelete="CASCADE"), nullable=False),
        sa.Column("operation_id", UUID, sa.ForeignKey("operations.id", ondelete="SET NULL"), nullable=True),
        sa.Column("data_source", order_data_source_enum, nullable=False, server_default="shopify"),
        sa.Column("order_number", sa.String(), nullable=True),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("customer_email", sa.String(), nullable=True),
        sa.Column("customer_phone", sa.String(), nullable=True),
        sa.Column("customer_city", sa.String(), nullable=True),
        sa.Column("customer_address", sa.Text(), nullable=True),
        sa.Column("total", sa.Numeric(10, 2), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="EUR"),
        sa.Column("status", order_status_enum, nullable=False, server_default="pending"),
        sa.Column("tracking_number", sa.String(), nullable=True),
        sa.Column("carrier_imported", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("carrier_matched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("carrier_order_id", sa.String(), nullable=True),
        sa.Column("provider", sa.String(length=32), nullable=True),
        sa.Column("provider_data", sa.JSON(), nullable=True),
        sa.Column("last_status_update", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_orders_scope", "orders", ["store_id", "operation_id"])
    op.create_index("ix_orders_operation_number", "orders", ["operation_id", "order_number"])
    op.create_index("ix_orders_carrier_order_id", "orders", ["carrier_order_id"])

    for name in STAGING_TABLES:
        _create_staging_table(name)


def downgrade() -> None:
    for name in reversed(STAGING_TABLES):
        op.drop_index(f"ix_{name}_pending", table_name=name)
        op.drop_table(name)
    op.drop_index("ix_orders_carrier_order_id", table_name="orders")
    op.drop_index("ix_orders_operation_number", table_name="orders")
    op.drop_index("ix_orders_scope", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_warehouse_account_operations_account_id", table_name="warehouse_account_operations")
    op.drop_table("warehouse_account_operations")
    op.drop_index("ix_warehouse_accounts_provider_key", table_name="warehouse_accounts")
    op.drop_table("warehouse_accounts")
    op.drop_table("operations")
    op.drop_table("stores")

    bind = op.get_bind()
    for enum in (
        order_data_source_enum,
        order_status_enum,
        operation_status_enum,
        account_status_enum,
        provider_key_enum,
    ):
        enum.drop(bind, checkfirst=True)
