"""create products, stock levels and movements tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

MOVEMENT_TYPES = (
    "'entry_purchase', 'entry_customer_return', 'entry_adjustment', 'entry_transfer', "
    "'entry_production', 'entry_initial', 'exit_sale', 'exit_supplier_return', 'exit_adjustment', "
    "'exit_transfer', 'exit_shrinkage', 'exit_expiry', 'exit_internal_use', "
    "'adjustment_positive', 'adjustment_negative', 'reversal', 'restoration'"
)


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("order_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("holding_cost_annual", sa.Numeric(12, 4), nullable=True),
        sa.Column("lead_time_days", sa.Integer(), nullable=True),
        sa.Column("preferred_supplier_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("unit_cost IS NULL OR unit_cost > 0", name="ck_products_unit_cost_positive"),
        sa.CheckConstraint("order_cost IS NULL OR order_cost > 0", name="ck_products_order_cost_positive"),
        sa.CheckConstraint(
            "holding_cost_annual IS NULL OR holding_cost_annual > 0",
            name="ck_products_holding_cost_positive",
        ),
        sa.CheckConstraint("lead_time_days IS NULL OR lead_time_days >= 0", name="ck_products_lead_time_non_negative"),
    )
    op.create_index("ix_products_id", "products", ["id"], unique=False)
    op.create_index("ix_products_sku", "products", ["sku"], unique=True)

    op.create_table(
        "stock_levels",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("available", sa.Integer(), nullable=False),
        sa.Column("reserved", sa.Integer(), nullable=False),
        sa.Column("in_transit", sa.Integer(), nullable=False),
        sa.Column("minimum", sa.Integer(), nullable=False),
        sa.Column("maximum", sa.Integer(), nullable=True),
        sa.Column("reorder_point", sa.Integer(), nullable=False),
        sa.Column("last_movement_at", sa.DateTime(), nullable=True),
        sa.Column("last_sale_at", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('normal', 'low', 'critical', 'excess', 'depleted')",
            name="ck_stock_levels_status",
        ),
        sa.CheckConstraint("available >= 0", name="ck_stock_levels_available_non_negative"),
        sa.CheckConstraint("reserved >= 0", name="ck_stock_levels_reserved_non_negative"),
        sa.CheckConstraint("in_transit >= 0", name="ck_stock_levels_in_transit_non_negative"),
        sa.CheckConstraint("minimum >= 0", name="ck_stock_levels_minimum_non_negative"),
        sa.CheckConstraint("reorder_point >= 0", name="ck_stock_levels_reorder_point_non_negative"),
        sa.CheckConstraint("maximum IS NULL OR maximum >= minimum", name="ck_stock_levels_maximum_gte_minimum"),
    )
    op.create_index("ix_stock_levels_id", "stock_levels", ["id"], unique=False)
    op.create_index("ix_stock_levels_product_id", "stock_levels", ["product_id"], unique=True)
    op.create_index("ix_stock_levels_status", "stock_levels", ["status"], unique=False)

    op.create_table(
        "movements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("movement_type", sa.String(length=32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("unit_cost", sa.Numeric(12, 2), nullable=True),
        sa.Column("running_balance", sa.Integer(), nullable=False),
        sa.Column("document_number", sa.String(length=64), nullable=True),
        sa.Column("supplier_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("lot_number", sa.String(length=64), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("voided", sa.Boolean(), nullable=False),
        sa.Column("reference_movement_id", sa.Integer(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["reference_movement_id"], ["movements.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(f"movement_type IN ({MOVEMENT_TYPES})", name="ck_movements_type"),
        sa.CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),
        sa.CheckConstraint("delta <> 0", name="ck_movements_delta_non_zero"),
        sa.CheckConstraint("running_balance >= 0", name="ck_movements_running_balance_non_negative"),
        sa.CheckConstraint("unit_cost IS NULL OR unit_cost >= 0", name="ck_movements_unit_cost_non_negative"),
    )
    op.create_index("ix_movements_id", "movements", ["id"], unique=False)
    op.create_index("ix_movements_product_id", "movements", ["product_id"], unique=False)
    op.create_index("ix_movements_movement_type", "movements", ["movement_type"], unique=False)
    op.create_index("ix_movements_document_number", "movements", ["document_number"], unique=False)
    op.create_index("ix_movements_product_id_id", "movements", ["product_id", "id"], unique=False)
    op.create_index("ix_movements_product_occurred", "movements", ["product_id", "occurred_at"], unique=False)
    op.create_index("ix_movements_lot_expiry", "movements", ["product_id", "expiry_date"], unique=False)


def downgrade() -> None:
    for name in (
        "ix_movements_lot_expiry",
        "ix_movements_product_occurred",
        "ix_movements_product_id_id",
        "ix_movements_document_number",
        "ix_movements_movement_type",
        "ix_movements_product_id",
        "ix_movements_id",
    ):
        op.drop_index(name, table_name="movements")
    op.drop_table("movements")
    op.drop_index("ix_stock_levels_status", table_name="stock_levels")
    op.drop_index("ix_stock_levels_product_id", table_name="stock_levels")
    op.drop_index("ix_stock_levels_id", table_name="stock_levels")
    op.drop_table("stock_levels")
    op.drop_index("ix_products_sku", table_name="products")
    op.drop_index("ix_products_id", table_name="products")
    op.drop_table("products")
