"""create inventory alerts and optimization results tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 09:30:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "inventory_alerts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("alert_type", sa.String(length=30), nullable=False),
        sa.Column("severity", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("stock_at_creation", sa.Integer(), nullable=False),
        sa.Column("suggested_quantity", sa.Integer(), nullable=True),
        sa.Column("assigned_user_id", sa.Integer(), nullable=True),
        sa.Column("action_taken", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "alert_type IN ('low_stock', 'critical', 'reorder_point', 'excess', 'obsolete', 'expiry_near', "
            "'expiry_passed', 'anomalous_demand', 'high_cost', 'high_shrink', 'supplier_delay')",
            name="ck_inventory_alerts_type",
        ),
        sa.CheckConstraint(
            "severity IN ('low', 'medium', 'high', 'critical')",
            name="ck_inventory_alerts_severity",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'resolved', 'ignored', 'escalated')",
            name="ck_inventory_alerts_status",
        ),
        sa.CheckConstraint(
            "suggested_quantity IS NULL OR suggested_quantity >= 0",
            name="ck_inventory_alerts_suggested_quantity_non_negative",
        ),
    )
    op.create_index("ix_inventory_alerts_id", "inventory_alerts", ["id"], unique=False)
    op.create_index("ix_inventory_alerts_product_id", "inventory_alerts", ["product_id"], unique=False)
    op.create_index("ix_inventory_alerts_status_severity", "inventory_alerts", ["status", "severity"], unique=False)
    op.create_index("ix_inventory_alerts_product_type", "inventory_alerts", ["product_id", "alert_type"], unique=False)
    op.create_index(
        "uq_inventory_alerts_pending_product_type",
        "inventory_alerts",
        ["product_id", "alert_type"],
        unique=True,
        sqlite_where=sa.text("status = 'pending'"),
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "optimization_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("demand_annual", sa.Float(), nullable=False),
        sa.Column("demand_daily", sa.Float(), nullable=False),
        sa.Column("eoq", sa.Float(), nullable=False),
        sa.Column("rop", sa.Float(), nullable=False),
        sa.Column("safety_stock", sa.Float(), nullable=False),
        sa.Column("z_factor", sa.Float(), nullable=False),
        sa.Column("ordering_cost_annual", sa.Float(), nullable=False),
        sa.Column("holding_cost_annual", sa.Float(), nullable=False),
        sa.Column("total_cost_annual", sa.Float(), nullable=False),
        sa.Column("orders_per_year", sa.Float(), nullable=False),
        sa.Column("days_between_orders", sa.Float(), nullable=False),
        sa.Column("order_cost", sa.Float(), nullable=False),
        sa.Column("holding_cost_per_unit_year", sa.Float(), nullable=False),
        sa.Column("unit_cost", sa.Float(), nullable=True),
        sa.Column("lead_time_days", sa.Float(), nullable=False),
        sa.Column("service_level", sa.Float(), nullable=False),
        sa.Column("demand_std_dev", sa.Float(), nullable=False),
        sa.Column("demand_source", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("demand_source IN ('caller', 'forecast')", name="ck_optimization_results_demand_source"),
        sa.CheckConstraint("eoq > 0", name="ck_optimization_results_eoq_positive"),
        sa.CheckConstraint("rop >= 0", name="ck_optimization_results_rop_non_negative"),
        sa.CheckConstraint("safety_stock >= 0", name="ck_optimization_results_safety_stock_non_negative"),
    )
    op.create_index("ix_optimization_results_id", "optimization_results", ["id"], unique=False)
    op.create_index("ix_optimization_results_product_id", "optimization_results", ["product_id"], unique=False)
    op.create_index(
        "ix_optimization_results_product_created",
        "optimization_results",
        ["product_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_optimization_results_product_created", table_name="optimization_results")
    op.drop_index("ix_optimization_results_product_id", table_name="optimization_results")
    op.drop_index("ix_optimization_results_id", table_name="optimization_results")
    op.drop_table("optimization_results")
    op.drop_index("uq_inventory_alerts_pending_product_type", table_name="inventory_alerts")
    op.drop_index("ix_inventory_alerts_product_type", table_name="inventory_alerts")
    op.drop_index("ix_inventory_alerts_status_severity", table_name="inventory_alerts")
    op.drop_index("ix_inventory_alerts_product_id", table_name="inventory_alerts")
    op.drop_index("ix_inventory_alerts_id", table_name="inventory_alerts")
    op.drop_table("inventory_alerts")
