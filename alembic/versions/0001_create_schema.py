from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def _has_index(inspector, table_name: str, index_name: str) -> bool:
    return any(idx["name"] == index_name for idx in inspector.get_indexes(table_name))


def _timestamps(*, with_updated: bool = False) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)]
    if with_updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False))
    return columns


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())

    if "restaurant_owners" not in tables:
        op.create_table(
            "restaurant_owners",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("first_name", sa.String(length=100), nullable=False),
            sa.Column("last_name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False, unique=True),
            *_timestamps(),
        )

    if "restaurants" not in tables:
        op.create_table(
            "restaurants",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("owner_id", sa.String(length=36), sa.ForeignKey("restaurant_owners.id"), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("street", sa.String(length=200), nullable=False),
            sa.Column("house_number", sa.String(length=20), nullable=False),
            sa.Column("staircase", sa.String(length=20), nullable=True),
            sa.Column("door", sa.String(length=20), nullable=True),
            sa.Column("postal_code", sa.String(length=10), nullable=False),
            sa.Column("city", sa.String(length=100), nullable=False),
            sa.Column("contact_phone", sa.String(length=30), nullable=False, server_default=""),
            sa.Column("contact_email", sa.String(length=255), nullable=True),
            *_timestamps(with_updated=True),
        )
        op.create_index("ix_restaurants_owner_id", "restaurants", ["owner_id"], unique=False)

    if "restaurant_opening_hours" not in tables:
        op.create_table(
            "restaurant_opening_hours",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "restaurant_id",
                sa.String(length=36),
                sa.ForeignKey("restaurants.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("day_of_week", sa.Integer(), nullable=False),
            sa.Column("open_time", sa.String(length=5), nullable=True),
            sa.Column("close_time", sa.String(length=5), nullable=True),
            sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.UniqueConstraint("restaurant_id", "day_of_week", name="uq_opening_hours_restaurant_day"),
        )
        op.create_index(
            "ix_restaurant_opening_hours_restaurant_id",
            "restaurant_opening_hours",
            ["restaurant_id"],
            unique=False,
        )

    if "dishes" not in tables:
        op.create_table(
            "dishes",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "restaurant_id",
                sa.String(length=36),
                sa.ForeignKey("restaurants.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("price", sa.Numeric(10, 2), nullable=False),
            sa.Column("cooking_time_minutes", sa.Integer(), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_dishes_restaurant_id", "dishes", ["restaurant_id"], unique=False)

    if "customers" not in tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("first_name", sa.String(length=100), nullable=False),
            sa.Column("last_name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False, unique=True),
            sa.Column("delivery_street", sa.String(length=200), nullable=False),
            sa.Column("delivery_house_number", sa.String(length=20), nullable=False),
            sa.Column("delivery_staircase", sa.String(length=20), nullable=True),
            sa.Column("delivery_door", sa.String(length=20), nullable=True),
            sa.Column("delivery_postal_code", sa.String(length=10), nullable=False),
            sa.Column("delivery_city", sa.String(length=100), nullable=False),
            *_timestamps(),
        )

    if "vouchers" not in tables:
        op.create_table(
            "vouchers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("code", sa.String(length=64), nullable=False),
            sa.Column("discount_type", sa.String(length=20), nullable=False),
            sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
            sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
            sa.Column("usage_limit", sa.Integer(), nullable=True),
            sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column(
                "restaurant_id",
                sa.String(length=36),
                sa.ForeignKey("restaurants.id", ondelete="CASCADE"),
                nullable=True,
            ),
            *_timestamps(with_updated=True),
        )
        op.create_index("ix_vouchers_restaurant_id", "vouchers", ["restaurant_id"], unique=False)

    inspector = inspect(bind)
    if not _has_index(inspector, "vouchers", "uq_vouchers_code_lower"):
        op.create_index("uq_vouchers_code_lower", "vouchers", [sa.text("lower(code)")], unique=True)

    if "orders" not in tables:
        op.create_table(
            "orders",
            sa.Column("id", sa.String(length=36), primary_key=True),
            sa.Column("customer_id", sa.String(length=36), sa.ForeignKey("customers.id"), nullable=False),
            sa.Column("restaurant_id", sa.String(length=36), sa.ForeignKey("restaurants.id"), nullable=False),
            sa.Column("daily_order_number", sa.Integer(), nullable=False),
            sa.Column("order_date", sa.Date(), nullable=False),
            sa.Column("order_status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
            sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("final_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("voucher_id", sa.Integer(), sa.ForeignKey("vouchers.id"), nullable=True),
            sa.Column("voucher_code", sa.String(length=64), nullable=True),
            sa.Column("delivery_street", sa.String(length=200), nullable=False),
            sa.Column("delivery_house_number", sa.String(length=20), nullable=False),
            sa.Column("delivery_staircase", sa.String(length=20), nullable=True),
            sa.Column("delivery_door", sa.String(length=20), nullable=True),
            sa.Column("delivery_postal_code", sa.String(length=10), nullable=False),
            sa.Column("delivery_city", sa.String(length=100), nullable=False),
            sa.Column("estimated_delivery_minutes", sa.Integer(), nullable=False),
            sa.Column("customer_notes", sa.Text(), nullable=True),
            sa.Column("restaurant_notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("preparing_started_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("ready_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("delivering_started_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint(
                "restaurant_id",
                "order_date",
                "daily_order_number",
                name="uq_orders_restaurant_date_number",
            ),
        )
        op.create_index("ix_orders_order_status", "orders", ["order_status"], unique=False)
        op.create_index("ix_orders_restaurant_created", "orders", ["restaurant_id", "created_at"], unique=False)
        op.create_index("ix_orders_customer_created", "orders", ["customer_id", "created_at"], unique=False)

    if "order_items" not in tables:
        op.create_table(
            "order_items",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("order_id", sa.String(length=36), sa.ForeignKey("orders.id"), nullable=False),
            sa.Column("dish_id", sa.Integer(), sa.ForeignKey("dishes.id", ondelete="SET NULL"), nullable=True),
            sa.Column("dish_name", sa.String(length=200), nullable=False),
            sa.Column("dish_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        )
        op.create_index("ix_order_items_order_id", "order_items", ["order_id"], unique=False)

    if "order_status_history" not in tables:
        op.create_table(
            "order_status_history",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("order_id", sa.String(length=36), sa.ForeignKey("orders.id"), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("changed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=True),
        )
        op.create_index("ix_order_status_history_order_id", "order_status_history", ["order_id"], unique=False)

    if "daily_order_counters" not in tables:
        op.create_table(
            "daily_order_counters",
            sa.Column(
                "restaurant_id",
                sa.String(length=36),
                sa.ForeignKey("restaurants.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column("order_date", sa.Date(), primary_key=True),
            sa.Column("last_number", sa.Integer(), nullable=False, server_default="0"),
        )


def downgrade() -> None:
    for table_name in (
        "daily_order_counters",
        "order_status_history",
        "order_items",
        "orders",
        "vouchers",
        "customers",
        "dishes",
        "restaurant_opening_hours",
        "restaurants",
        "restaurant_owners",
    ):
        op.drop_table(table_name)
