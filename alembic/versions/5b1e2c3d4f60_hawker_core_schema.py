"""hawker_core_schema

Revision ID: 5b1e2c3d4f60
Revises:
Create Date: 2026-10-12 09:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5b1e2c3d4f60"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist;")

    op.create_table(
        "venues",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "dining_tables",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("venue_id", sa.BigInteger(), nullable=False),
        sa.Column("table_number", sa.Integer(), nullable=False),
        sa.Column("capacity", sa.SmallInteger(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("capacity > 0", name="ck_dining_tables_capacity_positive"),
        sa.CheckConstraint("table_number > 0", name="ck_dining_tables_number_positive"),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"]),
        sa.UniqueConstraint("venue_id", "table_number", name="uq_dining_tables_venue_number"),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("venue_id", sa.BigInteger(), nullable=False),
        sa.Column("table_id", sa.BigInteger(), nullable=False),
        sa.Column("table_number", sa.Integer(), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("start_minute", sa.SmallInteger(), nullable=False),
        sa.Column("end_minute", sa.SmallInteger(), nullable=False),
        sa.Column("party_size", sa.SmallInteger(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("contact_phone", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('CONFIRMED','CANCELLED')", name="ck_reservations_status"),
        sa.CheckConstraint(
            "start_minute >= 0 AND end_minute <= 1440 AND end_minute > start_minute",
            name="ck_reservations_interval",
        ),
        sa.CheckConstraint("party_size > 0", name="ck_reservations_party_size_positive"),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"]),
        sa.ForeignKeyConstraint(["table_id"], ["dining_tables.id"]),
    )
    op.create_index("idx_reservations_table_date", "reservations", ["table_id", "reservation_date"])
    op.create_index("idx_reservations_user_date", "reservations", ["user_id", "reservation_date"])
    op.create_index("idx_reservations_venue_date", "reservations", ["venue_id", "reservation_date"])
    op.execute(
        """
        ALTER TABLE reservations
        ADD CONSTRAINT ex_reservations_no_overlap
        EXCLUDE USING gist (
            table_id WITH =,
            reservation_date WITH =,
            int4range(start_minute, end_minute) WITH &&
        )
        WHERE (status = 'CONFIRMED');
        """
    )

    op.create_table(
        "points_accounts",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_points >= 0", name="ck_points_accounts_total_non_negative"),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "points_history",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("transaction_type", sa.String(16), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "transaction_type IN ('upload','upvote','redeem','adjust')",
            name="ck_points_history_transaction_type",
        ),
        sa.CheckConstraint("points <> 0", name="ck_points_history_points_non_zero"),
    )
    op.create_index("idx_points_history_user_created", "points_history", ["user_id", "created_at"])
    op.execute(
        """
        CREATE OR REPLACE FUNCTION fn_points_history_append_only()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            RAISE EXCEPTION 'points_history is append-only';
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_points_history_append_only
        BEFORE UPDATE OR DELETE ON points_history
        FOR EACH ROW
        EXECUTE FUNCTION fn_points_history_append_only();
        """
    )

    op.create_table(
        "vouchers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("points_required", sa.Integer(), nullable=False),
        sa.Column("discount_type", sa.String(16), nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("min_spend", sa.Numeric(10, 2), nullable=True),
        sa.Column("validity_days", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("points_required > 0", name="ck_vouchers_points_required_positive"),
        sa.CheckConstraint("validity_days > 0", name="ck_vouchers_validity_days_positive"),
        sa.CheckConstraint("discount_type IN ('percentage','fixed')", name="ck_vouchers_discount_type"),
        sa.CheckConstraint("discount_value > 0", name="ck_vouchers_discount_value_positive"),
    )

    op.create_table(
        "redeemed_vouchers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("voucher_id", sa.BigInteger(), nullable=False),
        sa.Column("voucher_code", sa.String(32), nullable=False),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("used_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("order_id", sa.String(64), nullable=True),
        sa.CheckConstraint(
            "(is_used AND used_date IS NOT NULL) OR (NOT is_used AND used_date IS NULL)",
            name="ck_redeemed_vouchers_used_date_consistency",
        ),
        sa.ForeignKeyConstraint(["voucher_id"], ["vouchers.id"]),
        sa.UniqueConstraint("voucher_code", name="uq_redeemed_vouchers_voucher_code"),
    )
    op.create_index(
        "idx_redeemed_vouchers_user_redeemed",
        "redeemed_vouchers",
        ["user_id", "redeemed_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_redeemed_vouchers_user_redeemed", table_name="redeemed_vouchers")
    op.drop_table("redeemed_vouchers")
    op.drop_table("vouchers")

    op.execute("DROP TRIGGER IF EXISTS trg_points_history_append_only ON points_history;")
    op.execute("DROP FUNCTION IF EXISTS fn_points_history_append_only();")
    op.drop_index("idx_points_history_user_created", table_name="points_history")
    op.drop_table("points_history")
    op.drop_table("points_accounts")

    op.drop_index("idx_reservations_venue_date", table_name="reservations")
    op.drop_index("idx_reservations_user_date", table_name="reservations")
    op.drop_index("idx_reservations_table_date", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("dining_tables")
    op.drop_table("venues")
