from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from hawker.db.models import Base


def _check_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {
        constraint.name
        for constraint in table.constraints
        if isinstance(constraint, CheckConstraint)
    }


def test_all_tables_registered() -> None:
    assert set(Base.metadata.tables) == {
        "venues",
        "dining_tables",
        "reservations",
        "points_accounts",
        "points_history",
        "vouchers",
        "redeemed_vouchers",
    }


def test_critical_constraints_present() -> None:
    assert {
        "ck_reservations_status",
        "ck_reservations_interval",
        "ck_reservations_party_size_positive",
    } <= _check_names("reservations")
    reservation_indexes = {index.name for index in Base.metadata.tables["reservations"].indexes}
    assert "idx_reservations_table_date" in reservation_indexes
    assert "idx_reservations_user_date" in reservation_indexes

    assert "ck_points_accounts_total_non_negative" in _check_names("points_accounts")
    assert "ck_points_history_points_non_zero" in _check_names("points_history")

    redeemed = Base.metadata.tables["redeemed_vouchers"]
    redeemed_unique = {
        constraint.name
        for constraint in redeemed.constraints
        if isinstance(constraint, UniqueConstraint)
    }
    assert "uq_redeemed_vouchers_voucher_code" in redeemed_unique
    assert "ck_redeemed_vouchers_used_date_consistency" in _check_names("redeemed_vouchers")

    tables = Base.metadata.tables["dining_tables"]
    table_unique = {
        constraint.name for constraint in tables.constraints if isinstance(constraint, UniqueConstraint)
    }
    assert "uq_dining_tables_venue_number" in table_unique
