from __future__ import annotations

import argparse
import asyncio
from decimal import Decimal

from hawker.core.clock import utc_now
from hawker.core.config import get_settings
from hawker.db.models.vouchers import Voucher
from hawker.db.repo.tables_repo import TablesRepo
from hawker.db.repo.vouchers_repo import VouchersRepo
from hawker.db.session import build_session_factory, engine_from_settings

DEFAULT_VOUCHERS = (
    ("5% off any dish", "percentage", Decimal("5"), None, 50, 30),
    ("$2 off orders above $10", "fixed", Decimal("2"), Decimal("10"), 100, 30),
    ("10% off any dish", "percentage", Decimal("10"), None, 200, 14),
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a venue with tables and a voucher catalog")
    parser.add_argument("--venue-name", required=True)
    parser.add_argument("--address")
    parser.add_argument("--tables", type=int, default=10)
    parser.add_argument("--capacity", type=int, default=4)
    parser.add_argument("--with-vouchers", action="store_true")
    return parser.parse_args()


def _validate_args(args: argparse.Namespace) -> None:
    if args.tables <= 0:
        raise ValueError("--tables must be positive")
    if args.capacity <= 0:
        raise ValueError("--capacity must be positive")


async def _run() -> int:
    args = _parse_args()
    _validate_args(args)

    engine = engine_from_settings(get_settings())
    session_factory = build_session_factory(engine)
    now_utc = utc_now()
    try:
        async with session_factory.begin() as session:
            venue = await TablesRepo.create_venue(
                session,
                name=args.venue_name,
                address=args.address,
                created_at=now_utc,
            )
            for table_number in range(1, args.tables + 1):
                await TablesRepo.create_table(
                    session,
                    venue_id=venue.id,
                    table_number=table_number,
                    capacity=args.capacity,
                    created_at=now_utc,
                )
            vouchers_created = 0
            if args.with_vouchers:
                for name, discount_type, value, min_spend, points, days in DEFAULT_VOUCHERS:
                    await VouchersRepo.create_voucher(
                        session,
                        voucher=Voucher(
                            name=name,
                            discount_type=discount_type,
                            discount_value=value,
                            min_spend=min_spend,
                            points_required=points,
                            validity_days=days,
                            is_active=True,
                            created_at=now_utc,
                        ),
                    )
                    vouchers_created += 1
            venue_id = venue.id
    finally:
        await engine.dispose()

    print(  # noqa: T201
        f"venue_id={venue_id} tables={args.tables} vouchers={vouchers_created}"
    )
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
