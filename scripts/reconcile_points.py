from __future__ import annotations

import argparse
import asyncio

from hawker.core.config import get_settings
from hawker.core.logging import configure_logging
from hawker.db.session import build_session_factory, engine_from_settings
from hawker.points.ledger import PointsLedger


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recompute points balances from history and repair drift"
    )
    parser.add_argument("--user-id", type=int, help="reconcile a single user")
    parser.add_argument("--batch-size", type=int, default=500)
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    if args.batch_size <= 0:
        raise ValueError("--batch-size must be positive")

    settings = get_settings()
    configure_logging(settings.log_level, service="hawker-reconcile")
    engine = engine_from_settings(settings)
    ledger = PointsLedger(build_session_factory(engine))
    try:
        if args.user_id is not None:
            result = await ledger.reconcile(args.user_id)
            print(  # noqa: T201
                f"user_id={result.user_id} previous={result.previous_balance} "
                f"recomputed={result.recomputed_balance} repaired={result.repaired}"
            )
        else:
            summary = await ledger.reconcile_all(batch_size=args.batch_size)
            print(f"checked={summary.checked} repaired={summary.repaired}")  # noqa: T201
    finally:
        await engine.dispose()
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
