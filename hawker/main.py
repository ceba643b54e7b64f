from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hawker.api.errors import register_error_handlers
from hawker.api.routes.health import router as health_router
from hawker.api.routes.internal_points import router as internal_points_router
from hawker.api.routes.internal_reservations import router as internal_reservations_router
from hawker.api.routes.points import router as points_router
from hawker.api.routes.reservations import router as reservations_router
from hawker.api.routes.venues import router as venues_router
from hawker.api.routes.vouchers import router as vouchers_router
from hawker.core.config import Settings, get_settings
from hawker.core.logging import configure_logging
from hawker.db.session import build_session_factory, engine_from_settings
from hawker.points.ledger import PointsLedger
from hawker.reservations.ledger import ReservationLedger


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    owned_engine: AsyncEngine | None = None
    if session_factory is None:
        owned_engine = engine_from_settings(settings)
        session_factory = build_session_factory(owned_engine)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if owned_engine is not None:
            await owned_engine.dispose()

    app = FastAPI(
        title="Hawker Bookings API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.reservation_ledger = ReservationLedger(session_factory, settings=settings)
    app.state.points_ledger = PointsLedger(
        session_factory,
        lock_timeout_seconds=settings.reservation_lock_timeout_seconds,
        voucher_code_length=settings.voucher_code_length,
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(venues_router)
    app.include_router(reservations_router)
    app.include_router(points_router)
    app.include_router(vouchers_router)
    app.include_router(internal_points_router)
    app.include_router(internal_reservations_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "hawker.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
