from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)


async def _check_database(request: Request) -> dict[str, Any]:
    try:
        async with request.app.state.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (DBAPIError, OSError) as exc:
        logger.warning("health_database_failed", error=str(exc))
        return {"status": "failed", "error": str(exc)}
    return {"status": "ok"}


async def _collect_checks(request: Request) -> dict[str, dict[str, Any]]:
    return {"database": await _check_database(request)}


def _all_checks_ok(checks: dict[str, dict[str, Any]]) -> bool:
    return all(check.get("status") == "ok" for check in checks.values())


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    checks = await _collect_checks(request)
    is_healthy = _all_checks_ok(checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if is_healthy else "degraded",
            "checks": checks,
        },
    )


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    checks = await _collect_checks(request)
    is_ready = _all_checks_ok(checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if is_ready else "not_ready",
            "checks": checks,
        },
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}
