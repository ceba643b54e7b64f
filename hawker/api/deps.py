from __future__ import annotations

import structlog
from fastapi import HTTPException, Request

from hawker.core.config import Settings
from hawker.points.ledger import PointsLedger
from hawker.reservations.ledger import ReservationLedger
from hawker.services.internal_auth import client_address, internal_access_denial

logger = structlog.get_logger(__name__)


def get_reservation_ledger(request: Request) -> ReservationLedger:
    return request.app.state.reservation_ledger


def get_points_ledger(request: Request) -> PointsLedger:
    return request.app.state.points_ledger


def assert_internal_access(request: Request) -> None:
    settings: Settings = request.app.state.settings
    reason = internal_access_denial(request, settings=settings)
    if reason is None:
        return

    logger.warning(
        "internal_auth_failed",
        reason=reason,
        client_ip=client_address(request, trusted_proxies=settings.internal_api_trusted_proxies),
    )
    message = (
        "Client address is not allowed." if reason == "ip_not_allowed" else "Invalid internal token."
    )
    raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN", "message": message})
