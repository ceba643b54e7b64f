from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hawker.core.errors import HawkerError

logger = structlog.get_logger(__name__)

STATUS_BY_CODE = {
    "E_INVALID_REQUEST": status.HTTP_400_BAD_REQUEST,
    "E_PAST_DATE": status.HTTP_400_BAD_REQUEST,
    "E_PAST_TIME": status.HTTP_400_BAD_REQUEST,
    "E_FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "E_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "E_TABLE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "E_VOUCHER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "E_CONFLICT": status.HTTP_409_CONFLICT,
    "E_INSUFFICIENT_POINTS": status.HTTP_409_CONFLICT,
    "E_VOUCHER_ALREADY_USED": status.HTTP_409_CONFLICT,
    "E_VOUCHER_EXPIRED": status.HTTP_410_GONE,
    "E_STORAGE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": {"code": code, "message": message}},
    )


async def handle_hawker_error(request: Request, exc: HawkerError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            code=exc.code,
            error=str(exc.__cause__ or exc),
        )
    return _error_response(status_code, exc.code, exc.message)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first["msg"]
    else:
        message = "Request is malformed or incomplete."
    return _error_response(status.HTTP_400_BAD_REQUEST, "E_INVALID_REQUEST", message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HawkerError, handle_hawker_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
