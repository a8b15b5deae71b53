from __future__ import annotations

from fastapi import FastAPI, Request, status
from starlette.responses import JSONResponse

from creator_direct.core.errors import ErrorKind, EscrowError
from creator_direct.core.repositories.base import (
    EscrowContextMissingError,
    EscrowNotFoundError,
    PaymentAlreadyConsumedError,
    PaymentNotFoundError,
)

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.INVALID_TIER: status.HTTP_400_BAD_REQUEST,
    ErrorKind.TIER_NOT_CONFIGURED: status.HTTP_409_CONFLICT,
    ErrorKind.INSUFFICIENT_FUNDS: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.TRANSFER_FAILED: status.HTTP_502_BAD_GATEWAY,
}


async def escrow_error_handler(request: Request, exc: EscrowError) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS[exc.kind],
        content={"error": exc.kind.value, "detail": str(exc)},
    )


async def escrow_not_found_handler(request: Request, exc: EscrowNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def escrow_context_missing_handler(
    request: Request, exc: EscrowContextMissingError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "X-Escrow-Id header is required"},
    )


async def payment_not_found_handler(request: Request, exc: PaymentNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_402_PAYMENT_REQUIRED, content={"detail": str(exc)})


async def payment_consumed_handler(request: Request, exc: PaymentAlreadyConsumedError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EscrowError, escrow_error_handler)
    app.add_exception_handler(EscrowNotFoundError, escrow_not_found_handler)
    app.add_exception_handler(EscrowContextMissingError, escrow_context_missing_handler)
    app.add_exception_handler(PaymentNotFoundError, payment_not_found_handler)
    app.add_exception_handler(PaymentAlreadyConsumedError, payment_consumed_handler)
