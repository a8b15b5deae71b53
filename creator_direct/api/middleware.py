from __future__ import annotations

from collections.abc import Awaitable, Callable
from uuid import UUID

from fastapi import Request
from starlette import status
from starlette.responses import JSONResponse, Response

from creator_direct.core.context import reset_current_escrow_id, set_current_escrow_id


async def escrow_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    escrow_header = request.headers.get("X-Escrow-Id")
    escrow_id: UUID | None = None
    if escrow_header:
        try:
            escrow_id = UUID(escrow_header)
        except ValueError:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"detail": "Invalid X-Escrow-Id header"},
            )

    token = set_current_escrow_id(escrow_id)
    try:
        return await call_next(request)
    finally:
        reset_current_escrow_id(token)
