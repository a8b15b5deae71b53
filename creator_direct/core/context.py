from __future__ import annotations

from contextvars import ContextVar
from typing import Final
from uuid import UUID

_CURRENT_ESCROW_ID: Final[ContextVar[UUID | None]] = ContextVar(
    "current_escrow_id",
    default=None,
)


def set_current_escrow_id(escrow_id: UUID | None) -> object:
    return _CURRENT_ESCROW_ID.set(escrow_id)


def get_current_escrow_id() -> UUID | None:
    return _CURRENT_ESCROW_ID.get()


def reset_current_escrow_id(token: object) -> None:
    _CURRENT_ESCROW_ID.reset(token)
