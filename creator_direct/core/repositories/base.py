from __future__ import annotations

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from creator_direct.core.context import get_current_escrow_id
from creator_direct.models.base import EscrowScopedBase

ModelT = TypeVar("ModelT", bound=EscrowScopedBase)


class EscrowContextMissingError(RuntimeError):
    pass


class EscrowNotFoundError(LookupError):
    pass


class PaymentRejectedError(Exception):
    pass


class PaymentNotFoundError(PaymentRejectedError, LookupError):
    pass


class PaymentAlreadyConsumedError(PaymentRejectedError):
    pass



class EscrowScopedRepository(Generic[ModelT]):
    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    @property
    def escrow_id(self) -> UUID:
        escrow_id = get_current_escrow_id()
        if escrow_id is None:
            raise EscrowContextMissingError("Escrow context is missing from the current request")
        return escrow_id

    def _scoped_select(self) -> Select[tuple[ModelT]]:
        return select(self.model).where(self.model.escrow_id == self.escrow_id)

    async def create(self, **values: object) -> ModelT:
        payload = dict(values)
        payload.setdefault("escrow_id", self.escrow_id)
        instance = self.model(**payload)
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def list(self, *, limit: int = 100, offset: int = 0) -> list[ModelT]:
        result = await self.session.execute(
            self._scoped_select().limit(limit).offset(offset)
        )
        return list(result.scalars().all())
