from __future__ import annotations

from fastapi import APIRouter, Depends, status

from creator_direct.core.auth import AuthContext, require_auth_context
from creator_direct.core.service import EscrowService, get_escrow_service
from creator_direct.schemas.escrow import (
    AnalyticsResponse,
    EscrowCreatedResponse,
    EscrowCreateRequest,
    EscrowParamsResponse,
    EscrowParamsUpdateRequest,
    TierPriceResponse,
    TierPricesResponse,
    TierPriceUpdateRequest,
    WithdrawResponse,
)

router = APIRouter(tags=["escrow"])


@router.post("/escrows", response_model=EscrowCreatedResponse, status_code=status.HTTP_201_CREATED)
async def construct_escrow(
    payload: EscrowCreateRequest,
    auth: AuthContext = Depends(require_auth_context),
    service: EscrowService = Depends(get_escrow_service),
) -> EscrowCreatedResponse:
    escrow_id = await service.construct(
        auth.account,
        base_price=payload.base_price,
        period_length=payload.period_length,
        name=payload.name,
        description=payload.description,
    )
    return EscrowCreatedResponse(escrow_id=str(escrow_id), creator=auth.account)


@router.get("/escrow/params", response_model=EscrowParamsResponse)
async def get_params(
    service: EscrowService = Depends(get_escrow_service),
) -> EscrowParamsResponse:
    params = await service.get_params()
    return EscrowParamsResponse(**params._asdict())


@router.patch("/escrow/params", response_model=EscrowParamsResponse)
async def update_params(
    payload: EscrowParamsUpdateRequest,
    auth: AuthContext = Depends(require_auth_context),
    service: EscrowService = Depends(get_escrow_service),
) -> EscrowParamsResponse:
    await service.update_params(auth.account, payload.price, payload.period)
    params = await service.get_params()
    return EscrowParamsResponse(**params._asdict())


@router.post("/escrow/withdraw", response_model=WithdrawResponse)
async def withdraw(
    auth: AuthContext = Depends(require_auth_context),
    service: EscrowService = Depends(get_escrow_service),
) -> WithdrawResponse:
    amount = await service.withdraw(auth.account)
    return WithdrawResponse(amount=amount)


@router.get("/escrow/analytics", response_model=AnalyticsResponse)
async def analytics(
    service: EscrowService = Depends(get_escrow_service),
) -> AnalyticsResponse:
    snapshot = await service.analytics()
    return AnalyticsResponse(**snapshot._asdict())


@router.get("/escrow/tiers", response_model=TierPricesResponse)
async def get_all_tier_prices(
    service: EscrowService = Depends(get_escrow_service),
) -> TierPricesResponse:
    prices = await service.get_all_tier_prices()
    return TierPricesResponse(**prices._asdict())


@router.get("/escrow/tiers/{tier}", response_model=TierPriceResponse)
async def get_tier_price(
    tier: int,
    service: EscrowService = Depends(get_escrow_service),
) -> TierPriceResponse:
    return TierPriceResponse(tier=tier, price=await service.get_tier_price(tier))


@router.put("/escrow/tiers/{tier}", response_model=TierPriceResponse)
async def update_tier_price(
    tier: int,
    payload: TierPriceUpdateRequest,
    auth: AuthContext = Depends(require_auth_context),
    service: EscrowService = Depends(get_escrow_service),
) -> TierPriceResponse:
    await service.update_tier_price(auth.account, tier, payload.price)
    return TierPriceResponse(tier=tier, price=payload.price)
