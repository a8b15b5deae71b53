from __future__ import annotations

from fastapi import APIRouter, Depends

from creator_direct.core.auth import AuthContext, require_auth_context
from creator_direct.core.service import EscrowService, get_escrow_service
from creator_direct.schemas.subscription import (
    ActiveStatusResponse,
    AutoRenewalResponse,
    AutoRenewalUpdateRequest,
    GiftSubscriptionRequest,
    SubscribeRequest,
    SubscriberTierResponse,
    SubscriptionInfoResponse,
    SubscriptionResultResponse,
    TokenResponse,
)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("", response_model=SubscriptionResultResponse)
async def subscribe(
    payload: SubscribeRequest,
    auth: AuthContext = Depends(require_auth_context),
    service: EscrowService = Depends(get_escrow_service),
) -> SubscriptionResultResponse:
    result = await service.subscribe(auth.account, payload.payment_id, payload.tier)
    return SubscriptionResultResponse(periods=result.periods, new_expiry=result.new_expiry)


@router.post("/gift", response_model=SubscriptionResultResponse)
async def gift_subscription(
    payload: GiftSubscriptionRequest,
    auth: AuthContext = Depends(require_auth_context),
    service: EscrowService = Depends(get_escrow_service),
) -> SubscriptionResultResponse:
    result = await service.gift_subscription(
        auth.account, payload.recipient, payload.tier, payload.payment_id
    )
    return SubscriptionResultResponse(periods=result.periods, new_expiry=result.new_expiry)


@router.put("/auto-renewal", response_model=AutoRenewalResponse)
async def set_auto_renewal(
    payload: AutoRenewalUpdateRequest,
    auth: AuthContext = Depends(require_auth_context),
    service: EscrowService = Depends(get_escrow_service),
) -> AutoRenewalResponse:
    await service.set_auto_renewal(auth.account, payload.enabled)
    return AutoRenewalResponse(account=auth.account, enabled=payload.enabled)


@router.get("/{account}", response_model=SubscriptionInfoResponse)
async def get_subscription_info(
    account: str,
    service: EscrowService = Depends(get_escrow_service),
) -> SubscriptionInfoResponse:
    info = await service.get_subscription_info(account)
    return SubscriptionInfoResponse(**info._asdict())


@router.get("/{account}/active", response_model=ActiveStatusResponse)
async def is_active(
    account: str,
    service: EscrowService = Depends(get_escrow_service),
) -> ActiveStatusResponse:
    return ActiveStatusResponse(account=account, active=await service.is_active(account))


@router.get("/{account}/auto-renewal", response_model=AutoRenewalResponse)
async def is_auto_renewal_enabled(
    account: str,
    service: EscrowService = Depends(get_escrow_service),
) -> AutoRenewalResponse:
    enabled = await service.is_auto_renewal_enabled(account)
    return AutoRenewalResponse(account=account, enabled=enabled)


@router.get("/{account}/token", response_model=TokenResponse)
async def get_token(
    account: str,
    service: EscrowService = Depends(get_escrow_service),
) -> TokenResponse:
    return TokenResponse(account=account, token_id=await service.get_token(account))


@router.get("/{account}/tier", response_model=SubscriberTierResponse)
async def get_subscriber_tier(
    account: str,
    service: EscrowService = Depends(get_escrow_service),
) -> SubscriberTierResponse:
    return SubscriberTierResponse(account=account, tier=await service.get_subscriber_tier(account))
