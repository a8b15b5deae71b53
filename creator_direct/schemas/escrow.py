from __future__ import annotations

from pydantic import BaseModel, Field

from creator_direct.core.arithmetic import BALANCE_MAX, HEIGHT_MAX


class EscrowCreateRequest(BaseModel):
    base_price: int = Field(ge=0, le=BALANCE_MAX)
    period_length: int = Field(ge=1, le=HEIGHT_MAX)
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=2048)


class EscrowCreatedResponse(BaseModel):
    escrow_id: str
    creator: str


class EscrowParamsResponse(BaseModel):
    price: int
    period: int
    name: str
    description: str
    creator: str


class EscrowParamsUpdateRequest(BaseModel):
    price: int = Field(ge=0, le=BALANCE_MAX)
    period: int = Field(ge=1, le=HEIGHT_MAX)


class WithdrawResponse(BaseModel):
    amount: int


class AnalyticsResponse(BaseModel):
    total_subscribers: int
    total_revenue: int
    active_count: int


class TierPriceResponse(BaseModel):
    tier: int
    price: int


class TierPriceUpdateRequest(BaseModel):
    price: int = Field(ge=0, le=BALANCE_MAX)


class TierPricesResponse(BaseModel):
    price0: int
    price1: int
    price2: int
