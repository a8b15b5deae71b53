from __future__ import annotations

from pydantic import BaseModel, Field


class SubscribeRequest(BaseModel):
    payment_id: str = Field(min_length=1, max_length=255)
    tier: int | None = Field(default=None, ge=0)


class GiftSubscriptionRequest(BaseModel):
    recipient: str = Field(min_length=1, max_length=128)
    payment_id: str = Field(min_length=1, max_length=255)
    tier: int = Field(default=0, ge=0)


class SubscriptionResultResponse(BaseModel):
    periods: int
    new_expiry: int


class SubscriptionInfoResponse(BaseModel):
    is_active: bool
    expiry: int
    now: int
    has_pass: bool


class ActiveStatusResponse(BaseModel):
    account: str
    active: bool


class AutoRenewalUpdateRequest(BaseModel):
    enabled: bool


class AutoRenewalResponse(BaseModel):
    account: str
    enabled: bool


class TokenResponse(BaseModel):
    account: str
    token_id: int | None = None


class SubscriberTierResponse(BaseModel):
    account: str
    tier: int
