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
from creator_direct.schemas.payment import PaymentWebhookResponse
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

__all__ = [
    "EscrowCreateRequest",
    "EscrowCreatedResponse",
    "EscrowParamsResponse",
    "EscrowParamsUpdateRequest",
    "WithdrawResponse",
    "AnalyticsResponse",
    "TierPriceResponse",
    "TierPriceUpdateRequest",
    "TierPricesResponse",
    "PaymentWebhookResponse",
    "SubscribeRequest",
    "GiftSubscriptionRequest",
    "SubscriptionResultResponse",
    "SubscriptionInfoResponse",
    "ActiveStatusResponse",
    "AutoRenewalUpdateRequest",
    "AutoRenewalResponse",
    "TokenResponse",
    "SubscriberTierResponse",
]
