from creator_direct.core.repositories.base import (
    EscrowContextMissingError,
    EscrowNotFoundError,
    EscrowScopedRepository,
    PaymentAlreadyConsumedError,
    PaymentNotFoundError,
    PaymentRejectedError,
)
from creator_direct.core.repositories.escrows import EscrowRepository
from creator_direct.core.repositories.payments import PaymentRepository
from creator_direct.core.repositories.subscribers import SubscriberRepository
from creator_direct.core.repositories.tier_prices import TierPriceRepository
from creator_direct.core.repositories.withdrawals import WithdrawalRepository

__all__ = [
    "EscrowContextMissingError",
    "EscrowNotFoundError",
    "EscrowScopedRepository",
    "EscrowRepository",
    "PaymentAlreadyConsumedError",
    "PaymentNotFoundError",
    "PaymentRejectedError",
    "PaymentRepository",
    "SubscriberRepository",
    "TierPriceRepository",
    "WithdrawalRepository",
]
