from creator_direct.models.base import Base, EscrowScopedBase
from creator_direct.models.escrow import Escrow
from creator_direct.models.payment import Payment
from creator_direct.models.subscriber import Subscriber
from creator_direct.models.tier_price import TierPrice
from creator_direct.models.withdrawal import Withdrawal

__all__ = [
    "Base",
    "EscrowScopedBase",
    "Escrow",
    "Payment",
    "Subscriber",
    "TierPrice",
    "Withdrawal",
]
