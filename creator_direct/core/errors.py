from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_TIER = "InvalidTier"
    TIER_NOT_CONFIGURED = "TierNotConfigured"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    UNAUTHORIZED = "Unauthorized"
    TRANSFER_FAILED = "TransferFailed"


class EscrowError(Exception):
    """Base class for every failure the escrow reports to its caller.

    Errors are raised before any state is mutated, so catching one means the
    invocation left the escrow exactly as it found it.
    """

    kind: ErrorKind

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind.value)


class InvalidTier(EscrowError):
    kind = ErrorKind.INVALID_TIER


class TierNotConfigured(EscrowError):
    kind = ErrorKind.TIER_NOT_CONFIGURED


class InsufficientFunds(EscrowError):
    kind = ErrorKind.INSUFFICIENT_FUNDS


class Unauthorized(EscrowError):
    kind = ErrorKind.UNAUTHORIZED


class TransferFailed(EscrowError):
    kind = ErrorKind.TRANSFER_FAILED
