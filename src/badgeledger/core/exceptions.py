"""
Exception hierarchy for badgeledger.

Typed exceptions for issuance, redemption and storage so callers can tell
terminal protocol rejections apart from transient storage failures.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class BadgeLedgerError(Exception):
    """Base exception for all badgeledger errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable


# ==================== Authorization Errors ====================


class AuthorizationError(BadgeLedgerError):
    """Raised when the caller is not permitted to perform an operation.

    Examples: signing an achievement that was never earned, or a non-owner
    attempting to rotate the authorized signer.
    """
    pass


# ==================== Ledger Reverts ====================


class ContractRevertError(BadgeLedgerError):
    """Raised when a ledger contract call reverts.

    The revert reason is preserved so the caller can see why.
    """

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.reason = reason or message


# ==================== Redemption Errors ====================


class RedemptionError(ContractRevertError):
    """Raised when the ledger reverts a redemption."""
    pass


class DuplicateRedemptionError(RedemptionError):
    """Raised when the (player, achievement) pair is already redeemed."""
    pass


class SignatureReplayError(RedemptionError):
    """Raised when the exact signature was already accepted once."""
    pass


class InvalidSignatureError(RedemptionError):
    """Raised when the recovered signer is not the authorized signer."""
    pass


class MalformedSignatureError(InvalidSignatureError):
    """
    Raised when the signature encoding itself is invalid.

    Wrong length, unknown recovery id or out-of-range components. Never
    silently ignored; treated as an invalid signature by callers.
    """
    pass


# ==================== Tournament Errors ====================


class TournamentError(ContractRevertError):
    """Raised when the tournament contract reverts an entry or finalization."""
    pass


class InsufficientEntryFeeError(TournamentError):
    """Raised when the value sent is below the entry fee."""
    pass


class DuplicateEntryError(TournamentError):
    """Raised when the player already entered the current tournament."""
    pass


# ==================== Storage Errors ====================


class StorageError(BadgeLedgerError):
    """Raised when the attestation or player store cannot be reached."""
    recoverable = True  # Insert-if-absent and issuance are safe to retry


# ==================== Configuration Errors ====================


class ConfigurationError(BadgeLedgerError):
    """Raised when required configuration is missing or invalid."""
    recoverable = False


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Args:
        exc: The exception to check

    Returns:
        True if the error is recoverable and the operation can be retried
    """
    if isinstance(exc, BadgeLedgerError):
        return exc.recoverable

    recoverable_types = (
        ConnectionError,
        TimeoutError,
    )
    return isinstance(exc, recoverable_types)


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, BadgeLedgerError):
        context["recoverable"] = exc.recoverable
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, ContractRevertError) and exc.reason:
        context["revert_reason"] = exc.reason

    return context
