"""
Exception hierarchy for TokenVault.

Every failure raised by the ledger, the access guard, the arithmetic kernel and
the vesting store is a typed subclass of TokenVaultError so callers can
discriminate failures precisely. No operation mutates state before raising.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class TokenVaultError(Exception):
    """Base exception for all TokenVault errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried later
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


class AuthorizationError(TokenVaultError):
    """Raised when a caller lacks the rights for an operation."""
    pass


class UnauthorizedError(AuthorizationError):
    """Raised when a non-administrator calls an administrator-only operation."""
    pass


# ==================== Policy Gate Errors ====================


class PolicyError(TokenVaultError):
    """Raised when a ledger policy gate rejects an operation."""
    pass


class TransferDisabledError(PolicyError):
    """Raised when transfers are globally disabled."""
    pass


class BlacklistedAddressError(PolicyError):
    """Raised when a blacklisted identity takes part in an operation."""

    def __init__(self, message: str, address: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.address = address


class RateLimitError(PolicyError):
    """Raised when an identity acts again before its cooldown elapsed."""

    recoverable = True  # Can retry once the cooldown window has passed

    def __init__(self, message: str, retry_after: int = 0, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class InvalidAmountError(PolicyError):
    """Raised when an amount exceeds the configured maximum transfer amount."""
    pass


class InsufficientBalanceError(PolicyError):
    """Raised when an account lacks sufficient balance for an operation."""
    pass


class InsufficientAllowanceError(PolicyError):
    """Raised when a spender's allowance does not cover the requested amount."""
    pass


# ==================== Arithmetic Errors ====================


class MathError(TokenVaultError):
    """Raised when checked arithmetic fails."""
    pass


class ArithmeticOverflowError(MathError):
    """Raised when a result leaves the unsigned 256-bit range."""
    pass


class DivisionByZeroError(MathError):
    """Raised when a divisor is zero."""
    pass


class InvalidInputError(MathError):
    """Raised when an argument is outside the accepted domain."""
    pass


# ==================== Vesting Lifecycle Errors ====================


class VestingError(TokenVaultError):
    """Raised when a vesting schedule operation fails."""
    pass


class InvalidScheduleError(VestingError):
    """Raised when vesting schedule parameters are rejected."""
    pass


class ScheduleNotFoundError(VestingError):
    """Raised when a schedule identifier is unknown."""

    def __init__(self, message: str, schedule_id: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.schedule_id = schedule_id


class NoTokensVestedError(VestingError):
    """Raised when a release finds nothing new to release."""

    recoverable = True  # More tokens vest as time passes


class AlreadyRevokedError(VestingError):
    """Raised when operating on a revoked schedule."""
    pass


class NotRevocableError(VestingError):
    """Raised when revoking a schedule created as non-revocable."""
    pass


class TransferFailedError(VestingError):
    """Raised when the ledger rejects an escrow movement.

    The ledger error is chained as ``__cause__``.
    """
    pass


# ==================== Configuration Errors ====================


class ConfigurationError(TokenVaultError):
    """Raised when configuration is missing or invalid."""
    recoverable = False


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Args:
        exc: The exception to check

    Returns:
        True if the operation may succeed when retried later
    """
    if isinstance(exc, TransferFailedError) and exc.__cause__ is not None:
        return is_recoverable_error(exc.__cause__)
    if isinstance(exc, TokenVaultError):
        return exc.recoverable
    return False


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, TokenVaultError):
        context["recoverable"] = is_recoverable_error(exc)
        if exc.details:
            context["details"] = exc.details

    if isinstance(exc, RateLimitError):
        context["retry_after"] = exc.retry_after

    if isinstance(exc, BlacklistedAddressError) and exc.address:
        context["address"] = exc.address

    if isinstance(exc, ScheduleNotFoundError) and exc.schedule_id:
        context["schedule_id"] = exc.schedule_id

    if exc.__cause__ is not None:
        context["cause"] = type(exc.__cause__).__name__

    return context
