"""
TokenVault - Per-Account Cooldown Rate Limiting

Tracks, per identity, the timestamp of the last rate-limited operation it
performed as primary actor. A new operation is allowed once the cooldown
window has fully elapsed.
"""

from __future__ import annotations

import logging
from typing import Callable

from .exceptions import RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 60


class CooldownRateLimiter:
    """
    Cooldown limiter keyed on account identity.

    check() and record() are separate so a caller can validate every other
    precondition between them and record only when the operation commits.
    The limiter holds no lock of its own; the owning ledger serializes access.
    """

    def __init__(
        self,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        time_provider: Callable[[], int] | None = None,
    ):
        if cooldown_seconds < 0:
            raise ValueError("Cooldown cannot be negative.")
        self.cooldown_seconds = cooldown_seconds
        self._time_provider = time_provider
        # {identity: timestamp of last rate-limited operation}
        self.last_operation: dict[str, int] = {}
        self.exempt_identities: set[str] = set()

    def _now(self, now: int | None) -> int:
        if now is not None:
            return now
        if self._time_provider is None:
            raise ValueError("No timestamp given and no time_provider configured.")
        return int(self._time_provider())

    def exempt(self, identity: str) -> None:
        """Exclude a system identity (such as an escrow) from cooldowns."""
        self.exempt_identities.add(identity.lower())

    def seconds_until_allowed(self, identity: str, now: int | None = None) -> int:
        """Seconds left before identity may act again (0 if allowed now)."""
        identity = identity.lower()
        if identity in self.exempt_identities:
            return 0
        last = self.last_operation.get(identity)
        if last is None:
            return 0
        elapsed = self._now(now) - last
        return max(0, self.cooldown_seconds - elapsed)

    def check(self, identity: str, now: int | None = None) -> None:
        """
        Raise RateLimitError if identity is still inside its cooldown.

        Args:
            identity: Primary actor of the operation
            now: Current timestamp (defaults to the time provider)
        """
        wait = self.seconds_until_allowed(identity, now)
        if wait > 0:
            raise RateLimitError(
                f"Rate limit exceeded for {identity}. Try again in {wait} seconds.",
                retry_after=wait,
                details={"identity": identity, "cooldown": self.cooldown_seconds},
            )

    def record(self, identity: str, now: int | None = None) -> None:
        identity = identity.lower()
        if identity in self.exempt_identities:
            return
        self.last_operation[identity] = self._now(now)

    def get_stats(self) -> dict:
        return {
            "tracked_identities": len(self.last_operation),
            "exempt_identities": len(self.exempt_identities),
            "cooldown_seconds": self.cooldown_seconds,
        }

    def to_dict(self) -> dict:
        return {
            "cooldown_seconds": self.cooldown_seconds,
            "last_operation": dict(self.last_operation),
            "exempt_identities": sorted(self.exempt_identities),
        }

    def load_dict(self, data: dict) -> None:
        self.cooldown_seconds = int(data.get("cooldown_seconds", self.cooldown_seconds))
        self.last_operation = {k.lower(): int(v) for k, v in data.get("last_operation", {}).items()}
        self.exempt_identities = {identity.lower() for identity in data.get("exempt_identities", [])}
