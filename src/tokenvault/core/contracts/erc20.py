"""
ERC20-style ledger with transfer gating.

This module provides the token ledger at the center of TokenVault:
- Balances, allowances and total supply (uint256 semantics)
- mint, transfer, approve and transferFrom
- Access guard checks (transfer switch, blacklist, size ceiling)
- Per-account cooldown on every mutating operation except mint
- Events (Transfer, Approval)

Every mutating operation runs under the ledger lock and validates all of its
preconditions before the first write, so a failed operation leaves no trace.
"""

from __future__ import annotations

import hashlib
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Iterator

from ...blockchain.access_guard import AccessGuard
from ..config import TOKEN_DECIMALS, ZERO_ADDRESS, AdministrationConfig
from ..exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    TokenVaultError,
)
from ..metrics import record_ledger_operation, record_mint
from ..rate_limiter import CooldownRateLimiter
from ..safe_math import MAX_DECIMALS, checked_add, require_uint256, weighted_average

logger = logging.getLogger(__name__)


@dataclass
class TokenEvent:
    """Represents a ledger event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: int = 0


@dataclass
class ERC20Token:
    """
    Rate-limited ERC20 ledger.

    Security considerations:
    - uint256 arithmetic with explicit overflow checks
    - Blacklist and transfer switch enforced through the AccessGuard
    - Cooldown per primary actor enforced through the CooldownRateLimiter
    - Allowance is consumed before the balance in transfer_from

    mint is deliberately unauthenticated: it performs no caller, blacklist or
    zero-address check and records no event.
    """

    name: str
    symbol: str
    admin_config: AdministrationConfig
    decimals: int = TOKEN_DECIMALS
    address: str = ""
    time_provider: Callable[[], int] | None = field(default=None, repr=False)

    # State
    total_supply: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list, repr=False)

    guard: AccessGuard = field(init=False, repr=False, compare=False)
    rate_limiter: CooldownRateLimiter = field(init=False, repr=False, compare=False)
    lock: RLock = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Initialize guard, limiter and lock after dataclass creation."""
        if not 0 <= self.decimals <= MAX_DECIMALS:
            raise ValueError(f"decimals must be between 0 and {MAX_DECIMALS}")
        if not self.address:
            # Derive a stable address from the token identity
            addr_input = f"{self.name}:{self.symbol}:{self.admin_config.administrator}".encode()
            self.address = f"0x{hashlib.sha3_256(addr_input).digest()[-20:].hex()}"
        self.address = self._normalize(self.address)
        self.lock = RLock()
        self.guard = AccessGuard(self.admin_config, lock=self.lock)
        self.rate_limiter = CooldownRateLimiter(
            cooldown_seconds=self.admin_config.cooldown_seconds,
            time_provider=self.current_time,
        )

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        """
        Get the token balance of an account.

        Args:
            account: Address to check

        Returns:
            Token balance (0 for accounts never seen)
        """
        with self.lock:
            return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """
        Get the allowance granted by owner to spender.

        Args:
            owner: Token owner address
            spender: Spender address

        Returns:
            Approved amount
        """
        with self.lock:
            return self.allowances.get(self._normalize(owner), {}).get(self._normalize(spender), 0)

    # ==================== State-Changing Functions ====================

    def mint(self, to: str, amount: int) -> None:
        """
        Create new tokens for an account.

        Args:
            to: Recipient of minted tokens
            amount: Amount to mint

        Raises:
            ArithmeticOverflowError: If supply or balance would exceed uint256
        """
        with self._operation("mint"):
            to_norm = self._normalize(to)
            require_uint256(amount, "amount")
            new_supply = checked_add(self.total_supply, amount)
            new_balance = checked_add(self.balances.get(to_norm, 0), amount)

            self.total_supply = new_supply
            self.balances[to_norm] = new_balance

            record_mint(self.symbol, amount, new_supply)
            logger.info(
                "Ledger mint",
                extra={
                    "event": "ledger.mint",
                    "token": self.symbol,
                    "to": to_norm[:10],
                    "amount": amount,
                    "new_supply": new_supply,
                },
            )

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Args:
            sender: Address sending tokens
            recipient: Address receiving tokens
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TransferDisabledError: If transfers are switched off
            BlacklistedAddressError: If sender or recipient is blacklisted
            InvalidAmountError: If amount exceeds the maximum transfer amount
            InsufficientBalanceError: If sender's balance is too low
            RateLimitError: If sender is inside its cooldown window
        """
        with self._operation("transfer"):
            sender_norm = self._normalize(sender)
            recipient_norm = self._normalize(recipient)
            require_uint256(amount, "amount")

            self.guard.require_transfers_enabled()
            self.guard.require_not_blacklisted(sender_norm, recipient_norm)
            self.guard.require_within_limit(amount)

            sender_balance = self.balances.get(sender_norm, 0)
            self._require_balance(sender_balance, amount)

            now = self.current_time()
            self.rate_limiter.check(sender_norm, now)

            # Mirrors the balance check; a huge balance overflows here.
            average = weighted_average([sender_balance, amount], [1, 1])
            if average < amount:
                raise InsufficientBalanceError(
                    f"Ledger: balance average {average} below transfer amount {amount}"
                )

            self._move(sender_norm, recipient_norm, amount)
            self.rate_limiter.record(sender_norm, now)
            self._emit("Transfer", sender_norm, recipient_norm, amount, now)

            logger.debug(
                "Ledger transfer",
                extra={
                    "event": "ledger.transfer",
                    "token": self.symbol,
                    "from": sender_norm[:10],
                    "to": recipient_norm[:10],
                    "amount": amount,
                },
            )
            return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """
        Set the amount spender may move on behalf of owner.

        The allowance is replaced, not increased. No zero-address check applies.

        Raises:
            BlacklistedAddressError: If owner or spender is blacklisted
            RateLimitError: If owner is inside its cooldown window
        """
        with self._operation("approve"):
            owner_norm = self._normalize(owner)
            spender_norm = self._normalize(spender)
            require_uint256(amount, "amount")

            self.guard.require_not_blacklisted(owner_norm, spender_norm)
            now = self.current_time()
            self.rate_limiter.check(owner_norm, now)

            self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
            self.rate_limiter.record(owner_norm, now)
            self._emit("Approval", owner_norm, spender_norm, amount, now)
            return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Transfer tokens using an allowance.

        Args:
            spender: Address executing the transfer
            from_addr: Token owner
            to_addr: Recipient
            amount: Amount to transfer

        Returns:
            True if successful

        Raises:
            TransferDisabledError, BlacklistedAddressError, InvalidAmountError,
            InsufficientBalanceError, InsufficientAllowanceError, RateLimitError
        """
        with self._operation("transfer_from"):
            spender_norm = self._normalize(spender)
            from_norm = self._normalize(from_addr)
            to_norm = self._normalize(to_addr)
            require_uint256(amount, "amount")

            self.guard.require_transfers_enabled()
            self.guard.require_not_blacklisted(from_norm, to_norm)
            self.guard.require_within_limit(amount)

            from_balance = self.balances.get(from_norm, 0)
            self._require_balance(from_balance, amount)

            current_allowance = self.allowances.get(from_norm, {}).get(spender_norm, 0)
            if current_allowance < amount:
                raise InsufficientAllowanceError(
                    f"Ledger: insufficient allowance ({current_allowance} < {amount})",
                    details={"spender": spender_norm, "allowance": current_allowance},
                )

            now = self.current_time()
            self.rate_limiter.check(from_norm, now)

            # Allowance first, then balances
            self.allowances.setdefault(from_norm, {})[spender_norm] = current_allowance - amount
            self._move(from_norm, to_norm, amount)
            self.rate_limiter.record(from_norm, now)
            self._emit("Transfer", from_norm, to_norm, amount, now)
            return True

    # ==================== Helpers ====================

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Serialize an operation and count its outcome."""
        with self.lock:
            try:
                yield
            except TokenVaultError as exc:
                record_ledger_operation(name, False)
                logger.debug(
                    "Ledger %s rejected: %s",
                    name,
                    type(exc).__name__,
                    extra={"event": "ledger.rejected", "operation": name},
                )
                raise
            record_ledger_operation(name, True)

    def current_time(self) -> int:
        """Current timestamp from the ledger clock."""
        if self.time_provider is None:
            return int(time.time())
        return int(self.time_provider())

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        """Debit then credit; callers have already checked the balance."""
        self.balances[from_norm] = self.balances.get(from_norm, 0) - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount

    def _require_balance(self, balance: int, amount: int) -> None:
        if balance < amount:
            raise InsufficientBalanceError(
                f"Ledger: transfer amount exceeds balance ({amount} > {balance})",
                details={"balance": balance, "amount": amount},
            )

    def _normalize(self, address: str) -> str:
        """Normalize address to lowercase."""
        return address.lower()

    def _emit(self, event_type: str, from_addr: str, to_addr: str, amount: int, now: int) -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
                timestamp=now,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> dict[str, Any]:
        """Serialize ledger state to a dictionary."""
        with self.lock:
            return {
                "name": self.name,
                "symbol": self.symbol,
                "decimals": self.decimals,
                "address": self.address,
                "total_supply": self.total_supply,
                "balances": dict(self.balances),
                "allowances": {k: dict(v) for k, v in self.allowances.items()},
                "guard": self.guard.to_dict(),
                "rate_limiter": self.rate_limiter.to_dict(),
            }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        admin_config: AdministrationConfig,
        time_provider: Callable[[], int] | None = None,
    ) -> "ERC20Token":
        """Deserialize ledger state from a dictionary."""
        token = cls(
            name=data["name"],
            symbol=data["symbol"],
            admin_config=admin_config,
            decimals=data.get("decimals", TOKEN_DECIMALS),
            address=data.get("address", ""),
            time_provider=time_provider,
            total_supply=data.get("total_supply", 0),
        )
        token.balances = dict(data.get("balances", {}))
        token.allowances = {k: dict(v) for k, v in data.get("allowances", {}).items()}
        token.guard.load_dict(data.get("guard", {}))
        token.rate_limiter.load_dict(data.get("rate_limiter", {}))
        return token
