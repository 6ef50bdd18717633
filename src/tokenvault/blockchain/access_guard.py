"""
Access guard consulted by the ledger before every mutating operation.

Holds the global transfers-enabled switch, the identity blacklist and the
per-transfer size ceiling. Only the configured administrator may change them.
"""

import logging
from threading import RLock
from typing import Any, Dict, Optional

from ..core.config import AdministrationConfig
from ..core.exceptions import (
    BlacklistedAddressError,
    InvalidAmountError,
    TransferDisabledError,
    UnauthorizedError,
)
from ..core.safe_math import require_uint256

logger = logging.getLogger("tokenvault.blockchain.access_guard")


class AccessGuard:
    """
    Transfer switch, blacklist and size limit with administrator-only toggles.

    Checks run inside the owning ledger's critical section. Toggles, status
    and snapshots take the lock passed in, which the ledger sets to its own so
    policy changes never interleave with a ledger operation.
    """

    def __init__(self, admin_config: AdministrationConfig, lock: Optional[RLock] = None):
        self.admin_config = admin_config
        self._lock = lock or RLock()
        self.transfers_enabled = admin_config.transfers_enabled
        self.max_transfer_amount = admin_config.max_transfer_amount
        self.blacklist: set[str] = set()

    @property
    def administrator(self) -> str:
        return self.admin_config.administrator

    def require_administrator(self, caller: str, action: str = "perform this action") -> None:
        if not self.admin_config.is_administrator(caller):
            raise UnauthorizedError(
                f"Caller {caller} is not authorized to {action}.",
                details={"caller": caller, "action": action},
            )

    # ==================== Checks ====================

    def require_transfers_enabled(self) -> None:
        if not self.transfers_enabled:
            raise TransferDisabledError("Transfers are currently disabled.")

    def require_not_blacklisted(self, *identities: str) -> None:
        for identity in identities:
            if self.is_blacklisted(identity):
                raise BlacklistedAddressError(
                    f"Address {identity} is blacklisted.", address=identity.lower()
                )

    def require_within_limit(self, amount: int) -> None:
        if amount > self.max_transfer_amount:
            raise InvalidAmountError(
                f"Amount {amount} exceeds the maximum transfer amount {self.max_transfer_amount}.",
                details={"amount": amount, "max_transfer_amount": self.max_transfer_amount},
            )

    def is_blacklisted(self, identity: str) -> bool:
        return identity.lower() in self.blacklist

    # ==================== Administrative toggles ====================

    def set_transfers_enabled(self, caller: str, enabled: bool) -> None:
        with self._lock:
            self.require_administrator(caller, "toggle transfers")
            if self.transfers_enabled == enabled:
                logger.info("Transfers already %s.", "enabled" if enabled else "disabled")
                return
            self.transfers_enabled = enabled
            logger.warning(
                "Transfers %s by %s",
                "enabled" if enabled else "disabled",
                caller,
                extra={"event": "guard.transfers_toggled", "enabled": enabled},
            )

    def set_max_transfer_amount(self, caller: str, amount: int) -> None:
        with self._lock:
            self.require_administrator(caller, "set the maximum transfer amount")
            require_uint256(amount, "max_transfer_amount")
            self.max_transfer_amount = amount
            logger.info(
                "Maximum transfer amount set to %d by %s",
                amount,
                caller,
                extra={"event": "guard.max_transfer_set", "amount": amount},
            )

    def set_blacklisted(self, caller: str, identity: str, blacklisted: bool) -> None:
        with self._lock:
            self.require_administrator(caller, "change the blacklist")
            identity = identity.lower()
            if blacklisted:
                self.blacklist.add(identity)
            else:
                self.blacklist.discard(identity)
            logger.warning(
                "Address %s %s by %s",
                identity,
                "blacklisted" if blacklisted else "removed from blacklist",
                caller,
                extra={"event": "guard.blacklist_changed", "blacklisted": blacklisted},
            )

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "administrator": self.administrator,
                "transfers_enabled": self.transfers_enabled,
                "max_transfer_amount": self.max_transfer_amount,
                "blacklisted_count": len(self.blacklist),
            }

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "transfers_enabled": self.transfers_enabled,
                "max_transfer_amount": self.max_transfer_amount,
                "blacklist": sorted(self.blacklist),
            }

    def load_dict(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self.transfers_enabled = bool(data.get("transfers_enabled", self.transfers_enabled))
            self.max_transfer_amount = int(data.get("max_transfer_amount", self.max_transfer_amount))
            self.blacklist = {identity.lower() for identity in data.get("blacklist", [])}
