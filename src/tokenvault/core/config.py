"""
TokenVault Configuration

Settings are read from TOKENVAULT_* environment variables at import time.
Ledger and vesting components never read these globals directly: they receive
an explicit AdministrationConfig value built from them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

from .exceptions import ConfigurationError
from .safe_math import MAX_DECIMALS, UINT256_MAX

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


ZERO_ADDRESS = "0x" + "0" * 40


def _get_int(env_var: str, default: int, minimum: int = 0, maximum: int = UINT256_MAX) -> int:
    """Read an integer setting, rejecting values outside [minimum, maximum]."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw, 0)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be an integer, got {raw!r}",
            details={"env_var": env_var},
        ) from exc
    if value < minimum or value > maximum:
        raise ConfigurationError(
            f"{env_var} must be between {minimum} and {maximum}, got {value}",
            details={"env_var": env_var},
        )
    return value


NETWORK = os.getenv("TOKENVAULT_NETWORK", "testnet").strip().lower()
if NETWORK not in {network.value for network in NetworkType}:
    raise ConfigurationError(f"TOKENVAULT_NETWORK must be testnet or mainnet, got {NETWORK!r}")

RATE_LIMIT_COOLDOWN_SECONDS = _get_int("TOKENVAULT_RATE_LIMIT_COOLDOWN", 60)
MAX_TRANSFER_AMOUNT = _get_int("TOKENVAULT_MAX_TRANSFER_AMOUNT", UINT256_MAX)
TOKEN_DECIMALS = _get_int("TOKENVAULT_TOKEN_DECIMALS", 18, maximum=MAX_DECIMALS)
LOG_LEVEL = os.getenv("TOKENVAULT_LOG_LEVEL", "INFO").strip().upper()
LOG_FILE = os.getenv("TOKENVAULT_LOG_FILE", "").strip() or None


@dataclass(frozen=True)
class AdministrationConfig:
    """
    Administrative settings shared by the ledger, access guard and vesting store.

    Attributes:
        administrator: Identity allowed to toggle guards and manage schedules
        cooldown_seconds: Minimum spacing between rate-limited operations
        max_transfer_amount: Initial per-transfer ceiling
        transfers_enabled: Initial state of the global transfer switch
    """

    administrator: str
    cooldown_seconds: int = 60
    max_transfer_amount: int = UINT256_MAX
    transfers_enabled: bool = True

    def __post_init__(self) -> None:
        if not self.administrator or self.administrator.lower() == ZERO_ADDRESS:
            raise ConfigurationError("Administrator address cannot be empty.")
        if not isinstance(self.cooldown_seconds, int) or self.cooldown_seconds < 0:
            raise ConfigurationError("Cooldown must be a non-negative integer.")
        if (
            not isinstance(self.max_transfer_amount, int)
            or not 0 <= self.max_transfer_amount <= UINT256_MAX
        ):
            raise ConfigurationError("Max transfer amount must fit in uint256.")
        object.__setattr__(self, "administrator", self.administrator.lower())

    @classmethod
    def from_env(cls, administrator: str) -> "AdministrationConfig":
        """Build a config from the TOKENVAULT_* environment settings."""
        config = cls(
            administrator=administrator,
            cooldown_seconds=RATE_LIMIT_COOLDOWN_SECONDS,
            max_transfer_amount=MAX_TRANSFER_AMOUNT,
        )
        logger.info(
            "Administration config loaded for %s network",
            NETWORK,
            extra={
                "event": "config.loaded",
                "network": NETWORK,
                "cooldown_seconds": config.cooldown_seconds,
            },
        )
        return config

    def is_administrator(self, caller: str) -> bool:
        return bool(caller) and caller.lower() == self.administrator
