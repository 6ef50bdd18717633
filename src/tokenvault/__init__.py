"""
TokenVault - Rate-Limited Token Ledger with Vesting Escrow

A deterministic state machine for a fungible token ledger whose transfers are
gated by an access guard and a per-account cooldown, coupled to a vesting
schedule store that escrows ledger value and releases it linearly over time.

Main Components:
- Arithmetic: checked uint256 math (vesting, interest, averages, decimals)
- Ledger: ERC20-style balances, allowances and transfers
- Access Guard: transfer switch, blacklist and transfer size limit
- Vesting: content-addressed vesting schedules with release and revocation
"""

__version__ = "0.1.0"
__author__ = "TokenVault Development Team"

from .blockchain.vesting_manager import VestingManager, VestingSchedule
from .core.config import AdministrationConfig
from .core.contracts.erc20 import ERC20Token

__all__ = [
    "AdministrationConfig",
    "ERC20Token",
    "VestingManager",
    "VestingSchedule",
]
