"""
TokenVault contract implementations.

- ERC20: rate-limited fungible token ledger
"""

from .erc20 import ZERO_ADDRESS, ERC20Token, TokenEvent

__all__ = [
    "ERC20Token",
    "TokenEvent",
    "ZERO_ADDRESS",
]
