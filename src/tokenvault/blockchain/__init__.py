"""
TokenVault Blockchain Module

Managers that sit around the ledger:
- Access guard: transfer switch, blacklist and transfer size limit
- Vesting: escrowed, linearly released schedules with revocation
- Content-addressed schedule identifiers
"""

from .access_guard import AccessGuard
from .schedule_id import compute_schedule_id
from .vesting_manager import VestingManager, VestingSchedule

__all__ = [
    "AccessGuard",
    "VestingManager",
    "VestingSchedule",
    "compute_schedule_id",
]
