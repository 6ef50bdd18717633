import pytest

from tokenvault.blockchain.vesting_manager import VestingManager
from tokenvault.core.config import AdministrationConfig
from tokenvault.core.contracts.erc20 import ERC20Token

ADMIN = "0xadmin"
ALICE = "0xalice"
BOB = "0xbob"
CAROL = "0xcarol"
T0 = 1_700_000_000
COOLDOWN = 60


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def advance(self, seconds: int):
        self.current_time += seconds


@pytest.fixture
def clock():
    return ManualClock(start_time=T0)


@pytest.fixture
def admin_config():
    return AdministrationConfig(administrator=ADMIN, cooldown_seconds=COOLDOWN)


@pytest.fixture
def token(admin_config, clock):
    return ERC20Token(name="Vault Token", symbol="VLT", admin_config=admin_config, time_provider=clock.now)


@pytest.fixture
def vesting(token):
    return VestingManager(token)


@pytest.fixture
def funded_vesting(token, vesting, clock):
    """Vesting store whose escrow the administrator approved for 1_000_000 units.

    The clock is advanced past the administrator's cooldown so the first
    schedule can be funded immediately.
    """
    token.mint(ADMIN, 1_000_000)
    token.approve(ADMIN, vesting.escrow_address, 1_000_000)
    clock.advance(COOLDOWN)
    return vesting
