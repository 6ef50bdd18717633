import pytest

from tokenvault.blockchain.access_guard import AccessGuard
from tokenvault.core.config import AdministrationConfig
from tokenvault.core.exceptions import (
    BlacklistedAddressError,
    ConfigurationError,
    InvalidAmountError,
    InvalidInputError,
    TransferDisabledError,
    UnauthorizedError,
)


@pytest.fixture
def guard():
    return AccessGuard(AdministrationConfig(administrator="0xAdmin"))


def test_defaults_allow_everything(guard):
    guard.require_transfers_enabled()
    guard.require_not_blacklisted("0xa", "0xb")
    guard.require_within_limit(2**256 - 1)
    assert guard.get_status()["transfers_enabled"] is True


def test_toggle_transfers(guard):
    guard.set_transfers_enabled("0xadmin", False)
    with pytest.raises(TransferDisabledError):
        guard.require_transfers_enabled()
    guard.set_transfers_enabled("0xADMIN", True)
    guard.require_transfers_enabled()


def test_blacklist(guard):
    guard.set_blacklisted("0xadmin", "0xBad", True)
    assert guard.is_blacklisted("0xbad")
    with pytest.raises(BlacklistedAddressError) as excinfo:
        guard.require_not_blacklisted("0xgood", "0xbad")
    assert excinfo.value.address == "0xbad"

    guard.set_blacklisted("0xadmin", "0xbad", False)
    guard.require_not_blacklisted("0xbad")


def test_max_transfer_amount(guard):
    guard.set_max_transfer_amount("0xadmin", 100)
    guard.require_within_limit(100)
    with pytest.raises(InvalidAmountError):
        guard.require_within_limit(101)
    with pytest.raises(InvalidInputError):
        guard.set_max_transfer_amount("0xadmin", -1)


@pytest.mark.parametrize(
    "action",
    [
        lambda g: g.set_transfers_enabled("0xevil", False),
        lambda g: g.set_blacklisted("0xevil", "0xadmin", True),
        lambda g: g.set_max_transfer_amount("0xevil", 0),
    ],
)
def test_toggles_are_administrator_only(guard, action):
    with pytest.raises(UnauthorizedError):
        action(guard)
    assert guard.get_status() == {
        "administrator": "0xadmin",
        "transfers_enabled": True,
        "max_transfer_amount": 2**256 - 1,
        "blacklisted_count": 0,
    }


def test_administration_config_validation():
    with pytest.raises(ConfigurationError):
        AdministrationConfig(administrator="")
    with pytest.raises(ConfigurationError):
        AdministrationConfig(administrator="0x" + "0" * 40)
    with pytest.raises(ConfigurationError):
        AdministrationConfig(administrator="0xadmin", cooldown_seconds=-5)
    with pytest.raises(ConfigurationError):
        AdministrationConfig(administrator="0xadmin", max_transfer_amount=2**256)


def test_administration_config_from_env_defaults():
    config = AdministrationConfig.from_env("0xAdmin")
    assert config.administrator == "0xadmin"
    assert config.cooldown_seconds == 60
    assert config.is_administrator("0xADMIN")
    assert not config.is_administrator("")
