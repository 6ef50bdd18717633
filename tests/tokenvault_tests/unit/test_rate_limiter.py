import pytest

from tokenvault.core.exceptions import RateLimitError, is_recoverable_error
from tokenvault.core.rate_limiter import CooldownRateLimiter


def test_first_operation_is_allowed():
    limiter = CooldownRateLimiter(cooldown_seconds=60)
    limiter.check("0xuser", now=1000)
    assert limiter.seconds_until_allowed("0xuser", now=1000) == 0


def test_cooldown_edge():
    limiter = CooldownRateLimiter(cooldown_seconds=60)
    limiter.record("0xuser", now=1000)

    with pytest.raises(RateLimitError) as excinfo:
        limiter.check("0xuser", now=1059)
    assert excinfo.value.retry_after == 1
    assert is_recoverable_error(excinfo.value)

    limiter.check("0xuser", now=1060)


def test_identities_are_case_insensitive():
    limiter = CooldownRateLimiter(cooldown_seconds=60)
    limiter.record("0xUSER", now=1000)
    with pytest.raises(RateLimitError):
        limiter.check("0xuser", now=1010)


def test_exempt_identity_never_limited():
    limiter = CooldownRateLimiter(cooldown_seconds=60)
    limiter.exempt("0xEscrow")
    limiter.record("0xescrow", now=1000)
    limiter.check("0xescrow", now=1000)
    assert "0xescrow" not in limiter.last_operation


def test_uses_time_provider_when_no_timestamp():
    limiter = CooldownRateLimiter(cooldown_seconds=10, time_provider=lambda: 500)
    limiter.record("0xuser")
    assert limiter.last_operation["0xuser"] == 500
    assert limiter.seconds_until_allowed("0xuser") == 10


def test_missing_clock_rejected():
    limiter = CooldownRateLimiter(cooldown_seconds=10)
    with pytest.raises(ValueError):
        limiter.record("0xuser")


def test_negative_cooldown_rejected():
    with pytest.raises(ValueError):
        CooldownRateLimiter(cooldown_seconds=-1)


def test_snapshot_roundtrip_keeps_cooldown_state():
    limiter = CooldownRateLimiter(cooldown_seconds=60)
    limiter.exempt("0xescrow")
    limiter.record("0xuser", now=1000)

    restored = CooldownRateLimiter()
    restored.load_dict(limiter.to_dict())
    with pytest.raises(RateLimitError):
        restored.check("0xuser", now=1030)
    assert restored.get_stats() == {
        "tracked_identities": 1,
        "exempt_identities": 1,
        "cooldown_seconds": 60,
    }


def test_snapshot_load_normalizes_identity_case():
    limiter = CooldownRateLimiter(cooldown_seconds=60)
    limiter.load_dict(
        {
            "cooldown_seconds": 60,
            "last_operation": {"0xUser": 1000},
            "exempt_identities": ["0xEscrow"],
        }
    )
    limiter.record("0xescrow", now=1000)
    limiter.check("0xescrow", now=1001)
    assert "0xescrow" not in limiter.last_operation
    with pytest.raises(RateLimitError):
        limiter.check("0xuser", now=1030)
