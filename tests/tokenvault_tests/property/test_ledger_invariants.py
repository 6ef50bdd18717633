"""
Property-based tests for ledger and vesting invariants.

Uses Hypothesis to drive random operation sequences and verifies:
- balances always sum to total supply (conservation)
- linear vesting stays within [0, total] and never decreases over time
- cumulative releases are monotonic and bounded by the schedule total
- revocation refunds exactly the unvested remainder
"""

import pytest
from hypothesis import given, settings, strategies as st

from tokenvault.blockchain.vesting_manager import VestingManager
from tokenvault.core.config import AdministrationConfig
from tokenvault.core.contracts.erc20 import ERC20Token
from tokenvault.core.exceptions import ArithmeticOverflowError, PolicyError
from tokenvault.core.safe_math import UINT256_MAX, linear_vesting, weighted_average

ADMIN = "0xadmin"
ACCOUNTS = ["0xa", "0xb", "0xc", "0xd"]
T0 = 1_700_000_000


class Clock:
    def __init__(self, now: int):
        self.current_time = now

    def now(self) -> int:
        return self.current_time


def make_token(clock):
    config = AdministrationConfig(administrator=ADMIN, cooldown_seconds=60)
    return ERC20Token(name="Prop", symbol="PRP", admin_config=config, time_provider=clock.now)


operation = st.tuples(
    st.sampled_from(["transfer", "approve", "transfer_from", "mint"]),
    st.sampled_from(ACCOUNTS),
    st.sampled_from(ACCOUNTS),
    st.sampled_from(ACCOUNTS),
    st.integers(min_value=0, max_value=5_000),
    st.integers(min_value=0, max_value=120),
)


class TestLedgerConservation:
    @given(
        initial=st.lists(st.integers(min_value=0, max_value=10_000), min_size=4, max_size=4),
        operations=st.lists(operation, max_size=40),
    )
    @settings(max_examples=100, deadline=None)
    def test_balances_sum_to_total_supply(self, initial, operations):
        clock = Clock(T0)
        token = make_token(clock)
        for account, amount in zip(ACCOUNTS, initial):
            token.mint(account, amount)

        for kind, actor, source, target, amount, elapsed in operations:
            clock.current_time += elapsed
            supply_before = token.total_supply
            try:
                if kind == "transfer":
                    token.transfer(actor, target, amount)
                elif kind == "approve":
                    token.approve(actor, target, amount)
                elif kind == "transfer_from":
                    token.transfer_from(actor, source, target, amount)
                else:
                    token.mint(target, amount)
            except PolicyError:
                assert token.total_supply == supply_before

            if kind != "mint":
                assert token.total_supply == supply_before
            assert sum(token.balances.values()) == token.total_supply
            assert all(balance >= 0 for balance in token.balances.values())


class TestVestingProperties:
    @given(
        total=st.integers(min_value=0, max_value=10**30),
        start=st.integers(min_value=0, max_value=10**12),
        duration=st.integers(min_value=1, max_value=10**9),
        offsets=st.lists(st.integers(min_value=0, max_value=2 * 10**9), min_size=2, max_size=10),
    )
    @settings(max_examples=200)
    def test_linear_vesting_bounded_and_monotonic(self, total, start, duration, offsets):
        values = [linear_vesting(total, start, duration, start + offset) for offset in sorted(offsets)]
        assert all(0 <= value <= total for value in values)
        assert values == sorted(values)

    @given(
        amount=st.integers(min_value=1, max_value=10**24),
        duration=st.integers(min_value=1, max_value=10_000),
        steps=st.lists(st.integers(min_value=0, max_value=3_000), min_size=1, max_size=15),
    )
    @settings(max_examples=100, deadline=None)
    def test_release_monotonic_and_bounded(self, amount, duration, steps):
        clock = Clock(T0)
        token = make_token(clock)
        vesting = VestingManager(token)
        token.mint(ADMIN, amount)
        token.approve(ADMIN, vesting.escrow_address, amount)
        clock.current_time += 60
        start = clock.current_time
        schedule_id = vesting.create_vesting_schedule(ADMIN, "0xben", start, duration, amount, True)

        released_total = 0
        for step in steps:
            clock.current_time += step
            expected = linear_vesting(amount, start, duration, clock.current_time) - released_total
            if expected > 0:
                assert vesting.release(schedule_id) == expected
                released_total += expected
            schedule = vesting.get_vesting_schedule(schedule_id)
            assert schedule.released_amount == released_total
            assert released_total <= amount
            assert token.balance_of("0xben") + vesting.escrow_balance() == amount

    @given(
        amount=st.integers(min_value=1, max_value=10**24),
        duration=st.integers(min_value=1, max_value=10_000),
        revoke_at=st.integers(min_value=0, max_value=20_000),
    )
    @settings(max_examples=100, deadline=None)
    def test_refund_plus_vested_equals_total(self, amount, duration, revoke_at):
        clock = Clock(T0)
        token = make_token(clock)
        vesting = VestingManager(token)
        token.mint(ADMIN, amount)
        token.approve(ADMIN, vesting.escrow_address, amount)
        clock.current_time += 60
        start = clock.current_time
        schedule_id = vesting.create_vesting_schedule(ADMIN, "0xben", start, duration, amount, True)

        clock.current_time = start + revoke_at
        vested = vesting.compute_vested_amount(schedule_id)
        refund = vesting.revoke(ADMIN, schedule_id)
        assert refund + vested == amount
        assert token.balance_of(ADMIN) == refund

        clock.current_time += 10**6
        assert vesting.compute_vested_amount(schedule_id) == 0


class TestWeightedAverageOverflow:
    @given(
        amounts=st.lists(st.integers(min_value=0, max_value=UINT256_MAX), min_size=1, max_size=4),
        weight=st.integers(min_value=1, max_value=UINT256_MAX),
    )
    @settings(max_examples=200)
    def test_never_wraps(self, amounts, weight):
        weights = [weight] * len(amounts)
        exact_sum = sum(a * weight for a in amounts)
        fits = (
            all(a * weight <= UINT256_MAX for a in amounts)
            and exact_sum <= UINT256_MAX
            and weight * len(amounts) <= UINT256_MAX
        )
        if fits:
            assert weighted_average(amounts, weights) == exact_sum // (weight * len(amounts))
        else:
            with pytest.raises(ArithmeticOverflowError):
                weighted_average(amounts, weights)
