"""
Checked unsigned 256-bit arithmetic.

Pure functions used by the ledger and the vesting store. Every function either
returns a uint256 result or raises a MathError subclass:

- ArithmeticOverflowError: a result leaves [0, 2**256 - 1]
- DivisionByZeroError: a divisor is zero
- InvalidInputError: an argument is not a uint256 or is out of its domain

Python integers never wrap, so overflow is detected by comparing each
intermediate result against UINT256_MAX instead of the divide-back check a
fixed-width machine type would need.
"""

from __future__ import annotations

from typing import Final, Sequence

from .exceptions import ArithmeticOverflowError, DivisionByZeroError, InvalidInputError

UINT256_MAX: Final[int] = 2**256 - 1

# Rates and decays are expressed in basis points (1/10000)
BASIS_POINTS: Final[int] = 10_000

# 10**77 is the largest power of ten that fits in uint256
MAX_DECIMALS: Final[int] = 77


def require_uint256(value: int, name: str = "value") -> int:
    """Validate that value is an int in the uint256 range."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise InvalidInputError(f"{name} is outside the uint256 range")
    return value


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError("addition overflow", details={"a": a, "b": b})
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticOverflowError("subtraction underflow", details={"a": a, "b": b})
    return a - b


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError("multiplication overflow", details={"a": a, "b": b})
    return result


def checked_div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZeroError("division by zero", details={"a": a})
    return a // b


def linear_vesting(total: int, start: int, duration: int, now: int) -> int:
    """
    Amount vested under a linear schedule.

    Args:
        total: Total amount vesting over the schedule
        start: Schedule start timestamp
        duration: Schedule length
        now: Timestamp to evaluate at

    Returns:
        0 at or before start, total at or after start + duration,
        floor(total * elapsed / duration) in between

    Raises:
        ArithmeticOverflowError: If total * elapsed overflows, or the result
            exceeds total
    """
    for name, value in (("total", total), ("start", start), ("duration", duration), ("now", now)):
        require_uint256(value, name)

    if now <= start:
        return 0
    if now >= checked_add(start, duration):
        return total

    elapsed = now - start
    vested = checked_div(checked_mul(total, elapsed), duration)
    if vested > total:
        raise ArithmeticOverflowError(
            "vested amount exceeds total",
            details={"vested": vested, "total": total},
        )
    return vested


def compound_interest(principal: int, rate_bps: int, periods: int, decay_bps: int) -> int:
    """
    Compound principal over discrete periods with a decaying rate.

    Each period adds floor(result * rate / 10000) to the result, then decays
    the rate to floor(rate * (10000 - decay_bps) / 10000).

    Raises:
        InvalidInputError: If rate_bps or decay_bps exceed 10000
        ArithmeticOverflowError: If any period overflows
    """
    for name, value in (
        ("principal", principal),
        ("rate_bps", rate_bps),
        ("periods", periods),
        ("decay_bps", decay_bps),
    ):
        require_uint256(value, name)
    if rate_bps > BASIS_POINTS:
        raise InvalidInputError(f"rate_bps must be at most {BASIS_POINTS}, got {rate_bps}")
    if decay_bps > BASIS_POINTS:
        raise InvalidInputError(f"decay_bps must be at most {BASIS_POINTS}, got {decay_bps}")

    if principal == 0 or rate_bps == 0 or periods == 0:
        return principal

    result = principal
    rate = rate_bps
    retain = BASIS_POINTS - decay_bps
    for _ in range(periods):
        interest = checked_mul(result, rate) // BASIS_POINTS
        result = checked_add(result, interest)
        next_rate = checked_mul(rate, retain) // BASIS_POINTS
        if next_rate == 0 or (interest == 0 and next_rate == rate):
            # Fixed point: remaining periods add nothing
            break
        rate = next_rate
    return result


def weighted_average(amounts: Sequence[int], weights: Sequence[int]) -> int:
    """
    Floor of sum(amount_i * weight_i) / sum(weight_i).

    Raises:
        InvalidInputError: If the sequences are empty or differ in length
        ArithmeticOverflowError: If a product or a running sum overflows
        DivisionByZeroError: If the weights sum to zero
    """
    if len(amounts) == 0 or len(amounts) != len(weights):
        raise InvalidInputError(
            "amounts and weights must be non-empty and of equal length",
            details={"amounts": len(amounts), "weights": len(weights)},
        )

    weighted_sum = 0
    total_weight = 0
    for amount, weight in zip(amounts, weights):
        require_uint256(amount, "amount")
        require_uint256(weight, "weight")
        weighted_sum = checked_add(weighted_sum, checked_mul(amount, weight))
        total_weight = checked_add(total_weight, weight)

    if total_weight == 0:
        raise DivisionByZeroError("total weight is zero")
    return weighted_sum // total_weight


def convert_decimals(amount: int, from_decimals: int, to_decimals: int) -> int:
    """
    Rescale a fixed-point amount between decimal precisions.

    Increasing precision multiplies (checked); decreasing precision floor
    divides and drops the lost digits.

    Raises:
        InvalidInputError: If either precision exceeds 77
        ArithmeticOverflowError: If scaling up overflows
    """
    require_uint256(amount, "amount")
    require_uint256(from_decimals, "from_decimals")
    require_uint256(to_decimals, "to_decimals")
    if from_decimals > MAX_DECIMALS or to_decimals > MAX_DECIMALS:
        raise InvalidInputError(f"decimals must be at most {MAX_DECIMALS}")

    if from_decimals == to_decimals:
        return amount
    if to_decimals > from_decimals:
        return checked_mul(amount, 10 ** (to_decimals - from_decimals))
    return amount // 10 ** (from_decimals - to_decimals)
