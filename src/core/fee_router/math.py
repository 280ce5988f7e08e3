"""Checked integer arithmetic for the `fee_router` kernel.

Every function is stateless and operates on plain Python ints.

Python ints never overflow, so range checks are explicit: amounts are u64,
intermediate products are widened to u128, and anything outside those domains
raises `MathOverflowError`. Money paths never saturate or wrap; the
saturating helpers are for non-money values only.

Division is always floor division (`//`) on non-negative operands.
"""

from __future__ import annotations

from .errors import MathOverflowError

# Domain constants
U32_MAX: int = 0xFFFF_FFFF
U64_MAX: int = 0xFFFF_FFFF_FFFF_FFFF
U128_MAX: int = (1 << 128) - 1
I64_MIN: int = -(1 << 63)
I64_MAX: int = (1 << 63) - 1

BPS_SCALE: int = 10_000
SECONDS_PER_DAY: int = 86_400


# -- Domain checks -----------------------------------------------------------

def require_u64(value: int, *, name: str = "value") -> int:
    """Return *value* if it is a u64, else raise `MathOverflowError`."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > U64_MAX:
        raise MathOverflowError(f"{name} out of u64 range: {value}")
    return value


def require_u128(value: int, *, name: str = "value") -> int:
    if value < 0 or value > U128_MAX:
        raise MathOverflowError(f"{name} out of u128 range")
    return value


# -- Checked ops (u64) --------------------------------------------------------

def checked_add(a: int, b: int) -> int:
    """``a + b`` as u64."""
    return require_u64(a + b, name="checked_add")


def checked_sub(a: int, b: int) -> int:
    """``a - b`` as u64 (underflow raises)."""
    return require_u64(a - b, name="checked_sub")


def checked_mul(a: int, b: int) -> int:
    """``a * b`` as u64."""
    return require_u64(a * b, name="checked_mul")


def checked_sum(values) -> int:
    total = 0
    for v in values:
        total = checked_add(total, v)
    return total


# -- Saturating ops -----------------------------------------------------------
#
# Only for values that never reach a payout (timestamps in messages, counters).

def saturating_add(a: int, b: int, *, hi: int = U64_MAX) -> int:
    """``min(a + b, hi)``."""
    total = a + b
    return hi if total > hi else total


def saturating_sub(a: int, b: int, *, lo: int = 0) -> int:
    """``max(a - b, lo)``."""
    diff = a - b
    return lo if diff < lo else diff


def mul_div_floor(a: int, b: int, denom: int) -> int:
    """``floor(a * b / denom)`` with the product widened to u128.

    Raises `MathOverflowError` when `denom` is zero, when the widened product
    leaves u128, or when the quotient does not fit in u64.
    """
    require_u64(a, name="mul_div_floor.a")
    require_u64(b, name="mul_div_floor.b")
    if denom <= 0:
        raise MathOverflowError("mul_div_floor: division by zero")
    product = require_u128(a * b, name="mul_div_floor.product")
    return require_u64(product // denom, name="mul_div_floor.result")


# -- Basis-point helpers ------------------------------------------------------

def clamp_bps(bps: int) -> int:
    """Clamp to ``[0, BPS_SCALE]``."""
    if bps < 0:
        return 0
    return bps if bps < BPS_SCALE else BPS_SCALE


def apply_bps(amount: int, bps: int) -> int:
    """``floor(amount * bps / 10000)``."""
    return mul_div_floor(amount, bps, BPS_SCALE)


def window_elapsed(now_ts: int, last_ts: int) -> bool:
    """True when a full distribution window has passed since *last_ts*."""
    return now_ts >= last_ts + SECONDS_PER_DAY


def seconds_until_window(now_ts: int, last_ts: int) -> int:
    """Seconds left before the next window opens (0 once it has)."""
    return saturating_sub(saturating_add(last_ts, SECONDS_PER_DAY, hi=I64_MAX), now_ts)
