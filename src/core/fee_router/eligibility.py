"""Investor eligibility for one distribution day.

    f_locked_bps   = min(10000, floor(locked_total * 10000 / Y0))
    eligible_bps   = min(investor_fee_share_bps, f_locked_bps)
    investor_quote = floor(claimed_quote * eligible_bps / 10000)

`locked_total > Y0` can happen through rounding or late registration; the clamp
keeps the share at or below 100%.
"""

from __future__ import annotations

from .errors import InvalidAllocationError, InvalidFeeShareBpsError
from .math import BPS_SCALE, apply_bps, clamp_bps, mul_div_floor, require_u64


def locked_fraction_bps(locked_total: int, total_allocation: int) -> int:
    require_u64(locked_total, name="locked_total")
    require_u64(total_allocation, name="total_allocation")
    if total_allocation == 0:
        raise InvalidAllocationError("total investor allocation (Y0) is zero")
    return clamp_bps(mul_div_floor(locked_total, BPS_SCALE, total_allocation))


def eligible_share_bps(locked_total: int, total_allocation: int, investor_fee_share_bps: int) -> int:
    if not (0 <= investor_fee_share_bps <= BPS_SCALE):
        raise InvalidFeeShareBpsError(f"must be in [0, {BPS_SCALE}]: {investor_fee_share_bps}")
    return min(investor_fee_share_bps, locked_fraction_bps(locked_total, total_allocation))


def investor_fee_quote(claimed_quote: int, eligible_bps: int) -> int:
    return apply_bps(claimed_quote, eligible_bps)
