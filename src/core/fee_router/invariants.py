"""Invariant checkers for `fee_router`.

Each function returns True when the invariant holds for a (state, policy)
pair, and `check_all()` returns the list of violated invariant IDs (empty = all
pass). The engine runs `check_all()` on every post-state before accepting it.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Callable

from .math import BPS_SCALE, I64_MAX, I64_MIN, U32_MAX, U64_MAX
from .types import DistributionState, VaultPolicy

_I64_FIELDS = frozenset({"last_distribution_ts"})
_U32_FIELDS = frozenset({"current_page", "day_page_count"})


def inv_field_domains(s: DistributionState, p: VaultPolicy) -> bool:
    for f in fields(s):
        v = getattr(s, f.name)
        if isinstance(v, bool):
            continue
        if f.name in _I64_FIELDS:
            if not (I64_MIN <= v <= I64_MAX):
                return False
        elif f.name in _U32_FIELDS:
            if not (0 <= v <= U32_MAX):
                return False
        elif not (0 <= v <= U64_MAX):
            return False
    return True


def inv_fresh_vault_zeroed(s: DistributionState, p: VaultPolicy) -> bool:
    if s.current_day > 0:
        return True
    return (
        not s.day_closed
        and s.current_page == 0
        and s.daily_distributed_to_investors == 0
        and s.day_investor_budget == 0
        and s.day_allocated == 0
    )


def inv_page_cursor_bounded(s: DistributionState, p: VaultPolicy) -> bool:
    if s.current_day == 0:
        return True
    return s.current_page <= max(s.day_page_count, 1)


def inv_eligible_bps_bounded(s: DistributionState, p: VaultPolicy) -> bool:
    return s.day_eligible_bps <= min(BPS_SCALE, p.investor_fee_share_bps)


def inv_budget_decomposition(s: DistributionState, p: VaultPolicy) -> bool:
    if s.day_investor_budget < s.day_carry_in:
        return False
    return s.day_investor_budget <= s.day_claimed_quote


def inv_allocated_within_budget(s: DistributionState, p: VaultPolicy) -> bool:
    return s.day_allocated <= s.day_investor_budget


def inv_paid_within_allocated(s: DistributionState, p: VaultPolicy) -> bool:
    return s.daily_distributed_to_investors + s.day_cap_excess <= s.day_allocated


def inv_daily_cap_respected(s: DistributionState, p: VaultPolicy) -> bool:
    if p.daily_cap is None:
        return True
    return s.daily_distributed_to_investors <= p.daily_cap


def inv_locked_processed_bounded(s: DistributionState, p: VaultPolicy) -> bool:
    return s.day_locked_processed <= s.day_locked_total


def inv_closed_day_conserves(s: DistributionState, p: VaultPolicy) -> bool:
    if not s.day_closed:
        return True
    return s.daily_distributed_to_investors + s.day_creator_payout <= s.day_claimed_quote


def inv_creator_takes_remainder(s: DistributionState, p: VaultPolicy) -> bool:
    if not s.day_closed:
        return True
    return s.day_creator_payout == s.day_claimed_quote - s.daily_distributed_to_investors


def inv_open_day_has_no_creator_payout(s: DistributionState, p: VaultPolicy) -> bool:
    if s.day_closed:
        return True
    return s.day_creator_payout == 0


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[DistributionState, VaultPolicy], bool]] = {
    "inv_field_domains": inv_field_domains,
    "inv_fresh_vault_zeroed": inv_fresh_vault_zeroed,
    "inv_page_cursor_bounded": inv_page_cursor_bounded,
    "inv_eligible_bps_bounded": inv_eligible_bps_bounded,
    "inv_budget_decomposition": inv_budget_decomposition,
    "inv_allocated_within_budget": inv_allocated_within_budget,
    "inv_paid_within_allocated": inv_paid_within_allocated,
    "inv_daily_cap_respected": inv_daily_cap_respected,
    "inv_locked_processed_bounded": inv_locked_processed_bounded,
    "inv_closed_day_conserves": inv_closed_day_conserves,
    "inv_creator_takes_remainder": inv_creator_takes_remainder,
    "inv_open_day_has_no_creator_payout": inv_open_day_has_no_creator_payout,
}


def check_all(state: DistributionState, policy: VaultPolicy) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state, policy)
    ]
