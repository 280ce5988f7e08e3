"""State transition functions for `fee_router`.

Each function returns a new frozen value via `dataclasses.replace()`; nothing is
mutated in place. All arithmetic goes through the checked helpers in `math.py`.

Per-day accounting (holds after `apply_close_day`):

    creator_payout = claimed_quote - paid
    paid + cap_excess + carry_out == investor_fee_quote + carry_owed

Carry-over dust is owed to investors and is paid out of a later day's claim:
page 0 folds in as much of it as fits in the creator's part of the claim
(``claimed_quote - investor_fee_quote``), so the day's budget never exceeds
what was claimed. The rest stays in `carry_over_dust` for the next day.
"""

from __future__ import annotations

from dataclasses import replace

from .eligibility import eligible_share_bps, investor_fee_quote
from .math import checked_add, checked_sub
from .payout import PagePayouts
from .types import DistributionState, InvestorRecord, Payout, VaultPolicy


def day_investor_fee_quote(state: DistributionState) -> int:
    """Investor share carved out of today's claim (budget minus folded-in carry)."""
    return checked_sub(state.day_investor_budget, state.day_carry_in)


def cap_remaining(state: DistributionState, policy: VaultPolicy) -> int | None:
    if policy.daily_cap is None:
        return None
    return checked_sub(policy.daily_cap, state.daily_distributed_to_investors)


def apply_open_day(
    state: DistributionState,
    policy: VaultPolicy,
    *,
    now_ts: int,
    claimed_quote: int,
    locked_total: int,
    page_count: int,
) -> DistributionState:
    eligible_bps = eligible_share_bps(
        locked_total, policy.total_investor_allocation, policy.investor_fee_share_bps,
    )
    fee_quote = investor_fee_quote(claimed_quote, eligible_bps)
    carry_owed = state.carry_over_dust
    carry_in = min(carry_owed, checked_sub(claimed_quote, fee_quote))
    return replace(
        state,
        current_day=checked_add(state.current_day, 1),
        last_distribution_ts=now_ts,
        current_page=0,
        day_closed=False,
        daily_distributed_to_investors=0,
        carry_over_dust=checked_sub(carry_owed, carry_in),
        day_claimed_quote=claimed_quote,
        day_carry_in=carry_in,
        day_investor_budget=checked_add(fee_quote, carry_in),
        day_eligible_bps=eligible_bps,
        day_locked_total=locked_total,
        day_page_count=page_count,
        day_allocated=0,
        day_locked_processed=0,
        day_cap_excess=0,
        day_creator_payout=0,
    )


def apply_page(state: DistributionState, page_payouts: PagePayouts) -> DistributionState:
    return replace(
        state,
        current_page=checked_add(state.current_page, 1),
        daily_distributed_to_investors=checked_add(state.daily_distributed_to_investors, page_payouts.paid),
        carry_over_dust=checked_add(state.carry_over_dust, page_payouts.dust),
        day_allocated=checked_add(state.day_allocated, page_payouts.allocated),
        day_locked_processed=checked_add(state.day_locked_processed, page_payouts.locked_sum),
        day_cap_excess=checked_add(state.day_cap_excess, page_payouts.cap_excess),
    )


def apply_close_day(state: DistributionState) -> DistributionState:
    # Whatever the pages did not allocate (floor rounding, plus the share of
    # unprocessed investors on a forfeited day) stays with investors as dust.
    unallocated = checked_sub(state.day_investor_budget, state.day_allocated)
    return replace(
        state,
        day_closed=True,
        carry_over_dust=checked_add(state.carry_over_dust, unallocated),
        day_creator_payout=checked_sub(state.day_claimed_quote, state.daily_distributed_to_investors),
    )


def apply_payout_to_record(record: InvestorRecord, payout: Payout, *, now_ts: int) -> InvestorRecord:
    if payout.investor != record.investor:
        raise ValueError(f"payout for {payout.investor!r} applied to record {record.investor!r}")
    if payout.amount == 0:
        return record
    return replace(
        record,
        total_fees_received=checked_add(record.total_fees_received, payout.amount),
        last_distribution_ts=now_ts,
    )
