"""Distribution-cycle engine for `fee_router`.

``step(state, policy, call, inputs)`` is the single pure entry point. It:

1. Validates the call's domains.
2. Gates on the cursor: 24h window, page 0 opens the day, page == cursor.
3. On day open: validates the claim (quote-only), computes eligibility and the
   day's investor budget.
4. Computes and applies the page's payouts; closes the day on the final page.
5. Checks all invariants on the post-state.
6. Returns a ``CycleResult`` (accepted with a report, or rejected with a code).

A rejected step never returns a state: the caller keeps its PRE-state, which is
what makes every invocation all-or-nothing.

``precheck()`` runs the gating part alone so the shell can refuse a call before
touching any collaborator (in particular before claiming fees).
"""

from __future__ import annotations

from .effects import build_report
from .errors import ErrorCode, FeeRouterError, error_for
from .guards import (
    Rejection,
    guard_call_domain,
    guard_final_page,
    guard_gate,
    guard_open_inputs,
    guard_page_entries,
    is_day_open,
    normalized_page_count,
)
from .invariants import check_all
from .math import checked_sub
from .payout import clamp_to_locked_remaining, compute_page_payouts
from .quote_only import validate_quote_only
from .types import CycleResult, DistributionState, PageCall, PageInputs, VaultPolicy
from .updates import apply_close_day, apply_open_day, apply_page, cap_remaining


def opens_day(state: DistributionState, call: PageCall) -> bool:
    """True when an accepted *call* would open a new day."""
    return not is_day_open(state) and call.page == 0


def precheck(
    state: DistributionState,
    policy: VaultPolicy,
    call: PageCall,
    *,
    page_count: int,
) -> Rejection | None:
    """Gating checks only. ``page_count`` is the investor page count the day would use."""
    for rej in (guard_call_domain(call), guard_gate(state, call)):
        if rej is not None:
            return rej
    day_pages = page_count if opens_day(state, call) else state.day_page_count
    return guard_final_page(policy, call, day_pages)


def _reject(rej: Rejection) -> CycleResult:
    code, detail = rej
    return CycleResult(accepted=False, rejection=code, detail=detail)


def step(
    state: DistributionState,
    policy: VaultPolicy,
    call: PageCall,
    inputs: PageInputs,
) -> CycleResult:
    """Execute one page call against the given state.

    Returns ``CycleResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` code.
    """
    for rej in (guard_call_domain(call), guard_gate(state, call)):
        if rej is not None:
            return _reject(rej)

    opening = opens_day(state, call)
    if opening:
        rej = guard_open_inputs(inputs)
        if rej is not None:
            return _reject(rej)
        page_count = normalized_page_count(inputs.page_count or 0)
    else:
        page_count = state.day_page_count

    rej = guard_final_page(policy, call, page_count)
    if rej is not None:
        return _reject(rej)

    try:
        working = state
        if opening:
            if inputs.claim is None or inputs.locked_total is None:
                return _reject((ErrorCode.POSITION_NOT_INITIALIZED, "day open without claim inputs"))
            claimed_quote = validate_quote_only(inputs.claim, policy.quote_mint)
            working = apply_open_day(
                working, policy,
                now_ts=call.now_ts,
                claimed_quote=claimed_quote,
                locked_total=inputs.locked_total,
                page_count=page_count,
            )

        rej = guard_page_entries(inputs.entries)
        if rej is not None:
            return _reject(rej)

        entries = clamp_to_locked_remaining(
            inputs.entries, checked_sub(working.day_locked_total, working.day_locked_processed),
        )
        page_payouts = compute_page_payouts(
            entries,
            day_budget=working.day_investor_budget,
            locked_total=working.day_locked_total,
            min_payout=policy.min_payout,
            cap_remaining=cap_remaining(working, policy),
        )
        working = apply_page(working, page_payouts)
        if call.is_final_page:
            working = apply_close_day(working)
    except FeeRouterError as exc:
        return CycleResult(accepted=False, rejection=exc.code, detail=exc.detail)

    violations = check_all(working, policy)
    if violations:
        return CycleResult(
            accepted=False,
            rejection=ErrorCode.INVARIANT_VIOLATION,
            detail=",".join(violations),
        )

    return CycleResult(
        accepted=True,
        state=working,
        report=build_report(working, call, page_payouts),
    )


def step_or_raise(
    state: DistributionState,
    policy: VaultPolicy,
    call: PageCall,
    inputs: PageInputs,
) -> CycleResult:
    """Like ``step()`` but raises the matching `FeeRouterError` on rejection."""
    result = step(state, policy, call, inputs)
    if result.accepted:
        return result
    code = result.rejection if result.rejection is not None else ErrorCode.INVARIANT_VIOLATION
    raise error_for(code, result.detail)
