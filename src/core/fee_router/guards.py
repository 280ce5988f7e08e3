"""Guard functions for `fee_router`.

Each guard inspects the PRE-state and the call and returns ``None`` when the
call may proceed, or a ``(ErrorCode, detail)`` rejection.

Gate order when no day is open (fresh vault or closed day):
window first (regardless of page), then "page 0 opens the day".
When a day is open: the page must equal the cursor exactly.
"""

from __future__ import annotations

from .errors import ErrorCode
from .math import I64_MAX, I64_MIN, U32_MAX, seconds_until_window, window_elapsed
from .types import CyclePhase, DistributionState, FinalPageMode, PageCall, PageEntry, PageInputs, VaultPolicy

Rejection = tuple[ErrorCode, str]


def is_day_open(state: DistributionState) -> bool:
    return state.current_day > 0 and not state.day_closed


def phase_of(state: DistributionState, now_ts: int | None = None) -> CyclePhase:
    """Phase of the cycle as observed at *now_ts* (closed days fall back to IDLE once the window opens)."""
    if is_day_open(state):
        return CyclePhase.DAY_OPEN if state.current_page <= 1 else CyclePhase.PAGES_IN_FLIGHT
    if state.day_closed and (now_ts is None or not window_elapsed(now_ts, state.last_distribution_ts)):
        return CyclePhase.DAY_CLOSED
    return CyclePhase.IDLE


def normalized_page_count(page_count: int) -> int:
    """An empty investor set is still processed as one (empty) page."""
    return page_count if page_count > 0 else 1


def guard_call_domain(call: PageCall) -> Rejection | None:
    if not isinstance(call.vault_id, str) or not call.vault_id:
        return ErrorCode.UNKNOWN_VAULT, "vault_id must be a non-empty string"
    if not isinstance(call.page, int) or isinstance(call.page, bool) or not (0 <= call.page <= U32_MAX):
        return ErrorCode.INVALID_PAGE_NUMBER, f"page out of u32 range: {call.page!r}"
    if not isinstance(call.is_final_page, bool):
        return ErrorCode.FINAL_PAGE_MISMATCH, "is_final_page must be a bool"
    if not isinstance(call.now_ts, int) or isinstance(call.now_ts, bool) or not (I64_MIN <= call.now_ts <= I64_MAX):
        return ErrorCode.MATH_OVERFLOW, "now_ts out of i64 range"
    return None


def guard_gate(state: DistributionState, call: PageCall) -> Rejection | None:
    if not is_day_open(state):
        if not window_elapsed(call.now_ts, state.last_distribution_ts):
            if state.day_closed:
                return ErrorCode.DISTRIBUTION_ALREADY_COMPLETED, (
                    f"day {state.current_day} closed; next window opens in "
                    f"{seconds_until_window(call.now_ts, state.last_distribution_ts)}s"
                )
            return ErrorCode.DISTRIBUTION_WINDOW_NOT_REACHED, (
                f"next window opens in {seconds_until_window(call.now_ts, state.last_distribution_ts)}s"
            )
        if call.page != 0:
            return ErrorCode.DAY_NOT_STARTED, f"page {call.page} requested before page 0"
        return None
    if call.page != state.current_page:
        return ErrorCode.INVALID_PAGE_NUMBER, f"expected page {state.current_page}, got {call.page}"
    return None


def guard_final_page(policy: VaultPolicy, call: PageCall, page_count: int) -> Rejection | None:
    """`is_final_page` must line up with the last page of the day's investor set.

    A non-final call on the last page is always rejected (there would be no page
    left to close the day on). An early final page is rejected in STRICT mode.
    """
    last_page = normalized_page_count(page_count) - 1
    if call.page > last_page:
        return ErrorCode.INVALID_PAGE_NUMBER, f"page {call.page} beyond last page {last_page}"
    if call.page == last_page and not call.is_final_page:
        return ErrorCode.FINAL_PAGE_MISMATCH, f"page {call.page} is the last page and must be final"
    if call.is_final_page and call.page < last_page and policy.final_page_mode is FinalPageMode.STRICT:
        return ErrorCode.FINAL_PAGE_MISMATCH, (
            f"final page requested at {call.page} but {last_page - call.page} page(s) remain"
        )
    return None


def guard_open_inputs(inputs: PageInputs) -> Rejection | None:
    if inputs.claim is None:
        return ErrorCode.POSITION_NOT_INITIALIZED, "no claim supplied for day open"
    if inputs.locked_total is None or inputs.page_count is None:
        return ErrorCode.INVALID_INVESTOR_DATA, "locked_total/page_count required for day open"
    return None


def guard_page_entries(entries: tuple[PageEntry, ...]) -> Rejection | None:
    seen: set[str] = set()
    for e in entries:
        if e.investor in seen:
            return ErrorCode.INVALID_INVESTOR_DATA, f"duplicate investor {e.investor!r} in page"
        seen.add(e.investor)
        if not isinstance(e.locked_amount, int) or isinstance(e.locked_amount, bool) or e.locked_amount < 0:
            return ErrorCode.INVALID_INVESTOR_DATA, f"invalid locked amount for {e.investor!r}"
    return None
