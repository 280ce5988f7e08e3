"""Report construction for accepted page calls.

Reports are computed from the POST-state plus the page's payouts, so what a
caller observes is exactly what was committed.
"""

from __future__ import annotations

from .payout import PagePayouts
from .types import CyclePhase, DistributionState, Event, PageCall, PageReport
from .updates import day_investor_fee_quote


def _phase_after(state: DistributionState, call: PageCall) -> CyclePhase:
    if state.day_closed:
        return CyclePhase.DAY_CLOSED
    return CyclePhase.DAY_OPEN if call.page == 0 else CyclePhase.PAGES_IN_FLIGHT


def _events(call: PageCall, page_payouts: PagePayouts) -> tuple[Event, ...]:
    events: list[Event] = []
    if call.page == 0:
        events.append(Event.QUOTE_FEES_CLAIMED)
    events.append(Event.INVESTOR_PAYOUT_PAGE)
    if page_payouts.dust > 0:
        events.append(Event.DUST_CARRIED)
    if page_payouts.cap_hit:
        events.append(Event.DAILY_CAP_REACHED)
    if call.is_final_page:
        events.append(Event.CREATOR_PAYOUT_DAY_CLOSED)
    return tuple(events)


def build_report(state: DistributionState, call: PageCall, page_payouts: PagePayouts) -> PageReport:
    opened = call.page == 0
    return PageReport(
        vault_id=call.vault_id,
        day=state.current_day,
        page=call.page,
        is_final_page=call.is_final_page,
        phase=_phase_after(state, call),
        payouts=page_payouts.payouts,
        page_paid=page_payouts.paid,
        page_dust=page_payouts.dust,
        page_cap_excess=page_payouts.cap_excess,
        daily_distributed_after=state.daily_distributed_to_investors,
        carry_over_dust_after=state.carry_over_dust,
        claimed_quote=state.day_claimed_quote if opened else 0,
        investor_fee_quote=day_investor_fee_quote(state) if opened else 0,
        creator_payout=state.day_creator_payout if state.day_closed else 0,
        events=_events(call, page_payouts),
    )
