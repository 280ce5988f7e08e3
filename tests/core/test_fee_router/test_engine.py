"""Tests for src/core/fee_router/engine.py: full page calls through step()."""

from dataclasses import replace

import pytest

from src.core.fee_router import (
    BaseFeesNotAllowedError,
    ClaimResult,
    CyclePhase,
    DayNotStartedError,
    DistributionAlreadyCompletedError,
    DistributionWindowNotReachedError,
    ErrorCode,
    Event,
    FinalPageMode,
    InvalidPageNumberError,
    PageCall,
    PageEntry,
    PageInputs,
    VaultPolicy,
    initial_state,
    precheck,
    step,
    step_or_raise,
)

DAY = 86_400
POLICY = VaultPolicy(quote_mint="USDC", investor_fee_share_bps=5000, total_investor_allocation=10_000)
ALICE = PageEntry("alice", 4000)
BOB = PageEntry("bob", 2000)


def _claim(quote=1000, base=0):
    return ClaimResult(quote_mint="USDC", quote_amount=quote, base_mint="SOL", base_amount=base)


def _call(page, final, now=DAY):
    return PageCall(vault_id="v1", page=page, is_final_page=final, now_ts=now)


def _open_inputs(entries=(ALICE,), quote=1000, base=0, locked_total=6000, page_count=2):
    return PageInputs(entries=entries, claim=_claim(quote, base), locked_total=locked_total, page_count=page_count)


def _run_day(state, policy=POLICY, now=DAY, quote=1000):
    r0 = step(state, policy, _call(0, False, now), _open_inputs(quote=quote))
    assert r0.accepted, r0.detail
    r1 = step(r0.state, policy, _call(1, True, now + 60), PageInputs(entries=(BOB,)))
    assert r1.accepted, r1.detail
    return r0, r1


class TestOpenDay:
    def test_page_zero_opens_and_pays(self):
        r = step(initial_state(), POLICY, _call(0, False), _open_inputs())
        assert r.accepted
        s = r.state
        assert s.current_day == 1
        assert s.current_page == 1
        assert s.last_distribution_ts == DAY
        assert s.day_eligible_bps == 5000
        assert s.day_investor_budget == 500
        assert s.daily_distributed_to_investors == 333
        assert r.report.claimed_quote == 1000
        assert r.report.investor_fee_quote == 500
        assert r.report.phase is CyclePhase.DAY_OPEN
        assert Event.QUOTE_FEES_CLAIMED in r.report.events

    def test_base_fees_reject_with_no_state(self):
        r = step(initial_state(), POLICY, _call(0, False), _open_inputs(base=5))
        assert not r.accepted
        assert r.state is None
        assert r.rejection is ErrorCode.BASE_FEES_NOT_ALLOWED
        with pytest.raises(BaseFeesNotAllowedError):
            step_or_raise(initial_state(), POLICY, _call(0, False), _open_inputs(base=5))

    def test_missing_claim(self):
        r = step(initial_state(), POLICY, _call(0, False), PageInputs(entries=(ALICE,), locked_total=6000, page_count=2))
        assert r.rejection is ErrorCode.POSITION_NOT_INITIALIZED

    def test_zero_allocation(self):
        policy = replace(POLICY, total_investor_allocation=0)
        r = step(initial_state(), policy, _call(0, False), _open_inputs())
        assert r.rejection is ErrorCode.INVALID_ALLOCATION

    def test_zero_claim(self):
        r = step(initial_state(), POLICY, _call(0, False), _open_inputs(quote=0))
        assert r.rejection is ErrorCode.NO_FEES_TO_CLAIM

    def test_window_rejected_before_inputs_are_read(self):
        r = step(initial_state(), POLICY, _call(0, False, now=DAY - 1), PageInputs())
        assert r.rejection is ErrorCode.DISTRIBUTION_WINDOW_NOT_REACHED


class TestFullDay:
    def test_reference_day(self):
        r0, r1 = _run_day(initial_state())
        s = r1.state
        assert [p.amount for p in r0.report.payouts] == [333]
        assert [p.amount for p in r1.report.payouts] == [166]
        assert s.day_closed
        assert s.daily_distributed_to_investors == 499
        assert s.carry_over_dust == 1
        assert s.day_creator_payout == 501
        assert r1.report.creator_payout == 501
        assert r1.report.phase is CyclePhase.DAY_CLOSED
        assert Event.CREATOR_PAYOUT_DAY_CLOSED in r1.report.events
        assert s.daily_distributed_to_investors + s.day_creator_payout == 1000

    def test_daily_cap(self):
        policy = replace(POLICY, daily_cap=400)
        r = step(
            initial_state(), policy, _call(0, True),
            PageInputs(entries=(ALICE, BOB), claim=_claim(), locked_total=6000, page_count=1),
        )
        assert r.accepted
        assert [p.amount for p in r.report.payouts] == [267, 133]
        assert r.report.page_cap_excess == 99
        assert r.state.day_creator_payout == 600
        assert r.state.carry_over_dust == 1
        assert Event.DAILY_CAP_REACHED in r.report.events

    def test_cap_applies_across_pages(self):
        policy = replace(POLICY, daily_cap=350)
        r0 = step(initial_state(), policy, _call(0, False), _open_inputs())
        assert r0.state.daily_distributed_to_investors == 333
        r1 = step(r0.state, policy, _call(1, True, DAY + 1), PageInputs(entries=(BOB,)))
        assert [p.amount for p in r1.report.payouts] == [17]
        assert r1.state.daily_distributed_to_investors == 350
        assert r1.state.day_cap_excess == 149
        assert r1.state.day_creator_payout == 650

    def test_carry_folds_into_next_day(self):
        _, r1 = _run_day(initial_state())
        r2 = step(r1.state, POLICY, _call(0, False, 2 * DAY), _open_inputs())
        assert r2.accepted
        assert r2.state.day_carry_in == 1
        assert r2.state.day_investor_budget == 501
        assert r2.state.carry_over_dust == 0
        assert r2.state.daily_distributed_to_investors == 334

    def test_paid_carry_comes_out_of_creator_remainder(self):
        policy = replace(POLICY, min_payout=200)
        _, r1 = _run_day(initial_state(), policy=policy)
        assert r1.state.carry_over_dust == 167
        assert r1.state.day_creator_payout == 667
        _, r3 = _run_day(r1.state, policy=policy, now=2 * DAY)
        s = r3.state
        assert s.day_carry_in == 167
        assert s.daily_distributed_to_investors == 666
        assert s.day_creator_payout == 334
        assert s.daily_distributed_to_investors + s.day_creator_payout <= s.day_claimed_quote

    def test_carry_beyond_creator_share_stays_owed(self):
        _, r1 = _run_day(initial_state())
        owed = replace(r1.state, carry_over_dust=600)
        r2 = step(owed, POLICY, _call(0, False, 2 * DAY), _open_inputs())
        assert r2.accepted, r2.detail
        assert r2.state.day_carry_in == 500
        assert r2.state.day_investor_budget == 1000
        assert r2.state.carry_over_dust == 100
        r3 = step(r2.state, POLICY, _call(1, True, 2 * DAY + 60), PageInputs(entries=(BOB,)))
        assert r3.accepted, r3.detail
        assert r3.state.daily_distributed_to_investors == 999
        assert r3.state.day_creator_payout == 1
        assert r3.state.carry_over_dust == 101

    def test_locked_top_up_after_page_zero_is_clamped(self):
        r0 = step(initial_state(), POLICY, _call(0, False), _open_inputs())
        topped_up = PageInputs(entries=(PageEntry("bob", 2500),))
        r1 = step(r0.state, POLICY, _call(1, True, DAY + 60), topped_up)
        assert r1.accepted, r1.detail
        assert [(p.locked_amount, p.amount) for p in r1.report.payouts] == [(2000, 166)]
        assert r1.state.day_closed
        assert r1.state.day_locked_processed == 6000
        assert r1.state.day_creator_payout == 501

    def test_empty_investor_set(self):
        r = step(
            initial_state(), POLICY, _call(0, True),
            PageInputs(entries=(), claim=_claim(), locked_total=0, page_count=0),
        )
        assert r.accepted
        assert r.state.day_eligible_bps == 0
        assert r.state.day_creator_payout == 1000
        assert r.state.carry_over_dust == 0


class TestReplayAndWindow:
    def test_replay_page_zero(self):
        r0 = step(initial_state(), POLICY, _call(0, False), _open_inputs())
        with pytest.raises(InvalidPageNumberError):
            step_or_raise(r0.state, POLICY, _call(0, False, DAY + 5), _open_inputs())

    def test_same_day_after_close(self):
        _, r1 = _run_day(initial_state())
        with pytest.raises(DistributionAlreadyCompletedError) as exc:
            step_or_raise(r1.state, POLICY, _call(0, False, DAY + 3600), _open_inputs())
        assert isinstance(exc.value, DistributionWindowNotReachedError)

    def test_non_zero_page_after_window(self):
        _, r1 = _run_day(initial_state())
        with pytest.raises(DayNotStartedError):
            step_or_raise(r1.state, POLICY, _call(1, False, 2 * DAY), PageInputs(entries=(BOB,)))


class TestFinalPageModes:
    def test_strict_rejects_early_final(self):
        r = step(initial_state(), POLICY, _call(0, True), _open_inputs())
        assert r.rejection is ErrorCode.FINAL_PAGE_MISMATCH

    def test_forfeit_rolls_remaining_share_into_carry(self):
        policy = replace(POLICY, final_page_mode=FinalPageMode.FORFEIT)
        r = step(initial_state(), policy, _call(0, True), _open_inputs())
        assert r.accepted
        s = r.state
        assert s.day_closed
        assert s.daily_distributed_to_investors == 333
        assert s.carry_over_dust == 167
        assert s.day_creator_payout == 667


class TestPrecheck:
    def test_matches_step_gate(self):
        assert precheck(initial_state(), POLICY, _call(0, False), page_count=2) is None
        rej = precheck(initial_state(), POLICY, _call(1, False), page_count=2)
        assert rej is not None and rej[0] is ErrorCode.DAY_NOT_STARTED
        rej = precheck(initial_state(), POLICY, _call(0, True), page_count=2)
        assert rej is not None and rej[0] is ErrorCode.FINAL_PAGE_MISMATCH
