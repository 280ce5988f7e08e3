"""Tests for src/core/fee_router/payout.py: pro-rata page payouts."""

import pytest

from src.core.fee_router import InvalidInvestorDataError, PageEntry, PayoutStatus
from src.core.fee_router.payout import clamp_to_locked_remaining, compute_page_payouts, raw_payout, scale_to_cap


def _entries(*pairs):
    return tuple(PageEntry(investor=i, locked_amount=a) for i, a in pairs)


class TestRawPayout:
    def test_pro_rata(self):
        assert raw_payout(500, 4000, 6000) == 333
        assert raw_payout(500, 2000, 6000) == 166

    def test_nothing_locked(self):
        assert raw_payout(500, 0, 0) == 0


class TestClampToLockedRemaining:
    def test_within_remaining_unchanged(self):
        entries = _entries(("alice", 4000), ("bob", 2000))
        assert clamp_to_locked_remaining(entries, 6000) == entries

    def test_top_up_clamped_in_page_order(self):
        clamped = clamp_to_locked_remaining(_entries(("alice", 3000), ("bob", 2500), ("carol", 10)), 5000)
        assert [e.locked_amount for e in clamped] == [3000, 2000, 0]
        assert [e.investor for e in clamped] == ["alice", "bob", "carol"]


class TestScaleToCap:
    def test_exact_cap(self):
        assert scale_to_cap([333, 166], 400) == [267, 133]

    def test_tie_goes_to_first(self):
        assert scale_to_cap([1, 1], 1) == [1, 0]

    def test_requires_excess(self):
        with pytest.raises(ValueError):
            scale_to_cap([100, 100], 200)

    def test_zero_cap(self):
        assert scale_to_cap([5, 7], 0) == [0, 0]


class TestComputePagePayouts:
    def test_reference_scenario(self):
        pp = compute_page_payouts(
            _entries(("alice", 4000), ("bob", 2000)),
            day_budget=500, locked_total=6000, min_payout=0, cap_remaining=None,
        )
        assert [p.amount for p in pp.payouts] == [333, 166]
        assert pp.paid == 499
        assert pp.allocated == 499
        assert pp.dust == 0
        assert pp.cap_excess == 0
        assert not pp.cap_hit

    def test_below_minimum_is_dust(self):
        pp = compute_page_payouts(
            _entries(("alice", 4000), ("bob", 2000)),
            day_budget=500, locked_total=6000, min_payout=200, cap_remaining=None,
        )
        alice, bob = pp.payouts
        assert alice.status is PayoutStatus.PAID and alice.amount == 333
        assert bob.status is PayoutStatus.DUST and bob.amount == 0 and bob.raw_amount == 166
        assert pp.dust == 166
        assert pp.allocated == 499

    def test_daily_cap_scales_payable_set(self):
        pp = compute_page_payouts(
            _entries(("alice", 4000), ("bob", 2000)),
            day_budget=500, locked_total=6000, min_payout=0, cap_remaining=400,
        )
        assert [p.amount for p in pp.payouts] == [267, 133]
        assert all(p.status is PayoutStatus.CAPPED for p in pp.payouts)
        assert pp.paid == 400
        assert pp.cap_excess == 99
        assert pp.cap_hit

    def test_dust_filtered_before_cap(self):
        pp = compute_page_payouts(
            _entries(("alice", 4000), ("bob", 2000)),
            day_budget=500, locked_total=6000, min_payout=200, cap_remaining=300,
        )
        alice, bob = pp.payouts
        assert alice.amount == 300
        assert bob.status is PayoutStatus.DUST
        assert pp.cap_excess == 33
        assert pp.dust == 166

    def test_cap_already_reached(self):
        pp = compute_page_payouts(
            _entries(("alice", 10)),
            day_budget=100, locked_total=10, min_payout=0, cap_remaining=0,
        )
        assert pp.paid == 0
        assert pp.cap_excess == 100

    def test_empty_page(self):
        pp = compute_page_payouts((), day_budget=500, locked_total=0, min_payout=0, cap_remaining=None)
        assert pp.payouts == ()
        assert pp.allocated == 0

    def test_zero_locked_investor_gets_nothing(self):
        pp = compute_page_payouts(
            _entries(("alice", 0), ("bob", 100)),
            day_budget=50, locked_total=100, min_payout=0, cap_remaining=None,
        )
        assert [p.amount for p in pp.payouts] == [0, 50]

    def test_page_locked_sum_above_total_rejected(self):
        with pytest.raises(InvalidInvestorDataError):
            compute_page_payouts(
                _entries(("alice", 7000)),
                day_budget=500, locked_total=6000, min_payout=0, cap_remaining=None,
            )
