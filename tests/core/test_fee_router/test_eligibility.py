"""Tests for src/core/fee_router/eligibility.py."""

import pytest

from src.core.fee_router import InvalidAllocationError, InvalidFeeShareBpsError
from src.core.fee_router.eligibility import eligible_share_bps, investor_fee_quote, locked_fraction_bps


class TestLockedFraction:
    def test_partial(self):
        assert locked_fraction_bps(6000, 10_000) == 6000

    def test_floor(self):
        assert locked_fraction_bps(1, 3) == 3333

    def test_clamped_when_locked_exceeds_allocation(self):
        assert locked_fraction_bps(15_000, 10_000) == 10_000

    def test_zero_allocation_rejected(self):
        with pytest.raises(InvalidAllocationError):
            locked_fraction_bps(100, 0)


class TestEligibleShare:
    def test_capped_by_share(self):
        assert eligible_share_bps(6000, 10_000, 5000) == 5000

    def test_capped_by_locked_fraction(self):
        assert eligible_share_bps(2000, 10_000, 5000) == 2000

    def test_fully_unlocked(self):
        assert eligible_share_bps(0, 10_000, 5000) == 0

    def test_share_out_of_range(self):
        with pytest.raises(InvalidFeeShareBpsError):
            eligible_share_bps(100, 100, 10_001)


class TestInvestorFeeQuote:
    def test_reference_scenario(self):
        eligible = eligible_share_bps(6000, 10_000, 5000)
        assert investor_fee_quote(1000, eligible) == 500

    def test_floor(self):
        assert investor_fee_quote(7, 5000) == 3
