from __future__ import annotations

import pytest

from src.core.fee_router import ClaimResult
from src.integration.collaborators import (
    AccruedFeePosition,
    FeeSource,
    LinearVestingOracle,
    StaticVestingOracle,
    VestingOracle,
    VestingSchedule,
)

DAY = 86_400


class TestAccruedFeePosition:
    def test_claim_drains(self):
        pos = AccruedFeePosition(position_id="p", quote_mint="USDC", base_mint="SOL")
        assert isinstance(pos, FeeSource)
        pos.accrue(quote=100, base=2)
        assert pos.claim() == ClaimResult("USDC", 100, "SOL", 2)
        assert pos.claim() == ClaimResult("USDC", 0, "SOL", 0)
        assert pos.claims == 2

    def test_snapshot_restore(self):
        pos = AccruedFeePosition(position_id="p", quote_mint="USDC", base_mint="SOL", pending_quote=9)
        snap = pos.snapshot()
        pos.claim()
        pos.restore(snap)
        assert pos.pending_quote == 9
        assert pos.claims == 0


class TestStaticVestingOracle:
    def test_lookup(self):
        oracle = StaticVestingOracle({"s": 5})
        assert isinstance(oracle, VestingOracle)
        assert oracle.locked_amount("s", 0) == 5
        assert oracle.locked_amount("unknown", 0) == 0


class TestLinearVesting:
    def test_cliff_then_linear(self):
        schedule = VestingSchedule(total=1000, start_ts=0, cliff_ts=DAY, end_ts=10 * DAY)
        assert schedule.locked_at(DAY - 1) == 1000
        assert schedule.locked_at(DAY) == 900
        assert schedule.locked_at(5 * DAY) == 500
        assert schedule.locked_at(10 * DAY) == 0

    def test_locked_never_increases_without_top_up(self):
        schedule = VestingSchedule(total=777, start_ts=100, end_ts=100 + 3 * DAY)
        values = [schedule.locked_at(t) for t in range(0, 4 * DAY, 3600)]
        assert values == sorted(values, reverse=True)

    def test_top_up_increases_locked(self):
        oracle = LinearVestingOracle()
        oracle.add_stream("s", VestingSchedule(total=100, start_ts=0, end_ts=10))
        before = oracle.locked_amount("s", 5)
        oracle.top_up("s", 100)
        assert oracle.locked_amount("s", 5) > before

    def test_invalid_schedules(self):
        with pytest.raises(ValueError):
            VestingSchedule(total=1, start_ts=10, end_ts=5)
        with pytest.raises(ValueError):
            VestingSchedule(total=1, start_ts=0, end_ts=5, cliff_ts=6)

    def test_duplicate_stream(self):
        oracle = LinearVestingOracle()
        oracle.add_stream("s", VestingSchedule(total=1, start_ts=0, end_ts=1))
        with pytest.raises(ValueError):
            oracle.add_stream("s", VestingSchedule(total=1, start_ts=0, end_ts=1))
