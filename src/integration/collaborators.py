"""
Collaborator capabilities consumed by the distribution cycle.

The kernel never embeds how fees are claimed or how vesting is tracked; it only
relies on these contracts:

- `FeeSource.claim()` drains the position's accrued fees and reports them.
  `snapshot()`/`restore()` let the shell undo a claim when the invocation
  is rejected, the way a reverted transaction undoes its CPI.
- `VestingOracle.locked_amount(stream, at_time)` is read-only. Amounts normally
  decrease over time; top-ups may increase them and are valid input.
- `LedgerSink.append(record)` is write-only from the cycle's perspective.

In-memory implementations are provided for tests, the CLI and local simulation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Protocol, runtime_checkable

from ..core.fee_router.math import U64_MAX, checked_add, checked_sub, mul_div_floor, require_u64
from ..core.fee_router.types import ClaimResult


@runtime_checkable
class FeeSource(Protocol):
    def claim(self) -> ClaimResult: ...

    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...


@runtime_checkable
class VestingOracle(Protocol):
    def locked_amount(self, stream_reference: str, at_time: int) -> int: ...


@dataclass(frozen=True)
class LedgerRecord:
    """Audit record of one accepted page call."""

    vault_id: str
    day: int
    page: int
    timestamp: int
    payouts: tuple[tuple[str, int], ...]
    creator_payout: int = 0
    claimed_quote: int = 0
    day_closed: bool = False


@runtime_checkable
class LedgerSink(Protocol):
    def append(self, record: LedgerRecord) -> Any: ...


# ---------------------------------------------------------------------------
# In-memory implementations
# ---------------------------------------------------------------------------

@dataclass
class AccruedFeePosition:
    """
    An honorary LP position that accrues fees until claimed.

    `accrue()` stands in for swap activity; `claim()` drains everything accrued
    so far, in both tokens, exactly like a real fee claim would.
    """

    position_id: str
    quote_mint: str
    base_mint: str
    pending_quote: int = 0
    pending_base: int = 0
    claims: int = 0

    def accrue(self, *, quote: int = 0, base: int = 0) -> None:
        self.pending_quote = checked_add(self.pending_quote, require_u64(quote, name="quote"))
        self.pending_base = checked_add(self.pending_base, require_u64(base, name="base"))

    def claim(self) -> ClaimResult:
        result = ClaimResult(
            quote_mint=self.quote_mint,
            quote_amount=self.pending_quote,
            base_mint=self.base_mint,
            base_amount=self.pending_base,
        )
        self.pending_quote = 0
        self.pending_base = 0
        self.claims += 1
        return result

    def snapshot(self) -> tuple[int, int, int]:
        return (self.pending_quote, self.pending_base, self.claims)

    def restore(self, snapshot: tuple[int, int, int]) -> None:
        self.pending_quote, self.pending_base, self.claims = snapshot


@dataclass
class StaticVestingOracle:
    """Locked amounts from a fixed table; time is ignored. Unknown streams are fully unlocked."""

    locked: Dict[str, int] = field(default_factory=dict)

    def set_locked(self, stream_reference: str, amount: int) -> None:
        self.locked[stream_reference] = require_u64(amount, name="locked amount")

    def locked_amount(self, stream_reference: str, at_time: int) -> int:
        return self.locked.get(stream_reference, 0)


@dataclass(frozen=True)
class VestingSchedule:
    """Cliff + linear unlock between `start_ts` and `end_ts`."""

    total: int
    start_ts: int
    end_ts: int
    cliff_ts: int | None = None
    topped_up: int = 0

    def __post_init__(self) -> None:
        require_u64(self.total, name="total")
        require_u64(self.topped_up, name="topped_up")
        if self.end_ts < self.start_ts:
            raise ValueError("end_ts must be >= start_ts")
        if self.cliff_ts is not None and not (self.start_ts <= self.cliff_ts <= self.end_ts):
            raise ValueError("cliff_ts must lie within [start_ts, end_ts]")

    def unlocked_at(self, at_time: int) -> int:
        total = checked_add(self.total, self.topped_up)
        if at_time < self.start_ts:
            return 0
        if self.cliff_ts is not None and at_time < self.cliff_ts:
            return 0
        if at_time >= self.end_ts:
            return total
        return mul_div_floor(total, at_time - self.start_ts, self.end_ts - self.start_ts)

    def locked_at(self, at_time: int) -> int:
        total = checked_add(self.total, self.topped_up)
        return checked_sub(total, self.unlocked_at(at_time))


@dataclass
class LinearVestingOracle:
    """Per-stream vesting schedules; locked amount is what has not unlocked yet."""

    schedules: Dict[str, VestingSchedule] = field(default_factory=dict)

    def add_stream(self, stream_reference: str, schedule: VestingSchedule) -> None:
        if stream_reference in self.schedules:
            raise ValueError(f"stream {stream_reference!r} already exists")
        self.schedules[stream_reference] = schedule

    def top_up(self, stream_reference: str, amount: int) -> None:
        s = self.schedules[stream_reference]
        topped = checked_add(s.topped_up, require_u64(amount, name="amount"))
        if checked_add(s.total, topped) > U64_MAX:
            raise ValueError("top-up overflows stream total")
        self.schedules[stream_reference] = VestingSchedule(
            total=s.total, start_ts=s.start_ts, end_ts=s.end_ts, cliff_ts=s.cliff_ts, topped_up=topped,
        )

    def locked_amount(self, stream_reference: str, at_time: int) -> int:
        schedule = self.schedules.get(stream_reference)
        if schedule is None:
            return 0
        return schedule.locked_at(at_time)
