"""Data types for the `fee_router` distribution kernel.

All types are frozen dataclasses (immutable).

Units/conventions:
- `*_bps` values are basis points (1/10_000).
- `*_quote`, `*_amount`, `min_payout`, `daily_cap` are integer quote-token units (u64).
- `*_ts` values are unix seconds (i64).
- `locked_*` values are vesting-token units; only their ratios matter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from .errors import ErrorCode, InvalidFeeShareBpsError, MathOverflowError, ValidationError
from .math import BPS_SCALE, U64_MAX


@unique
class FinalPageMode(Enum):
    """What an early ``is_final_page=True`` means.

    STRICT rejects it. FORFEIT closes the day and rolls the unprocessed
    investors' share into carry-over dust.
    """
    STRICT = "strict"
    FORFEIT = "forfeit"


@unique
class CyclePhase(Enum):
    IDLE = "idle"
    DAY_OPEN = "day_open"
    PAGES_IN_FLIGHT = "pages_in_flight"
    DAY_CLOSED = "day_closed"


@unique
class Event(Enum):
    QUOTE_FEES_CLAIMED = "QuoteFeesClaimed"
    INVESTOR_PAYOUT_PAGE = "InvestorPayoutPage"
    DUST_CARRIED = "DustCarried"
    DAILY_CAP_REACHED = "DailyCapReached"
    CREATOR_PAYOUT_DAY_CLOSED = "CreatorPayoutDayClosed"


@unique
class PayoutStatus(Enum):
    PAID = "paid"
    DUST = "dust"
    CAPPED = "capped"


def _check_u64(name: str, v: int) -> None:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= v <= U64_MAX):
        raise MathOverflowError(f"{name} out of u64 range: {v}")


@dataclass(frozen=True)
class VaultPolicy:
    """Per-vault distribution policy. Immutable once the vault is created."""

    quote_mint: str
    investor_fee_share_bps: int
    min_payout: int = 0
    daily_cap: int | None = None
    total_investor_allocation: int = 0
    final_page_mode: FinalPageMode = FinalPageMode.STRICT

    def __post_init__(self) -> None:
        if not isinstance(self.quote_mint, str) or not self.quote_mint:
            raise ValidationError("quote_mint must be a non-empty string")
        bps = self.investor_fee_share_bps
        if not isinstance(bps, int) or isinstance(bps, bool):
            raise TypeError("investor_fee_share_bps must be an int")
        if not (0 <= bps <= BPS_SCALE):
            raise InvalidFeeShareBpsError(f"must be in [0, {BPS_SCALE}]: {bps}")
        _check_u64("min_payout", self.min_payout)
        if self.daily_cap is not None:
            _check_u64("daily_cap", self.daily_cap)
        _check_u64("total_investor_allocation", self.total_investor_allocation)
        if not isinstance(self.final_page_mode, FinalPageMode):
            raise TypeError("final_page_mode must be a FinalPageMode")


@dataclass(frozen=True)
class DistributionState:
    """Cursor + per-day accumulators for one vault (the pagination ledger)."""

    # Cursor
    current_day: int = 0
    last_distribution_ts: int = 0
    current_page: int = 0
    day_closed: bool = False

    # Cumulative / carry
    daily_distributed_to_investors: int = 0
    carry_over_dust: int = 0

    # Captured at page 0
    day_claimed_quote: int = 0
    day_carry_in: int = 0
    day_investor_budget: int = 0
    day_eligible_bps: int = 0
    day_locked_total: int = 0
    day_page_count: int = 0

    # Running per-day accumulators
    day_allocated: int = 0
    day_locked_processed: int = 0
    day_cap_excess: int = 0

    # Set on close-out
    day_creator_payout: int = 0


@dataclass(frozen=True)
class InvestorRecord:
    """Historical ledger entry for one investor. Never deleted."""

    investor: str
    stream_reference: str
    initial_allocation: int
    total_fees_received: int = 0
    last_distribution_ts: int = 0
    page: int = 0
    page_index: int = 0


@dataclass(frozen=True)
class PageEntry:
    """One investor of a page with its locked amount at the day's timestamp."""

    investor: str
    locked_amount: int


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of claiming fees from the external position."""

    quote_mint: str
    quote_amount: int
    base_mint: str
    base_amount: int = 0


@dataclass(frozen=True)
class PageCall:
    """Caller-supplied arguments of one crank invocation."""

    vault_id: str
    page: int
    is_final_page: bool
    now_ts: int


@dataclass(frozen=True)
class PageInputs:
    """Collaborator data gathered by the shell for one invocation.

    `claim`, `locked_total` and `page_count` are only read when the call opens
    a new day.
    """

    entries: tuple[PageEntry, ...] = ()
    claim: ClaimResult | None = None
    locked_total: int | None = None
    page_count: int | None = None


@dataclass(frozen=True)
class Payout:
    investor: str
    locked_amount: int
    raw_amount: int
    amount: int
    status: PayoutStatus


@dataclass(frozen=True)
class PageReport:
    """Observable outcome of an accepted page call."""

    vault_id: str
    day: int
    page: int
    is_final_page: bool
    phase: CyclePhase
    payouts: tuple[Payout, ...] = ()
    page_paid: int = 0
    page_dust: int = 0
    page_cap_excess: int = 0
    daily_distributed_after: int = 0
    carry_over_dust_after: int = 0
    claimed_quote: int = 0
    investor_fee_quote: int = 0
    creator_payout: int = 0
    events: tuple[Event, ...] = ()


@dataclass(frozen=True)
class CycleResult:
    """Result of a single engine step."""

    accepted: bool
    state: DistributionState | None = None
    report: PageReport | None = None
    rejection: ErrorCode | None = None
    detail: str = ""
