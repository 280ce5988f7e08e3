"""`fee_router`: pure-Python distribution kernel for the quote-fee router.

Deterministic, integer-only, immutable state (frozen dataclasses) and
fail-closed guards/invariant checks. The kernel never talks to collaborators;
the integration shell (`src/integration/distribution_cycle.py`) gathers the
claim and vesting inputs and commits accepted post-states.

Public API:
- `initial_state() -> DistributionState`
- `step(state, policy, call, inputs) -> CycleResult`
- `step_or_raise(state, policy, call, inputs) -> CycleResult` (raises on rejection)
- `precheck(state, policy, call, page_count=...) -> Rejection | None`
"""

from .engine import opens_day, precheck, step, step_or_raise
from .errors import (
    BaseFeesNotAllowedError,
    DayInProgressError,
    DayNotStartedError,
    DistributionAlreadyCompletedError,
    DistributionWindowNotReachedError,
    ErrorCode,
    FeeRouterError,
    FinalPageMismatchError,
    GatingError,
    InvalidAllocationError,
    InvalidFeeShareBpsError,
    InvalidInvestorDataError,
    InvalidPageNumberError,
    InvalidPoolConfigurationError,
    InvalidQuoteMintError,
    InvariantViolationError,
    MathOverflowError,
    NoFeesToClaimError,
    PositionNotInitializedError,
    UnauthorizedError,
    UnknownVaultError,
    ValidationError,
    VaultAlreadyInitializedError,
    error_for,
)
from .guards import is_day_open, phase_of
from .state import initial_state, state_from_dict, state_to_dict
from .types import (
    ClaimResult,
    CycleResult,
    CyclePhase,
    DistributionState,
    Event,
    FinalPageMode,
    InvestorRecord,
    PageCall,
    PageEntry,
    PageInputs,
    PageReport,
    Payout,
    PayoutStatus,
    VaultPolicy,
)

__all__ = [
    "step",
    "step_or_raise",
    "precheck",
    "opens_day",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "is_day_open",
    "phase_of",
    "ClaimResult",
    "CycleResult",
    "CyclePhase",
    "DistributionState",
    "Event",
    "FinalPageMode",
    "InvestorRecord",
    "PageCall",
    "PageEntry",
    "PageInputs",
    "PageReport",
    "Payout",
    "PayoutStatus",
    "VaultPolicy",
    "ErrorCode",
    "error_for",
    "FeeRouterError",
    "GatingError",
    "ValidationError",
    "DistributionWindowNotReachedError",
    "DistributionAlreadyCompletedError",
    "InvalidPageNumberError",
    "DayNotStartedError",
    "FinalPageMismatchError",
    "NoFeesToClaimError",
    "DayInProgressError",
    "BaseFeesNotAllowedError",
    "InvalidAllocationError",
    "InvalidFeeShareBpsError",
    "InvalidQuoteMintError",
    "InvalidPoolConfigurationError",
    "InvalidInvestorDataError",
    "PositionNotInitializedError",
    "VaultAlreadyInitializedError",
    "UnauthorizedError",
    "UnknownVaultError",
    "MathOverflowError",
    "InvariantViolationError",
]
