"""Exception types for the fee_router distribution kernel.

Every exception carries a stable `ErrorCode`. The pure engine reports
rejections as codes (see ``CycleResult.rejection``); ``step_or_raise()`` and the
integration shell turn them back into exceptions via ``error_for()``.

Three families:
- `GatingError`: wrong time / wrong page / wrong phase. Zero state change,
  safely retryable with corrected arguments or at a later time.
- `ValidationError`: bad claim, bad configuration, bad investor data. Needs
  operator intervention; never coerced.
- `MathOverflowError`: checked arithmetic left its domain. Aborts the whole
  invocation.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorCode(Enum):
    DISTRIBUTION_WINDOW_NOT_REACHED = "DistributionWindowNotReached"
    DISTRIBUTION_ALREADY_COMPLETED = "DistributionAlreadyCompleted"
    INVALID_PAGE_NUMBER = "InvalidPageNumber"
    DAY_NOT_STARTED = "DayNotStarted"
    FINAL_PAGE_MISMATCH = "FinalPageMismatch"
    NO_FEES_TO_CLAIM = "NoFeesToClaim"
    DAY_IN_PROGRESS = "DayInProgress"
    BASE_FEES_NOT_ALLOWED = "BaseFeesNotAllowed"
    INVALID_ALLOCATION = "InvalidAllocation"
    INVALID_FEE_SHARE_BPS = "InvalidFeeShareBps"
    INVALID_QUOTE_MINT = "InvalidQuoteMint"
    INVALID_POOL_CONFIGURATION = "InvalidPoolConfiguration"
    INVALID_INVESTOR_DATA = "InvalidInvestorData"
    POSITION_NOT_INITIALIZED = "PositionNotInitialized"
    VAULT_ALREADY_INITIALIZED = "VaultAlreadyInitialized"
    UNAUTHORIZED = "Unauthorized"
    UNKNOWN_VAULT = "UnknownVault"
    MATH_OVERFLOW = "MathOverflow"
    INVARIANT_VIOLATION = "InvariantViolation"


class FeeRouterError(Exception):
    """Base class. Subclasses pin ``code``."""

    code: ErrorCode

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        msg = self.code.value if not detail else f"{self.code.value}: {detail}"
        super().__init__(msg)


class GatingError(FeeRouterError):
    """Rejected before any effect; retryable."""


class ValidationError(FeeRouterError):
    """Bad input or configuration; fatal to the invocation."""


# -- Gating ------------------------------------------------------------------

class DistributionWindowNotReachedError(GatingError):
    code = ErrorCode.DISTRIBUTION_WINDOW_NOT_REACHED


class DistributionAlreadyCompletedError(DistributionWindowNotReachedError):
    """The day is closed and the next window has not opened yet."""

    code = ErrorCode.DISTRIBUTION_ALREADY_COMPLETED


class InvalidPageNumberError(GatingError):
    code = ErrorCode.INVALID_PAGE_NUMBER


class DayNotStartedError(GatingError):
    code = ErrorCode.DAY_NOT_STARTED


class FinalPageMismatchError(GatingError):
    code = ErrorCode.FINAL_PAGE_MISMATCH


class NoFeesToClaimError(GatingError):
    code = ErrorCode.NO_FEES_TO_CLAIM


class DayInProgressError(GatingError):
    code = ErrorCode.DAY_IN_PROGRESS


# -- Validation ----------------------------------------------------------------

class BaseFeesNotAllowedError(ValidationError):
    code = ErrorCode.BASE_FEES_NOT_ALLOWED


class InvalidAllocationError(ValidationError):
    code = ErrorCode.INVALID_ALLOCATION


class InvalidFeeShareBpsError(ValidationError):
    code = ErrorCode.INVALID_FEE_SHARE_BPS


class InvalidQuoteMintError(ValidationError):
    code = ErrorCode.INVALID_QUOTE_MINT


class InvalidPoolConfigurationError(ValidationError):
    code = ErrorCode.INVALID_POOL_CONFIGURATION


class InvalidInvestorDataError(ValidationError):
    code = ErrorCode.INVALID_INVESTOR_DATA


class PositionNotInitializedError(ValidationError):
    code = ErrorCode.POSITION_NOT_INITIALIZED


class VaultAlreadyInitializedError(ValidationError):
    code = ErrorCode.VAULT_ALREADY_INITIALIZED


class UnauthorizedError(ValidationError):
    code = ErrorCode.UNAUTHORIZED


class UnknownVaultError(ValidationError):
    code = ErrorCode.UNKNOWN_VAULT


# -- Arithmetic / invariants -------------------------------------------------

class MathOverflowError(FeeRouterError):
    """Raised when checked arithmetic leaves its u64/u128 domain."""

    code = ErrorCode.MATH_OVERFLOW


class InvariantViolationError(FeeRouterError):
    """Raised when a post-state violates one or more invariants."""

    code = ErrorCode.INVARIANT_VIOLATION

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(", ".join(violations))


_BY_CODE: dict[ErrorCode, type[FeeRouterError]] = {
    cls.code: cls
    for cls in (
        DistributionWindowNotReachedError,
        DistributionAlreadyCompletedError,
        InvalidPageNumberError,
        DayNotStartedError,
        FinalPageMismatchError,
        NoFeesToClaimError,
        DayInProgressError,
        BaseFeesNotAllowedError,
        InvalidAllocationError,
        InvalidFeeShareBpsError,
        InvalidQuoteMintError,
        InvalidPoolConfigurationError,
        InvalidInvestorDataError,
        PositionNotInitializedError,
        VaultAlreadyInitializedError,
        UnauthorizedError,
        UnknownVaultError,
        MathOverflowError,
    )
}


def error_for(code: ErrorCode, detail: str = "") -> FeeRouterError:
    """Build the exception instance for a rejection code."""
    if code is ErrorCode.INVARIANT_VIOLATION:
        return InvariantViolationError([v for v in detail.split(",") if v])
    return _BY_CODE[code](detail)
