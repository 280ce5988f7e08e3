"""Quote-only validation of a fee claim.

The honorary position is configured so that it should only ever accrue fees in
the quote token. This module does not care *how* that is achieved; it checks
the outcome of a claim and fails closed if anything but quote came out.
"""

from __future__ import annotations

from .errors import (
    BaseFeesNotAllowedError,
    InvalidPoolConfigurationError,
    InvalidQuoteMintError,
    NoFeesToClaimError,
)
from .math import require_u64
from .types import ClaimResult


def validate_quote_only(claim: ClaimResult, quote_mint: str) -> int:
    """Return the claimed quote amount, or raise.

    Check order matters: identity first, then the base amount, then the quote
    amount. A claim carrying base fees is rejected even if its quote part is
    zero.
    """
    if claim.quote_mint != quote_mint:
        raise InvalidQuoteMintError(f"claim quote mint {claim.quote_mint!r} != vault quote mint {quote_mint!r}")
    if claim.base_mint == claim.quote_mint:
        raise InvalidPoolConfigurationError("base and quote mints are identical")

    base_amount = require_u64(claim.base_amount, name="claim.base_amount")
    quote_amount = require_u64(claim.quote_amount, name="claim.quote_amount")

    if base_amount != 0:
        raise BaseFeesNotAllowedError(f"claim returned {base_amount} base units")
    if quote_amount == 0:
        raise NoFeesToClaimError()
    return quote_amount
