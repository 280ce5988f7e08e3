"""Tests for src/core/fee_router/quote_only.py."""

import pytest

from src.core.fee_router import (
    BaseFeesNotAllowedError,
    ClaimResult,
    InvalidPoolConfigurationError,
    InvalidQuoteMintError,
    NoFeesToClaimError,
)
from src.core.fee_router.errors import GatingError, ValidationError
from src.core.fee_router.quote_only import validate_quote_only


def _claim(quote: int = 1000, base: int = 0, quote_mint: str = "USDC", base_mint: str = "SOL") -> ClaimResult:
    return ClaimResult(quote_mint=quote_mint, quote_amount=quote, base_mint=base_mint, base_amount=base)


class TestValidateQuoteOnly:
    def test_quote_only_claim_accepted(self):
        assert validate_quote_only(_claim(quote=1000), "USDC") == 1000

    def test_base_fees_rejected(self):
        with pytest.raises(BaseFeesNotAllowedError) as exc:
            validate_quote_only(_claim(quote=1000, base=1), "USDC")
        assert isinstance(exc.value, ValidationError)

    def test_base_fees_rejected_even_with_zero_quote(self):
        with pytest.raises(BaseFeesNotAllowedError):
            validate_quote_only(_claim(quote=0, base=7), "USDC")

    def test_zero_quote_is_no_fees(self):
        with pytest.raises(NoFeesToClaimError) as exc:
            validate_quote_only(_claim(quote=0), "USDC")
        assert isinstance(exc.value, GatingError)

    def test_wrong_quote_mint(self):
        with pytest.raises(InvalidQuoteMintError):
            validate_quote_only(_claim(quote_mint="USDT"), "USDC")

    def test_identical_mints(self):
        with pytest.raises(InvalidPoolConfigurationError):
            validate_quote_only(_claim(base_mint="USDC"), "USDC")
