"""
State management for the fee router
"""

from .balances import TokenBalances
from .investors import MAX_INVESTORS_PER_PAGE, InvestorRegistry

__all__ = [
    "TokenBalances",
    "InvestorRegistry",
    "MAX_INVESTORS_PER_PAGE",
]
