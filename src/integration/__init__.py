"""
Fee router integration layer: vault store, distribution cycle, collaborators
"""

from .collaborators import (
    AccruedFeePosition,
    FeeSource,
    LedgerRecord,
    LedgerSink,
    LinearVestingOracle,
    StaticVestingOracle,
    VestingOracle,
    VestingSchedule,
)
from .distribution_cycle import DistributionCycle
from .ledger import DistributionLedger
from .vault_store import VaultAccount, VaultStore

__all__ = [
    "AccruedFeePosition",
    "FeeSource",
    "LedgerRecord",
    "LedgerSink",
    "LinearVestingOracle",
    "StaticVestingOracle",
    "VestingOracle",
    "VestingSchedule",
    "DistributionCycle",
    "DistributionLedger",
    "VaultAccount",
    "VaultStore",
]
