"""
Core fee-distribution algorithms
"""

from .fee_router import (
    CycleResult,
    DistributionState,
    PageCall,
    PageInputs,
    PageReport,
    VaultPolicy,
    initial_state,
    precheck,
    step,
    step_or_raise,
)

__all__ = [
    "CycleResult",
    "DistributionState",
    "PageCall",
    "PageInputs",
    "PageReport",
    "VaultPolicy",
    "initial_state",
    "precheck",
    "step",
    "step_or_raise",
]
