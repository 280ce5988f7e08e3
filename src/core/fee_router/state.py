"""State construction and serialization for `fee_router`.

`initial_state()` returns the state of a freshly initialized vault.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s`, and the
same for `VaultPolicy` and `InvestorRecord`. The dict form is what the vault
store persists; it contains only str/int/bool/None so it can go through
canonical JSON.
"""

from __future__ import annotations

from typing import Any, Mapping

from .types import DistributionState, FinalPageMode, InvestorRecord, VaultPolicy

# Auto-derived from field definitions (single source of truth).
STATE_VAR_NAMES: tuple[str, ...] = tuple(DistributionState.__dataclass_fields__)
RECORD_FIELD_NAMES: tuple[str, ...] = tuple(InvestorRecord.__dataclass_fields__)


def initial_state() -> DistributionState:
    """``current_day=0``, ``last_distribution_ts=0``, every accumulator zero."""
    return DistributionState()


def state_to_dict(state: DistributionState) -> dict[str, bool | int]:
    return {name: getattr(state, name) for name in STATE_VAR_NAMES}


def state_from_dict(d: Mapping[str, Any]) -> DistributionState:
    """Deserialize a dict to a DistributionState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in STATE_VAR_NAMES:
        val = d[name]
        if isinstance(val, bool):
            kwargs[name] = val
        elif isinstance(val, int):
            kwargs[name] = int(val)
        else:
            raise TypeError(f"state var {name!r} must be bool|int, got {type(val).__name__}")
    return DistributionState(**kwargs)


def policy_to_dict(policy: VaultPolicy) -> dict[str, Any]:
    return {
        "quote_mint": policy.quote_mint,
        "investor_fee_share_bps": policy.investor_fee_share_bps,
        "min_payout": policy.min_payout,
        "daily_cap": policy.daily_cap,
        "total_investor_allocation": policy.total_investor_allocation,
        "final_page_mode": policy.final_page_mode.value,
    }


def policy_from_dict(d: Mapping[str, Any]) -> VaultPolicy:
    return VaultPolicy(
        quote_mint=d["quote_mint"],
        investor_fee_share_bps=d["investor_fee_share_bps"],
        min_payout=d.get("min_payout", 0),
        daily_cap=d.get("daily_cap"),
        total_investor_allocation=d.get("total_investor_allocation", 0),
        final_page_mode=FinalPageMode(d.get("final_page_mode", FinalPageMode.STRICT.value)),
    )


def record_to_dict(record: InvestorRecord) -> dict[str, str | int]:
    return {name: getattr(record, name) for name in RECORD_FIELD_NAMES}


def record_from_dict(d: Mapping[str, Any]) -> InvestorRecord:
    kwargs = {name: d[name] for name in RECORD_FIELD_NAMES}
    for name in ("investor", "stream_reference"):
        if not isinstance(kwargs[name], str):
            raise TypeError(f"record field {name!r} must be str")
    for name in RECORD_FIELD_NAMES:
        if name in ("investor", "stream_reference"):
            continue
        if not isinstance(kwargs[name], int) or isinstance(kwargs[name], bool):
            raise TypeError(f"record field {name!r} must be int")
    return InvestorRecord(**kwargs)
