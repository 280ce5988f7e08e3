"""
Crank configuration: vault policy, fee position, investors and crank settings
loaded from YAML.

Parsing is fail-closed: unknown top-level sections, wrong types and
out-of-range values raise `ConfigError`. After the file is parsed, `FEE_ROUTER_*`
environment variables override individual settings:

- ``FEE_ROUTER_MIN_PAYOUT``   policy.min_payout
- ``FEE_ROUTER_DAILY_CAP``    policy.daily_cap (``none``/empty disables the cap)
- ``FEE_ROUTER_PAGE_SIZE``    crank.page_size
- ``FEE_ROUTER_LOG_LEVEL``    crank.log_level
- ``FEE_ROUTER_STRICT_FINAL_PAGE``  1/0: STRICT or FORFEIT final-page mode
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Mapping, Optional

import yaml

from ..core.fee_router.errors import FeeRouterError
from ..core.fee_router.math import BPS_SCALE, I64_MAX, SECONDS_PER_DAY, U64_MAX, checked_mul
from ..core.fee_router.types import FinalPageMode, VaultPolicy
from ..state.investors import MAX_INVESTORS_PER_PAGE
from .collaborators import VestingSchedule


_TOP_LEVEL_KEYS = frozenset({"vault", "policy", "position", "crank", "investors"})
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigError(ValueError):
    """Invalid crank configuration."""


@dataclass(frozen=True)
class InvestorConfig:
    investor: str
    stream_reference: str
    initial_allocation: int
    vesting: Optional[VestingSchedule] = None


@dataclass(frozen=True)
class PositionConfig:
    position_id: str
    base_mint: str
    daily_quote_fees: int = 0
    daily_base_fees: int = 0


@dataclass(frozen=True)
class CrankConfig:
    vault_id: str
    authority: str
    creator: str
    policy: VaultPolicy
    position: PositionConfig
    total_allocation: int
    investors: List[InvestorConfig] = field(default_factory=list)
    page_size: int = MAX_INVESTORS_PER_PAGE
    log_level: str = "INFO"
    days: int = 1
    start_ts: int = 0

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)


def _bool_env(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _int_env(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip(), 10)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer: {raw!r}") from exc


def _section(obj: Mapping[str, Any], key: str, *, required: bool = True) -> Mapping[str, Any]:
    value = obj.get(key)
    if value is None and not required:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{key} must be a mapping")
    return value


def _str(obj: Mapping[str, Any], key: str, *, default: Optional[str] = None) -> str:
    value = obj.get(key, default)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{key} must be a non-empty string")
    return value


def _int(obj: Mapping[str, Any], key: str, *, default: Optional[int] = None, lo: int = 0, hi: int = U64_MAX) -> int:
    value = obj.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigError(f"{key} must be an int")
    if not (lo <= value <= hi):
        raise ConfigError(f"{key} out of range [{lo}, {hi}]: {value}")
    return value


def _parse_vesting(obj: Any, *, where: str) -> Optional[VestingSchedule]:
    if obj is None:
        return None
    if not isinstance(obj, Mapping):
        raise ConfigError(f"{where}.vesting must be a mapping")
    cliff = obj.get("cliff_ts")
    if cliff is not None and (not isinstance(cliff, int) or isinstance(cliff, bool)):
        raise ConfigError(f"{where}.vesting.cliff_ts must be an int")
    try:
        return VestingSchedule(
            total=_int(obj, "total"),
            start_ts=_int(obj, "start_ts"),
            end_ts=_int(obj, "end_ts"),
            cliff_ts=cliff,
        )
    except (ValueError, FeeRouterError) as exc:
        raise ConfigError(f"{where}.vesting: {exc}") from exc


def _parse_policy(obj: Mapping[str, Any]) -> VaultPolicy:
    daily_cap = obj.get("daily_cap")
    if daily_cap is not None:
        daily_cap = _int(obj, "daily_cap")
    mode_raw = obj.get("final_page_mode", FinalPageMode.STRICT.value)
    try:
        mode = FinalPageMode(mode_raw)
    except ValueError as exc:
        raise ConfigError(f"final_page_mode must be one of {[m.value for m in FinalPageMode]}") from exc
    try:
        return VaultPolicy(
            quote_mint=_str(obj, "quote_mint"),
            investor_fee_share_bps=_int(obj, "investor_fee_share_bps", hi=BPS_SCALE),
            min_payout=_int(obj, "min_payout", default=0),
            daily_cap=daily_cap,
            final_page_mode=mode,
        )
    except FeeRouterError as exc:
        raise ConfigError(f"policy: {exc}") from exc


def parse_config(obj: Any) -> CrankConfig:
    """Build a `CrankConfig` from an already-decoded YAML document (no env overrides)."""
    if not isinstance(obj, Mapping):
        raise ConfigError("config root must be a mapping")
    unknown = set(obj) - _TOP_LEVEL_KEYS
    if unknown:
        raise ConfigError(f"unknown config sections: {sorted(unknown)}")

    vault = _section(obj, "vault")
    policy = _parse_policy(_section(obj, "policy"))
    position_obj = _section(obj, "position")
    crank = _section(obj, "crank", required=False)
    investors_obj = _section(obj, "investors")

    entries = investors_obj.get("entries", [])
    if not isinstance(entries, list):
        raise ConfigError("investors.entries must be a list")
    investors: List[InvestorConfig] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ConfigError(f"investors.entries[{i}] must be a mapping")
        investors.append(
            InvestorConfig(
                investor=_str(entry, "investor"),
                stream_reference=_str(entry, "stream_reference"),
                initial_allocation=_int(entry, "initial_allocation"),
                vesting=_parse_vesting(entry.get("vesting"), where=f"investors.entries[{i}]"),
            )
        )

    log_level = str(crank.get("log_level", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {sorted(_LOG_LEVELS)}")

    days = _int(crank, "days", default=1, lo=1, hi=10_000)
    start_ts = _int(crank, "start_ts", default=0)
    if start_ts + checked_mul(days, SECONDS_PER_DAY) > I64_MAX:
        raise ConfigError("crank.start_ts + crank.days leaves the i64 timestamp range")

    vault_id = _str(vault, "id")
    return CrankConfig(
        vault_id=vault_id,
        authority=_str(vault, "authority"),
        creator=_str(vault, "creator"),
        policy=policy,
        position=PositionConfig(
            position_id=_str(position_obj, "id", default=f"position:{vault_id}"),
            base_mint=_str(position_obj, "base_mint"),
            daily_quote_fees=_int(position_obj, "daily_quote_fees", default=0),
            daily_base_fees=_int(position_obj, "daily_base_fees", default=0),
        ),
        total_allocation=_int(investors_obj, "total_allocation"),
        investors=investors,
        page_size=_int(crank, "page_size", default=MAX_INVESTORS_PER_PAGE, lo=1, hi=MAX_INVESTORS_PER_PAGE),
        log_level=log_level,
        days=days,
        start_ts=start_ts,
    )


def apply_env_overrides(config: CrankConfig) -> CrankConfig:
    policy_updates: dict[str, Any] = {}
    min_payout = _int_env("FEE_ROUTER_MIN_PAYOUT")
    if min_payout is not None:
        policy_updates["min_payout"] = min_payout
    if "FEE_ROUTER_DAILY_CAP" in os.environ:
        raw = os.environ["FEE_ROUTER_DAILY_CAP"].strip().lower()
        policy_updates["daily_cap"] = None if raw in {"", "none", "off"} else _int_env("FEE_ROUTER_DAILY_CAP")
    if "FEE_ROUTER_STRICT_FINAL_PAGE" in os.environ:
        strict = _bool_env(
            "FEE_ROUTER_STRICT_FINAL_PAGE", default=config.policy.final_page_mode is FinalPageMode.STRICT,
        )
        policy_updates["final_page_mode"] = FinalPageMode.STRICT if strict else FinalPageMode.FORFEIT
    try:
        policy = replace(config.policy, **policy_updates)
    except FeeRouterError as exc:
        raise ConfigError(f"environment override: {exc}") from exc

    updates: dict[str, Any] = {}
    page_size = _int_env("FEE_ROUTER_PAGE_SIZE")
    if page_size is not None:
        if not (1 <= page_size <= MAX_INVESTORS_PER_PAGE):
            raise ConfigError(f"FEE_ROUTER_PAGE_SIZE must be in [1, {MAX_INVESTORS_PER_PAGE}]")
        updates["page_size"] = page_size
    log_level = os.environ.get("FEE_ROUTER_LOG_LEVEL", "").strip().upper()
    if log_level:
        if log_level not in _LOG_LEVELS:
            raise ConfigError(f"FEE_ROUTER_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}")
        updates["log_level"] = log_level
    return replace(config, policy=policy, **updates)


def load_config(path: str | Path) -> CrankConfig:
    """Read *path* with `yaml.safe_load`, parse it, then apply env overrides."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return apply_env_overrides(parse_config(obj))
