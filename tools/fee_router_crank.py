#!/usr/bin/env python3
"""
Local fee-router crank.

Loads a vault configuration (see `config/vault.example.yaml`), sets up an
in-memory vault with an accruing fee position and vesting streams, then cranks
one distribution day per simulated 24h and prints the page reports.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.core.fee_router import FeeRouterError, PageReport
from src.core.fee_router.math import SECONDS_PER_DAY
from src.integration.collaborators import AccruedFeePosition, LinearVestingOracle, StaticVestingOracle
from src.integration.config import ConfigError, CrankConfig, load_config
from src.integration.distribution_cycle import DistributionCycle
from src.integration.ledger import DistributionLedger
from src.integration.vault_store import VaultStore
from src.state.canonical import canonical_json_bytes


@dataclass
class _ConfiguredVesting:
    """Linear schedules where configured; investors without one stay fully locked."""

    linear: LinearVestingOracle
    fixed: StaticVestingOracle

    def locked_amount(self, stream_reference: str, at_time: int) -> int:
        if stream_reference in self.linear.schedules:
            return self.linear.locked_amount(stream_reference, at_time)
        return self.fixed.locked_amount(stream_reference, at_time)


def build(config: CrankConfig) -> tuple[VaultStore, DistributionCycle, AccruedFeePosition, DistributionLedger]:
    store = VaultStore(page_size=config.page_size)
    store.initialize_vault(
        config.vault_id, authority=config.authority, creator=config.creator, policy=config.policy,
    )
    position = AccruedFeePosition(
        position_id=config.position.position_id,
        quote_mint=config.policy.quote_mint,
        base_mint=config.position.base_mint,
    )
    store.attach_fee_position(config.vault_id, authority=config.authority, fee_source=position)
    store.update_investor_data(
        config.vault_id,
        authority=config.authority,
        total_allocation=config.total_allocation,
        investors=[(i.investor, i.stream_reference, i.initial_allocation) for i in config.investors],
    )

    vesting = _ConfiguredVesting(linear=LinearVestingOracle(), fixed=StaticVestingOracle())
    for inv in config.investors:
        if inv.vesting is not None:
            vesting.linear.add_stream(inv.stream_reference, inv.vesting)
        else:
            vesting.fixed.set_locked(inv.stream_reference, inv.initial_allocation)

    ledger = DistributionLedger()
    cycle = DistributionCycle(store, vesting, ledger=ledger)
    return store, cycle, position, ledger


def _report_json(report: PageReport) -> Dict[str, object]:
    return {
        "vault_id": report.vault_id,
        "day": report.day,
        "page": report.page,
        "final": report.is_final_page,
        "phase": report.phase.value,
        "paid": report.page_paid,
        "dust": report.page_dust,
        "cap_excess": report.page_cap_excess,
        "claimed_quote": report.claimed_quote,
        "investor_fee_quote": report.investor_fee_quote,
        "creator_payout": report.creator_payout,
        "carry_over_dust": report.carry_over_dust_after,
        "payouts": [[p.investor, p.amount, p.status.value] for p in report.payouts],
        "events": [e.value for e in report.events],
    }


def main() -> int:
    ap = argparse.ArgumentParser(description="Crank the fee router over simulated days.")
    ap.add_argument("config", type=str, help="path to a vault YAML config")
    ap.add_argument("--days", type=int, default=0, help="override crank.days")
    ap.add_argument("--json", action="store_true", help="print one JSON object per page report")
    ap.add_argument("--snapshot-out", type=str, default="", help="write the final store snapshot here")
    args = ap.parse_args()

    try:
        config = load_config(args.config)
    except (OSError, ConfigError) as exc:
        raise SystemExit(f"config error: {exc}")
    days = args.days or config.days
    if days <= 0:
        raise SystemExit("--days must be positive")

    logging.basicConfig(level=config.log_level_value, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log = logging.getLogger("fee_router_crank")

    try:
        store, cycle, position, ledger = build(config)
    except FeeRouterError as exc:
        raise SystemExit(f"setup failed: {exc}")

    now = config.start_ts
    for day in range(days):
        now += SECONDS_PER_DAY
        position.accrue(quote=config.position.daily_quote_fees, base=config.position.daily_base_fees)
        try:
            reports = cycle.run_day(config.vault_id, now=now)
        except FeeRouterError as exc:
            log.error("day %d failed: %s", day + 1, exc)
            return 1
        for report in reports:
            if args.json:
                print(json.dumps(_report_json(report), sort_keys=True))
            else:
                paid = ", ".join(f"{p.investor}={p.amount}" for p in report.payouts) or "-"
                print(
                    f"[crank] day={report.day} page={report.page} final={report.is_final_page} "
                    f"paid={report.page_paid} ({paid}) dust={report.page_dust} "
                    f"creator={report.creator_payout} carry={report.carry_over_dust_after}"
                )

    if not ledger.verify():
        log.error("ledger hash chain failed verification")
        return 1
    print(f"[crank] ledger entries={len(ledger)} head={ledger.head}")
    print(f"[crank] store commitment={store.commitment()}")
    if args.snapshot_out:
        Path(args.snapshot_out).write_bytes(canonical_json_bytes(store.to_snapshot()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
