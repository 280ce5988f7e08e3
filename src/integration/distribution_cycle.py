"""
Distribution cycle: the imperative shell around the `fee_router` kernel.

`open_or_continue_cycle(vault_id, page, is_final_page)` is the permissionless
crank. One invocation:

1. takes the vault's lock and a working copy (`VaultStore.transaction`),
2. runs the kernel's gating checks before touching any collaborator,
3. on page 0 of a new day claims fees once and sums the locked amounts of the
   whole investor set at the day's timestamp (walking the pages lazily),
4. reads the page's locked amounts at the same timestamp (a top-up since page 0
   is clamped by the kernel to what is left of the day's locked total),
5. runs `step_or_raise`, then journals the token movements (claim into the
   treasury, payouts to investors, creator payout on close) and investor record
   updates,
6. commits, and appends a ledger record.

Any exception inside the transaction leaves the store, balances and fee
position exactly as they were; the ledger is only written after commit.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from ..core.fee_router import (
    CyclePhase,
    FeeRouterError,
    InvalidInvestorDataError,
    InvariantViolationError,
    PageCall,
    PageEntry,
    PageInputs,
    PageReport,
    PositionNotInitializedError,
    error_for,
    opens_day,
    phase_of,
    precheck,
    step_or_raise,
)
from ..core.fee_router.guards import normalized_page_count
from ..core.fee_router.math import U64_MAX, checked_sum
from ..core.fee_router.types import InvestorRecord
from ..core.fee_router.updates import apply_payout_to_record
from .collaborators import LedgerRecord, LedgerSink, VestingOracle
from .vault_store import VaultStore, VaultTransaction


logger = logging.getLogger(__name__)


def _wall_clock() -> int:
    return int(time.time())


class DistributionCycle:
    def __init__(
        self,
        store: VaultStore,
        vesting_oracle: VestingOracle,
        *,
        ledger: Optional[LedgerSink] = None,
        clock: Callable[[], int] = _wall_clock,
    ) -> None:
        self.store = store
        self.vesting_oracle = vesting_oracle
        self.ledger = ledger
        self.clock = clock

    def phase(self, vault_id: str, now: Optional[int] = None) -> CyclePhase:
        account = self.store.get(vault_id)
        return phase_of(account.state, self.clock() if now is None else now)

    def open_or_continue_cycle(
        self,
        vault_id: str,
        page: int,
        is_final_page: bool,
        now: Optional[int] = None,
    ) -> PageReport:
        """Process one page of the current (or a new) distribution day.

        Raises the matching `FeeRouterError` subclass on rejection; a rejected
        call has no effect.
        """
        now_ts = self.clock() if now is None else now
        call = PageCall(vault_id=vault_id, page=page, is_final_page=is_final_page, now_ts=now_ts)
        try:
            with self.store.transaction(vault_id) as txn:
                report = self._process(txn, call)
        except FeeRouterError as exc:
            logger.warning(
                "vault %s page %r rejected: %s (%s)", vault_id, page, exc.code.value, exc.detail or "-",
            )
            raise

        if self.ledger is not None:
            self.ledger.append(
                LedgerRecord(
                    vault_id=vault_id,
                    day=report.day,
                    page=report.page,
                    timestamp=now_ts,
                    payouts=tuple((p.investor, p.amount) for p in report.payouts if p.amount),
                    creator_payout=report.creator_payout,
                    claimed_quote=report.claimed_quote,
                    day_closed=report.phase is CyclePhase.DAY_CLOSED,
                )
            )
        return report

    def run_day(self, vault_id: str, now: Optional[int] = None) -> List[PageReport]:
        """Crank every page of one day in order, ending with the final page."""
        now_ts = self.clock() if now is None else now
        page_count = normalized_page_count(self.store.get(vault_id).investors.page_count())
        return [
            self.open_or_continue_cycle(vault_id, page, page == page_count - 1, now=now_ts)
            for page in range(page_count)
        ]

    # ------------------------------------------------------------------

    def _locked(self, record: InvestorRecord, at_time: int) -> int:
        amount = self.vesting_oracle.locked_amount(record.stream_reference, at_time)
        if not isinstance(amount, int) or isinstance(amount, bool) or not (0 <= amount <= U64_MAX):
            raise InvalidInvestorDataError(
                f"vesting oracle returned {amount!r} for stream {record.stream_reference!r}"
            )
        return amount

    def _process(self, txn: VaultTransaction, call: PageCall) -> PageReport:
        account = txn.account
        policy = account.policy
        state = account.state
        opening = opens_day(state, call)

        rej = precheck(state, policy, call, page_count=account.investors.page_count())
        if rej is not None:
            raise error_for(*rej)

        claim = None
        locked_total = None
        if opening:
            if account.fee_source is None:
                raise PositionNotInitializedError(f"vault {account.vault_id!r} has no fee position")
            day_ts = call.now_ts
            claim = account.fee_source.claim()
            locked_total = checked_sum(
                self._locked(record, day_ts)
                for records in account.investors.iter_pages()
                for record in records
            )
        else:
            day_ts = state.last_distribution_ts

        entries = tuple(
            PageEntry(investor=r.investor, locked_amount=self._locked(r, day_ts))
            for r in account.investors.page(call.page)
        )
        result = step_or_raise(
            state,
            policy,
            call,
            PageInputs(
                entries=entries,
                claim=claim,
                locked_total=locked_total,
                page_count=account.investors.page_count(),
            ),
        )
        report = result.report
        new_state = result.state
        if report is None or new_state is None:
            raise InvariantViolationError("accepted step returned no state")

        mint = policy.quote_mint
        if opening:
            txn.mint_to(account.treasury, mint, new_state.day_claimed_quote)
            logger.info(
                "vault %s day %d opened: claimed=%d investor_fee_quote=%d carry_in=%d eligible_bps=%d pages=%d",
                account.vault_id, new_state.current_day, new_state.day_claimed_quote, report.investor_fee_quote,
                new_state.day_carry_in, new_state.day_eligible_bps, new_state.day_page_count,
            )

        for payout in report.payouts:
            logger.debug(
                "vault %s day %d page %d: %s locked=%d raw=%d paid=%d (%s)",
                account.vault_id, report.day, report.page, payout.investor,
                payout.locked_amount, payout.raw_amount, payout.amount, payout.status.value,
            )
            if payout.amount:
                txn.transfer(account.treasury, payout.investor, mint, payout.amount)
                account.investors.update(
                    apply_payout_to_record(account.investors.get(payout.investor), payout, now_ts=call.now_ts)
                )

        logger.info(
            "vault %s day %d page %d accepted: paid=%d dust=%d cap_excess=%d distributed=%d",
            account.vault_id, report.day, report.page, report.page_paid, report.page_dust,
            report.page_cap_excess, report.daily_distributed_after,
        )

        if new_state.day_closed:
            txn.transfer(account.treasury, account.creator, mint, new_state.day_creator_payout)
            logger.info(
                "vault %s day %d closed: creator_payout=%d carry_over_dust=%d",
                account.vault_id, new_state.current_day, new_state.day_creator_payout, new_state.carry_over_dust,
            )

        account.state = new_state
        return report
