"""
Vault store: the durable side of the fee router.

Holds one `VaultAccount` per `vault_id` (policy, distribution cursor, investor
registry, attached fee position) plus the shared `TokenBalances` table that
treasuries, investors and creators settle against.

Mutations go through `transaction()`: it takes the vault's lock, hands out a
working copy of the account and a transfer journal, and commits both only when
the block exits cleanly. On any exception the fee position is restored from its
snapshot and nothing else changes.

Snapshots (`to_snapshot` / `from_snapshot`) are deterministic dicts suitable
for canonical JSON; fee positions are live capabilities and are not persisted
(re-attach them after loading).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from ..core.fee_router.errors import (
    DayInProgressError,
    InvalidAllocationError,
    InvalidInvestorDataError,
    InvalidPoolConfigurationError,
    InvalidQuoteMintError,
    UnauthorizedError,
    UnknownVaultError,
    VaultAlreadyInitializedError,
)
from ..core.fee_router.guards import is_day_open
from ..core.fee_router.math import U64_MAX
from ..core.fee_router.state import (
    initial_state,
    policy_from_dict,
    policy_to_dict,
    record_from_dict,
    record_to_dict,
    state_from_dict,
    state_to_dict,
)
from ..core.fee_router.types import DistributionState, VaultPolicy
from ..state.balances import TokenBalances, Transfer
from ..state.canonical import commitment
from ..state.investors import MAX_INVESTORS_PER_PAGE, InvestorRegistry
from .collaborators import FeeSource


logger = logging.getLogger(__name__)

VAULT_SNAPSHOT_VERSION = 1


def treasury_owner(vault_id: str) -> str:
    return f"treasury:{vault_id}"


@dataclass
class VaultAccount:
    vault_id: str
    authority: str
    creator: str
    policy: VaultPolicy
    state: DistributionState = field(default_factory=initial_state)
    investors: InvestorRegistry = field(default_factory=InvestorRegistry)
    fee_source: Optional[FeeSource] = None

    @property
    def treasury(self) -> str:
        return treasury_owner(self.vault_id)

    def copy(self) -> "VaultAccount":
        return replace(self, investors=self.investors.copy())


@dataclass
class VaultTransaction:
    """Working copy handed out by `VaultStore.transaction()`."""

    account: VaultAccount
    journal: List[Transfer] = field(default_factory=list)

    def mint_to(self, owner: str, mint: str, amount: int) -> None:
        if amount:
            self.journal.append((None, owner, mint, amount))

    def transfer(self, src: str, dst: str, mint: str, amount: int) -> None:
        if amount:
            self.journal.append((src, dst, mint, amount))


def _parse_investor(item: Any) -> tuple[str, str, int]:
    if isinstance(item, Mapping):
        try:
            return item["investor"], item["stream_reference"], item["initial_allocation"]
        except KeyError as exc:
            raise InvalidInvestorDataError(f"investor entry missing {exc.args[0]!r}") from None
    if isinstance(item, (tuple, list)) and len(item) == 3:
        return item[0], item[1], item[2]
    raise InvalidInvestorDataError(f"malformed investor entry: {item!r}")


class VaultStore:
    """In-memory vault accounts keyed by `vault_id`, plus token balances."""

    def __init__(self, *, page_size: int = MAX_INVESTORS_PER_PAGE) -> None:
        self.page_size = page_size
        self.balances = TokenBalances()
        self._vaults: Dict[str, VaultAccount] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._balances_lock = threading.Lock()

    def __contains__(self, vault_id: object) -> bool:
        return vault_id in self._vaults

    def vault_ids(self) -> List[str]:
        return sorted(self._vaults)

    def get(self, vault_id: str) -> VaultAccount:
        """Return a copy of the committed account; mutate via `transaction()`."""
        try:
            return self._vaults[vault_id].copy()
        except KeyError:
            raise UnknownVaultError(f"unknown vault {vault_id!r}") from None

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def initialize_vault(
        self,
        vault_id: str,
        *,
        authority: str,
        creator: str,
        policy: VaultPolicy,
    ) -> VaultAccount:
        if not isinstance(vault_id, str) or not vault_id:
            raise UnknownVaultError("vault_id must be a non-empty string")
        for name, value in (("authority", authority), ("creator", creator)):
            if not isinstance(value, str) or not value:
                raise UnauthorizedError(f"{name} must be a non-empty string")
        with self._registry_lock:
            if vault_id in self._vaults:
                raise VaultAlreadyInitializedError(f"vault {vault_id!r}")
            account = VaultAccount(
                vault_id=vault_id,
                authority=authority,
                creator=creator,
                policy=policy,
                investors=InvestorRegistry(page_size=self.page_size),
            )
            self._vaults[vault_id] = account
            self._locks[vault_id] = threading.Lock()
        logger.info(
            "vault %s initialized (quote_mint=%s share_bps=%d min_payout=%d daily_cap=%s)",
            vault_id, policy.quote_mint, policy.investor_fee_share_bps, policy.min_payout, policy.daily_cap,
        )
        return account.copy()

    def attach_fee_position(self, vault_id: str, *, authority: str, fee_source: FeeSource) -> None:
        with self.transaction(vault_id) as txn:
            _require_authority(txn.account, authority)
            quote_mint = getattr(fee_source, "quote_mint", None)
            if quote_mint is not None and quote_mint != txn.account.policy.quote_mint:
                raise InvalidQuoteMintError(
                    f"position quote mint {quote_mint!r} != vault quote mint {txn.account.policy.quote_mint!r}"
                )
            if quote_mint is not None and getattr(fee_source, "base_mint", None) == quote_mint:
                raise InvalidPoolConfigurationError("position base mint equals quote mint")
            txn.account.fee_source = fee_source
        logger.info("fee position attached to vault %s", vault_id)

    def update_investor_data(
        self,
        vault_id: str,
        *,
        authority: str,
        total_allocation: int,
        investors: Iterable[Any] = (),
    ) -> VaultAccount:
        """
        Set Y0 and register or update investors.

        Each investor entry is a mapping with ``investor``, ``stream_reference``
        and ``initial_allocation`` keys, or the same three values as a tuple.
        Existing investors keep their page slot; only the allocation may change,
        and only while no day is open.
        """
        if not isinstance(total_allocation, int) or isinstance(total_allocation, bool) or not (
            0 <= total_allocation <= U64_MAX
        ):
            raise InvalidAllocationError(f"total_allocation must be a u64: {total_allocation!r}")
        with self.transaction(vault_id) as txn:
            account = txn.account
            _require_authority(account, authority)
            if is_day_open(account.state):
                raise DayInProgressError(
                    f"day {account.state.current_day} open at page {account.state.current_page}"
                )
            for item in investors:
                investor, stream_reference, allocation = _parse_investor(item)
                if investor in account.investors:
                    existing = account.investors.get(investor)
                    if existing.stream_reference != stream_reference:
                        raise InvalidInvestorDataError(f"stream_reference of {investor!r} cannot change")
                    if not isinstance(allocation, int) or isinstance(allocation, bool) or not (
                        0 <= allocation <= U64_MAX
                    ):
                        raise InvalidInvestorDataError(f"initial_allocation for {investor!r} must be a u64")
                    account.investors.set_allocation(investor, allocation)
                else:
                    account.investors.register(investor, stream_reference, allocation)
            registered = account.investors.total_allocation()
            if registered > total_allocation:
                raise InvalidAllocationError(
                    f"registered allocations {registered} exceed total_allocation {total_allocation}"
                )
            account.policy = replace(account.policy, total_investor_allocation=total_allocation)
        logger.info(
            "vault %s investor data updated (investors=%d pages=%d Y0=%d)",
            vault_id, len(account.investors), account.investors.page_count(), total_allocation,
        )
        return self.get(vault_id)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self, vault_id: str) -> Iterator[VaultTransaction]:
        """
        Serialize work on one vault and commit it atomically.

        Yields a `VaultTransaction` whose account is a private copy. On clean
        exit the account and journaled transfers are committed; on exception
        the fee position is rolled back and the exception propagates.
        """
        lock = self._lock_for(vault_id)
        with lock:
            committed = self._vaults[vault_id]
            txn = VaultTransaction(account=committed.copy())
            fee_source = committed.fee_source
            saved = fee_source.snapshot() if fee_source is not None else None
            try:
                yield txn
                with self._balances_lock:
                    self.balances.apply_batch(txn.journal)
            except BaseException:
                if fee_source is not None:
                    fee_source.restore(saved)
                raise
            self._vaults[vault_id] = txn.account

    def _lock_for(self, vault_id: str) -> threading.Lock:
        with self._registry_lock:
            try:
                return self._locks[vault_id]
            except KeyError:
                raise UnknownVaultError(f"unknown vault {vault_id!r}") from None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_snapshot(self) -> Dict[str, Any]:
        vaults: List[Dict[str, Any]] = []
        for vault_id in self.vault_ids():
            account = self._vaults[vault_id]
            vaults.append(
                {
                    "vault_id": vault_id,
                    "authority": account.authority,
                    "creator": account.creator,
                    "policy": policy_to_dict(account.policy),
                    "state": state_to_dict(account.state),
                    "page_size": account.investors.page_size,
                    "investors": [record_to_dict(r) for r in account.investors.records()],
                }
            )
        balances = [
            {"owner": owner, "mint": mint, "amount": int(amount)}
            for (owner, mint), amount in self.balances.get_all_balances().items()
        ]
        balances.sort(key=lambda e: (e["owner"], e["mint"]))
        return {
            "version": VAULT_SNAPSHOT_VERSION,
            "page_size": self.page_size,
            "vaults": vaults,
            "balances": balances,
        }

    def commitment(self) -> str:
        return commitment("vault_store", self.to_snapshot(), version=VAULT_SNAPSHOT_VERSION)

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any]) -> "VaultStore":
        if not isinstance(snapshot, Mapping):
            raise TypeError("snapshot must be a mapping")
        version = snapshot.get("version")
        if version != VAULT_SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version: {version!r}")
        store = cls(page_size=snapshot.get("page_size", MAX_INVESTORS_PER_PAGE))
        for entry in snapshot.get("vaults", []):
            registry = InvestorRegistry(page_size=entry["page_size"])
            for raw in entry["investors"]:
                record = record_from_dict(raw)
                registered = registry.register(record.investor, record.stream_reference, record.initial_allocation)
                if (registered.page, registered.page_index) != (record.page, record.page_index):
                    raise InvalidInvestorDataError(f"snapshot slot mismatch for {record.investor!r}")
                registry.update(record)
            vault_id = entry["vault_id"]
            if vault_id in store._vaults:
                raise VaultAlreadyInitializedError(f"duplicate vault {vault_id!r} in snapshot")
            store._vaults[vault_id] = VaultAccount(
                vault_id=vault_id,
                authority=entry["authority"],
                creator=entry["creator"],
                policy=policy_from_dict(entry["policy"]),
                state=state_from_dict(entry["state"]),
                investors=registry,
            )
            store._locks[vault_id] = threading.Lock()
        seen: set[tuple[str, str]] = set()
        for entry in snapshot.get("balances", []):
            key = (entry["owner"], entry["mint"])
            if key in seen:
                raise ValueError(f"duplicate balance entry {key!r}")
            seen.add(key)
            store.balances.set(entry["owner"], entry["mint"], entry["amount"])
        return store


def _require_authority(account: VaultAccount, authority: str) -> None:
    if authority != account.authority:
        raise UnauthorizedError(f"{authority!r} is not the authority of vault {account.vault_id!r}")

