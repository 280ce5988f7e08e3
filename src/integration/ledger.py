"""
Append-only audit ledger of accepted page calls.

Each entry commits to its predecessor (sha256 over canonical JSON with a
domain-separation prefix), so any in-place edit is detectable with `verify()`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..state.canonical import commitment
from .collaborators import LedgerRecord


LEDGER_VERSION = 1
GENESIS_HASH = "0x" + "00" * 32


def record_to_dict(record: LedgerRecord) -> Dict[str, Any]:
    return {
        "vault_id": record.vault_id,
        "day": record.day,
        "page": record.page,
        "timestamp": record.timestamp,
        "payouts": [[investor, amount] for investor, amount in record.payouts],
        "creator_payout": record.creator_payout,
        "claimed_quote": record.claimed_quote,
        "day_closed": record.day_closed,
    }


@dataclass(frozen=True)
class LedgerEntry:
    index: int
    record: LedgerRecord
    prev_hash: str
    entry_hash: str


def _entry_hash(index: int, record: LedgerRecord, prev_hash: str) -> str:
    return commitment(
        "ledger-entry",
        {"index": index, "prev": prev_hash, "record": record_to_dict(record)},
        version=LEDGER_VERSION,
    )


class DistributionLedger:
    """In-memory `LedgerSink` with a hash chain."""

    def __init__(self) -> None:
        self._entries: List[LedgerEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def head(self) -> str:
        return self._entries[-1].entry_hash if self._entries else GENESIS_HASH

    def append(self, record: LedgerRecord) -> LedgerEntry:
        index = len(self._entries)
        prev = self.head
        entry = LedgerEntry(index=index, record=record, prev_hash=prev, entry_hash=_entry_hash(index, record, prev))
        self._entries.append(entry)
        return entry

    def entries(self, vault_id: Optional[str] = None) -> List[LedgerEntry]:
        if vault_id is None:
            return list(self._entries)
        return [e for e in self._entries if e.record.vault_id == vault_id]

    def total_paid_to(self, investor: str, vault_id: Optional[str] = None) -> int:
        return sum(
            amount
            for e in self.entries(vault_id)
            for who, amount in e.record.payouts
            if who == investor
        )

    def verify(self) -> bool:
        prev = GENESIS_HASH
        for i, e in enumerate(self._entries):
            if e.index != i or e.prev_hash != prev:
                return False
            if e.entry_hash != _entry_hash(i, e.record, prev):
                return False
            prev = e.entry_hash
        return True
