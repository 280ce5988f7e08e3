"""
Investor registry: the vault's InvestorRecord table, organized into pages.

Investors are appended in registration order and assigned a fixed
(page, page_index) slot, so a page's membership never changes once assigned.
The page sequence is exposed lazily (`iter_pages`) so callers can walk the set
without materializing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List

from ..core.fee_router.errors import InvalidInvestorDataError
from ..core.fee_router.math import U32_MAX, U64_MAX, checked_sum
from ..core.fee_router.types import InvestorRecord


MAX_INVESTORS_PER_PAGE = 64


@dataclass
class InvestorRegistry:
    """
    Mutable table: investor -> InvestorRecord, plus registration order.

    Records are never removed; `update()` refuses to lower
    `total_fees_received`.
    """

    page_size: int = MAX_INVESTORS_PER_PAGE
    _records: Dict[str, InvestorRecord] = field(default_factory=dict)
    _order: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.page_size, int) or isinstance(self.page_size, bool):
            raise TypeError("page_size must be an int")
        if not (1 <= self.page_size <= MAX_INVESTORS_PER_PAGE):
            raise ValueError(f"page_size must be in [1, {MAX_INVESTORS_PER_PAGE}]")

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, investor: object) -> bool:
        return investor in self._records

    def register(self, investor: str, stream_reference: str, initial_allocation: int) -> InvestorRecord:
        if not isinstance(investor, str) or not investor:
            raise InvalidInvestorDataError("investor must be a non-empty string")
        if not isinstance(stream_reference, str) or not stream_reference:
            raise InvalidInvestorDataError(f"stream_reference for {investor!r} must be a non-empty string")
        if (
            not isinstance(initial_allocation, int)
            or isinstance(initial_allocation, bool)
            or not (0 <= initial_allocation <= U64_MAX)
        ):
            raise InvalidInvestorDataError(f"initial_allocation for {investor!r} must be a u64")
        if investor in self._records:
            raise InvalidInvestorDataError(f"investor {investor!r} already registered")
        slot = len(self._order)
        page, page_index = divmod(slot, self.page_size)
        if page > U32_MAX:
            raise InvalidInvestorDataError("page index out of u32 range")
        record = InvestorRecord(
            investor=investor,
            stream_reference=stream_reference,
            initial_allocation=initial_allocation,
            page=page,
            page_index=page_index,
        )
        self._records[investor] = record
        self._order.append(investor)
        return record

    def get(self, investor: str) -> InvestorRecord:
        try:
            return self._records[investor]
        except KeyError:
            raise InvalidInvestorDataError(f"unknown investor {investor!r}") from None

    def update(self, record: InvestorRecord) -> None:
        current = self.get(record.investor)
        if record.total_fees_received < current.total_fees_received:
            raise InvalidInvestorDataError(f"total_fees_received would decrease for {record.investor!r}")
        if (record.page, record.page_index) != (current.page, current.page_index):
            raise InvalidInvestorDataError(f"page slot of {record.investor!r} is immutable")
        self._records[record.investor] = record

    def set_allocation(self, investor: str, initial_allocation: int) -> InvestorRecord:
        record = replace(self.get(investor), initial_allocation=initial_allocation)
        self._records[investor] = record
        return record

    def page_count(self) -> int:
        return -(-len(self._order) // self.page_size)

    def page(self, page: int) -> tuple[InvestorRecord, ...]:
        if not isinstance(page, int) or isinstance(page, bool) or page < 0:
            raise InvalidInvestorDataError(f"invalid page {page!r}")
        start = page * self.page_size
        return tuple(self._records[i] for i in self._order[start:start + self.page_size])

    def iter_pages(self) -> Iterator[tuple[InvestorRecord, ...]]:
        for page in range(self.page_count()):
            yield self.page(page)

    def records(self) -> List[InvestorRecord]:
        return [self._records[i] for i in self._order]

    def total_allocation(self) -> int:
        return checked_sum(record.initial_allocation for record in self._records.values())

    def copy(self) -> "InvestorRegistry":
        return InvestorRegistry(
            page_size=self.page_size,
            _records=dict(self._records),
            _order=list(self._order),
        )
