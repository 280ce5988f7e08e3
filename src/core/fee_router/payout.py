"""Pro-rata payout computation for one page of investors.

Order of operations (fixed; both the engine and the tests rely on it):

1. raw_i = floor(day_budget * locked_i / locked_total)
2. raw_i < min_payout  -> not paid, deferred as dust
3. if sum(payable) > cap_remaining, scale the payable set down uniformly so the
   page pays exactly cap_remaining (largest-remainder for the leftover units);
   what the cap removes is cap excess, owed to the creator, not dust.

Scaled amounts are not run through the dust filter a second time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .errors import InvalidInvestorDataError
from .math import checked_add, checked_sub, mul_div_floor, require_u64
from .types import PageEntry, Payout, PayoutStatus


@dataclass(frozen=True)
class PagePayouts:
    payouts: tuple[Payout, ...]
    locked_sum: int
    allocated: int
    paid: int
    dust: int
    cap_excess: int

    @property
    def cap_hit(self) -> bool:
        return self.cap_excess > 0


def raw_payout(day_budget: int, locked_amount: int, locked_total: int) -> int:
    """``floor(day_budget * locked_amount / locked_total)``; 0 when nothing is locked."""
    if locked_total == 0:
        return 0
    return mul_div_floor(day_budget, locked_amount, locked_total)


def clamp_to_locked_remaining(entries: Sequence[PageEntry], locked_remaining: int) -> tuple[PageEntry, ...]:
    """Clamp page locked amounts so they fit in what is left of the day's locked total.

    A vesting top-up after page 0 can raise an investor's locked amount above
    what the day captured; the excess earns nothing today. Clamping is applied
    in page order.
    """
    clamped: list[PageEntry] = []
    for e in entries:
        amount = min(e.locked_amount, locked_remaining)
        locked_remaining -= amount
        clamped.append(e if amount == e.locked_amount else PageEntry(e.investor, amount))
    return tuple(clamped)


def scale_to_cap(amounts: Sequence[int], cap_remaining: int) -> list[int]:
    """Scale *amounts* down so they sum to exactly *cap_remaining*.

    Each amount becomes ``floor(a * cap / total)``; the leftover units (fewer
    than ``len(amounts)``) go one each to the largest fractional remainders,
    ties broken by position. Requires ``sum(amounts) > cap_remaining``.
    """
    total = sum(amounts)
    if total <= cap_remaining:
        raise ValueError("scale_to_cap requires sum(amounts) > cap_remaining")
    scaled: list[int] = []
    remainders: list[tuple[int, int]] = []
    for i, a in enumerate(amounts):
        s = mul_div_floor(a, cap_remaining, total)
        scaled.append(s)
        remainders.append((a * cap_remaining - s * total, i))
    leftover = cap_remaining - sum(scaled)
    remainders.sort(key=lambda t: (-t[0], t[1]))
    for _rem, i in remainders[:leftover]:
        scaled[i] += 1
    return scaled


def compute_page_payouts(
    entries: Sequence[PageEntry],
    *,
    day_budget: int,
    locked_total: int,
    min_payout: int,
    cap_remaining: int | None,
) -> PagePayouts:
    """Compute the payouts of one page. Pure; applies nothing."""
    require_u64(day_budget, name="day_budget")
    require_u64(locked_total, name="locked_total")

    raws: list[int] = []
    locked_sum = 0
    for e in entries:
        require_u64(e.locked_amount, name=f"locked_amount[{e.investor}]")
        locked_sum = checked_add(locked_sum, e.locked_amount)
        raws.append(raw_payout(day_budget, e.locked_amount, locked_total))
    if locked_sum > locked_total:
        raise InvalidInvestorDataError("page locked sum exceeds day locked total")

    payable_idx = [i for i, r in enumerate(raws) if r >= min_payout]
    payable_sum = sum(raws[i] for i in payable_idx)

    final = list(raws)
    cap_excess = 0
    if cap_remaining is not None and payable_sum > cap_remaining:
        scaled = scale_to_cap([raws[i] for i in payable_idx], cap_remaining)
        for i, s in zip(payable_idx, scaled):
            final[i] = s
        cap_excess = checked_sub(payable_sum, cap_remaining)

    payable = set(payable_idx)
    payouts: list[Payout] = []
    paid = 0
    dust = 0
    for i, e in enumerate(entries):
        if i not in payable:
            dust = checked_add(dust, raws[i])
            payouts.append(Payout(e.investor, e.locked_amount, raws[i], 0, PayoutStatus.DUST))
            continue
        status = PayoutStatus.CAPPED if final[i] < raws[i] else PayoutStatus.PAID
        paid = checked_add(paid, final[i])
        payouts.append(Payout(e.investor, e.locked_amount, raws[i], final[i], status))

    return PagePayouts(
        payouts=tuple(payouts),
        locked_sum=locked_sum,
        allocated=checked_add(payable_sum, dust),
        paid=paid,
        dust=dust,
        cap_excess=cap_excess,
    )
