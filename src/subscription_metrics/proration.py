from __future__ import annotations

from typing import Mapping, Optional

from .configuration import DEFAULT_PLANS
from .dates import days_in_month, month_bounds, overlap_days
from .models import Segment


def plan_price(plan: str, plans: Optional[Mapping[str, float]] = None) -> float:
    """Monthly price for ``plan``; plans missing from the catalog price at 0."""
    catalog = DEFAULT_PLANS if plans is None else plans
    return float(catalog.get(plan, 0.0))


def active_days_in_month(segment: Segment, year: int, month: int) -> int:
    """
    Inclusive days of ``segment`` inside the month.

    An open segment counts as active through the end of the queried month.
    """
    month_start, month_end = month_bounds(year, month)
    segment_end = segment.end if segment.end is not None else month_end
    return overlap_days(segment.start, segment_end, month_start, month_end)


def charge_for_segment_in_month(
    segment: Segment,
    year: int,
    month: int,
    plans: Optional[Mapping[str, float]] = None,
) -> float:
    """
    Revenue attributable to ``segment`` within ``year``/``month`` (1-12).

    The prorated share of the monthly price is reduced by the segment's promo
    discount. A cancellation penalty is charged at full price, not prorated, in
    the month the segment ends.
    """
    used_days = active_days_in_month(segment, year, month)
    if used_days == 0:
        return 0.0

    price = plan_price(segment.plan, plans)
    base_prorata = price * used_days / days_in_month(year, month)
    after_discount = base_prorata * (1 - (segment.promo_discount_pct or 0.0) / 100)

    penalty_value = 0.0
    penalty = segment.penalty_pct or 0.0
    ends_here = segment.end is not None and (segment.end.year, segment.end.month) == (year, month)
    if penalty > 0 and ends_here:
        penalty_value = price * penalty / 100

    return after_discount + penalty_value
