from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Set, Tuple

from .dates import iter_months
from .models import MetricsReport, MonthlyMetrics, Segment, UserMonthUsage
from .proration import active_days_in_month, charge_for_segment_in_month

MonthKey = Tuple[int, int]


def _segment_months(segment: Segment) -> Set[MonthKey]:
    # Open segments only contribute their start month; later months appear only
    # when some other segment reaches them.
    if segment.end is None:
        return {(segment.start.year, segment.start.month)}
    return set(iter_months(segment.start, segment.end))


def collect_months(timelines: Mapping[str, Sequence[Segment]]) -> List[MonthKey]:
    months: Set[MonthKey] = set()
    for segments in timelines.values():
        for segment in segments:
            months |= _segment_months(segment)
    return sorted(months)


def _month_usage(
    timelines: Mapping[str, Sequence[Segment]],
    year: int,
    month: int,
    plans: Optional[Mapping[str, float]],
) -> List[UserMonthUsage]:
    usage: List[UserMonthUsage] = []
    for user_id, segments in timelines.items():
        revenue = sum((charge_for_segment_in_month(segment, year, month, plans) for segment in segments), 0.0)
        active_days = sum(active_days_in_month(segment, year, month) for segment in segments)
        usage.append(UserMonthUsage(user_id=user_id, revenue=revenue, active_days=active_days))
    return usage


def _users_ending_in(timelines: Mapping[str, Sequence[Segment]], year: int, month: int) -> Set[str]:
    return {
        user_id
        for user_id, segments in timelines.items()
        for segment in segments
        if segment.end is not None and (segment.end.year, segment.end.month) == (year, month)
    }


def aggregate_by_month(
    timelines: Mapping[str, Sequence[Segment]],
    plans: Optional[Mapping[str, float]] = None,
) -> MetricsReport:
    """
    Compute revenue, active users, ARPU and churn for every month the timelines touch.

    Churn for a month is the number of distinct users with a segment ending in
    that month divided by the active users of the previous enumerated month.
    Any closed segment counts, plan changes included, and the ending user is
    not checked against the previous month's active set, so the figure is an
    approximation.
    """
    months: List[MonthlyMetrics] = []
    previous_active = 0

    for index, (year, month) in enumerate(collect_months(timelines)):
        per_user = _month_usage(timelines, year, month, plans)
        total_revenue = sum((usage.revenue for usage in per_user), 0.0)
        active_users = sum(1 for usage in per_user if usage.active_days > 0)
        arpu = total_revenue / active_users if active_users else 0.0

        churn = 0.0
        if index > 0 and previous_active > 0:
            churn = len(_users_ending_in(timelines, year, month)) / previous_active

        months.append(
            MonthlyMetrics(
                year=year,
                month=month,
                total_revenue=total_revenue,
                active_users=active_users,
                per_user=tuple(per_user),
                arpu=arpu,
                churn=churn,
            )
        )
        previous_active = active_users

    return MetricsReport(months=tuple(months))
