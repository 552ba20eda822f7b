from __future__ import annotations

from typing import Dict, Iterable, Tuple

from .dates import ONE_DAY
from .models import CANCEL, CHANGE, SUBSCRIBE, Segment, SubscriptionEvent

Timelines = Dict[str, Tuple[Segment, ...]]


def _open_segment(event: SubscriptionEvent) -> Segment:
    return Segment(
        plan=event.plan or "",
        start=event.date,
        promo_discount_pct=event.promo_discount_pct or 0.0,
    )


def _apply_event(
    segments: Tuple[Segment, ...],
    event: SubscriptionEvent,
    collapse_same_day_change: bool,
) -> Tuple[Segment, ...]:
    last = segments[-1] if segments else None

    if event.event_type == CANCEL:
        if last is None or not last.is_open:
            return segments
        closed = last.close(event.date, penalty_pct=event.penalty_pct or 0.0)
        return segments[:-1] + (closed,)

    if event.event_type not in (SUBSCRIBE, CHANGE):
        return segments

    opened = _open_segment(event)
    if last is None:
        return (opened,)
    if event.event_type == SUBSCRIBE and not last.is_open:
        return segments + (opened,)

    if collapse_same_day_change and last.start == event.date:
        return segments[:-1] + (opened,)

    # The prior segment ends the day before, even when a cancel already closed
    # it; its penalty is kept. A same-day change leaves end == start - 1, i.e.
    # zero active days.
    return segments[:-1] + (last.close(event.date - ONE_DAY, penalty_pct=last.penalty_pct), opened)


def build_timelines(
    events: Iterable[SubscriptionEvent],
    collapse_same_day_change: bool = False,
) -> Timelines:
    """
    Fold events into per-user, chronologically ordered segment tuples.

    Events are sorted by date with a stable sort, so events sharing a date keep
    the order they were supplied in. Every step builds a new tuple; neither the
    events nor previously produced segments are modified.
    """
    timelines: Timelines = {}
    for event in sorted(events, key=lambda item: item.date):
        current = timelines.get(event.user_id, ())
        timelines[event.user_id] = _apply_event(current, event, collapse_same_day_change)
    return timelines
