from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

from .aggregation import aggregate_by_month
from .configuration import MetricsConfig
from .models import InvalidEvent, MetricsReport, SubscriptionEvent, ValidationResult
from .timeline import Timelines, build_timelines
from .validation import validate_event, validate_events

logger = logging.getLogger(__name__)


class InvalidEventBatchError(ValueError):
    """Raised when a batch contains at least one invalid event; nothing is aggregated."""

    def __init__(self, invalid_events: Sequence[InvalidEvent]):
        self.invalid_events = tuple(invalid_events)
        super().__init__(f"{len(self.invalid_events)} invalid event(s) in batch")

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "message": str(self),
            "invalidEvents": [item.as_dict() for item in self.invalid_events],
        }


class SubscriptionMetricsService:
    """
    Runs the validate -> timeline -> aggregate flow over raw event dicts.

    Each call works on its own copy of the input, so one service instance can
    be shared by concurrent callers.
    """

    def __init__(self, config: Optional[MetricsConfig] = None) -> None:
        self.config = config or MetricsConfig()

    def validate(self, events: Sequence[Any]) -> List[ValidationResult]:
        return [validate_event(event) for event in events]

    def timelines(self, events: Sequence[Any]) -> Timelines:
        invalid = validate_events(events)
        if invalid:
            logger.warning("Rejecting batch of %d events: %d invalid", len(events), len(invalid))
            raise InvalidEventBatchError(invalid)
        parsed = [SubscriptionEvent.from_dict(event) for event in events]
        return build_timelines(parsed, collapse_same_day_change=self.config.collapse_same_day_change)

    def compute(self, events: Sequence[Any]) -> MetricsReport:
        logger.debug("Computing monthly metrics for %d events", len(events))
        timelines = self.timelines(events)
        self._warn_unknown_plans(timelines)
        report = aggregate_by_month(timelines, plans=self.config.plans)
        logger.info("Computed metrics for %d users over %d months", len(timelines), len(report.months))
        return report

    def _warn_unknown_plans(self, timelines: Timelines) -> None:
        unknown = sorted(
            {
                segment.plan
                for segments in timelines.values()
                for segment in segments
                if segment.plan not in self.config.plans
            }
        )
        if unknown:
            logger.warning("Plans missing from catalog, priced at 0: %s", ", ".join(unknown))
