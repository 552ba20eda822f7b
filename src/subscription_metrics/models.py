from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .dates import month_key, parse_date


SUBSCRIBE = "subscribe"
CHANGE = "change"
CANCEL = "cancel"
EVENT_TYPES = (SUBSCRIBE, CHANGE, CANCEL)


@dataclass(frozen=True)
class SubscriptionEvent:
    """
    One user action taken from the raw event stream.

    Field names follow Python conventions; ``from_dict``/``as_dict`` convert
    from and to the camelCase wire shape (``userId``, ``promoDiscountPct``...).
    """

    user_id: str
    event_type: str
    date: date
    plan: Optional[str] = None
    promo_discount_pct: Optional[float] = None
    penalty_pct: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SubscriptionEvent":
        """Build an event from an already validated raw mapping."""
        return cls(
            user_id=payload["userId"],
            event_type=payload["type"],
            date=parse_date(payload["date"]),
            plan=payload.get("plan") or None,
            promo_discount_pct=payload.get("promoDiscountPct"),
            penalty_pct=payload.get("penaltyPct"),
        )

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "userId": self.user_id,
            "type": self.event_type,
            "date": self.date.isoformat(),
        }
        if self.plan is not None:
            data["plan"] = self.plan
        if self.promo_discount_pct is not None:
            data["promoDiscountPct"] = self.promo_discount_pct
        if self.penalty_pct is not None:
            data["penaltyPct"] = self.penalty_pct
        return data


@dataclass(frozen=True)
class Segment:
    """
    A contiguous span during which one user stayed on one plan.

    ``end`` is ``None`` while the segment is open. ``penalty_pct`` is only set
    when a cancel closed the segment.
    """

    plan: str
    start: date
    end: Optional[date] = None
    promo_discount_pct: float = 0.0
    penalty_pct: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def close(self, end: date, penalty_pct: Optional[float] = None) -> "Segment":
        return replace(self, end=end, penalty_pct=penalty_pct)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}


@dataclass(frozen=True)
class InvalidEvent:
    index: int
    errors: Tuple[str, ...]

    def as_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "errors": list(self.errors)}


@dataclass(frozen=True)
class UserMonthUsage:
    user_id: str
    revenue: float
    active_days: int


@dataclass(frozen=True)
class MonthlyMetrics:
    year: int
    month: int
    total_revenue: float
    active_users: int
    per_user: Sequence[UserMonthUsage] = field(default_factory=tuple)
    arpu: float = 0.0
    churn: float = 0.0

    @property
    def key(self) -> str:
        return month_key(self.year, self.month)


@dataclass(frozen=True)
class MetricsReport:
    months: Sequence[MonthlyMetrics] = field(default_factory=tuple)

    def get(self, key: str) -> Optional[MonthlyMetrics]:
        for metrics in self.months:
            if metrics.key == key:
                return metrics
        return None

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the report into the JSON-serialisable month map.

        Keys are ``YYYY-MM`` strings in ascending order; nested records use
        camelCase so HTTP callers get the same shape the browser app consumed.
        """

        def _serialize(obj: Any) -> Any:
            if isinstance(obj, MetricsReport):
                return {metrics.key: _serialize(metrics) for metrics in obj.months}
            if isinstance(obj, MonthlyMetrics):
                return {
                    "totalRevenue": obj.total_revenue,
                    "activeUsers": obj.active_users,
                    "perUser": [_serialize(usage) for usage in obj.per_user],
                    "arpu": obj.arpu,
                    "churn": obj.churn,
                }
            if isinstance(obj, UserMonthUsage):
                return {
                    "userId": obj.user_id,
                    "revenue": obj.revenue,
                    "activeDays": obj.active_days,
                }
            return obj

        return _serialize(self)
