"""
Subscription metrics engine.

Turns subscribe/change/cancel events into per-user plan timelines and then
into monthly prorated revenue, active users, ARPU and churn.
"""

from .aggregation import aggregate_by_month  # noqa: F401
from .configuration import DEFAULT_PLANS, MetricsConfig, RepositoryConfig  # noqa: F401
from .models import (  # noqa: F401
    InvalidEvent,
    MetricsReport,
    MonthlyMetrics,
    Segment,
    SubscriptionEvent,
    UserMonthUsage,
    ValidationResult,
)
from .proration import active_days_in_month, charge_for_segment_in_month, plan_price  # noqa: F401
from .repository import (  # noqa: F401
    SQLSubscriptionEventRepository,
    SubscriptionEventRepository,
    build_repository_from_env,
)
from .service import InvalidEventBatchError, SubscriptionMetricsService  # noqa: F401
from .timeline import build_timelines  # noqa: F401
from .validation import validate_event, validate_events  # noqa: F401
