"""
Engine configuration: plan catalog and timeline options.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_PLANS: Mapping[str, float] = {
    "basic": 10.0,
    "standard": 20.0,
    "premium": 30.0,
}


class MetricsConfig(BaseModel):
    plans: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_PLANS))
    """Monthly price per plan name"""

    collapse_same_day_change: bool = False
    """
    Replace, instead of close, a segment when a change happens on its start date.
    Off by default: the prior segment is kept with end = start - 1 (zero days).
    """

    @field_validator("plans")
    @classmethod
    def _validate_prices(cls, plans: Dict[str, float]) -> Dict[str, float]:
        for name, price in plans.items():
            if price <= 0:
                raise ValueError(f"price for plan {name!r} must be positive")
        return plans

    @classmethod
    def from_env(cls) -> "MetricsConfig":
        collapse = _env_bool("COLLAPSE_SAME_DAY_CHANGE", False)
        plans = _env_json_object("SUBSCRIPTION_PLANS")
        if plans is not None:
            try:
                return cls(plans=plans, collapse_same_day_change=collapse)
            except ValidationError as exc:
                logger.warning("Ignoring invalid SUBSCRIPTION_PLANS: %s", exc)
        return cls(collapse_same_day_change=collapse)


class RepositoryConfig(BaseModel):
    database_url: Optional[str] = None
    table_name: str = "subscription_events"

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        return cls(
            database_url=os.getenv("SUBSCRIPTION_METRICS_DATABASE_URL"),
            table_name=os.getenv("SUBSCRIPTION_METRICS_TABLE", "subscription_events"),
        )


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_json_object(name: str) -> Optional[Dict[str, float]]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed %s: %s", name, exc)
        return None
    if not isinstance(parsed, dict):
        logger.warning("Ignoring %s: expected a JSON object", name)
        return None
    return parsed
