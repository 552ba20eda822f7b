from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, List, Sequence

from .dates import parse_date
from .models import CANCEL, EVENT_TYPES, InvalidEvent, ValidationResult


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_valid_pct(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return 0 <= value <= 100


def validate_event(event: Any) -> ValidationResult:
    """
    Check one raw event record and report every failing rule.

    Checks are independent of each other, so a record missing several fields
    gets one message per field instead of stopping at the first problem.
    """
    errors: List[str] = []
    if not isinstance(event, Mapping):
        errors.append("invalid event")
        event = {}

    if _is_blank(event.get("userId")):
        errors.append("missing userId")

    event_type = event.get("type")
    if event_type not in EVENT_TYPES:
        errors.append("invalid type")

    if event_type != CANCEL and _is_blank(event.get("plan")):
        errors.append("missing plan")

    raw_date = event.get("date")
    if raw_date is None or raw_date == "":
        errors.append("missing date")
    else:
        try:
            parse_date(raw_date)
        except ValueError:
            errors.append("invalid date")

    promo = event.get("promoDiscountPct")
    if promo is not None and not _is_valid_pct(promo):
        errors.append("invalid promoDiscountPct")

    penalty = event.get("penaltyPct")
    if penalty is not None and not _is_valid_pct(penalty):
        errors.append("invalid penaltyPct")

    return ValidationResult(valid=not errors, errors=tuple(errors))


def validate_events(events: Sequence[Any]) -> List[InvalidEvent]:
    """Validate a batch and return the failing entries with their position."""
    invalid: List[InvalidEvent] = []
    for index, event in enumerate(events):
        result = validate_event(event)
        if not result.valid:
            invalid.append(InvalidEvent(index=index, errors=result.errors))
    return invalid
