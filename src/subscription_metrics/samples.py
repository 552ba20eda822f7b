from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

SAMPLE_EVENTS: Sequence[Dict[str, Any]] = (
    {"userId": "u1", "type": "subscribe", "plan": "basic", "date": "2025-10-05"},
    {"userId": "u1", "type": "change", "plan": "standard", "date": "2025-10-20", "promoDiscountPct": 0},
    {"userId": "u2", "type": "subscribe", "plan": "premium", "date": "2025-10-01", "promoDiscountPct": 20},
    {"userId": "u3", "type": "subscribe", "plan": "standard", "date": "2025-09-10"},
    {"userId": "u3", "type": "cancel", "date": "2025-10-12", "penaltyPct": 10},
    {"userId": "u4", "type": "subscribe", "plan": "basic", "date": "2025-11-03"},
)


def sample_events() -> List[Dict[str, Any]]:
    """Fresh copies of the demo events; callers may modify them freely."""
    return [dict(event) for event in SAMPLE_EVENTS]


def export_events_json(events: Sequence[Any]) -> str:
    return json.dumps(list(events), indent=2)
