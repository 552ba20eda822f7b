from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, Row

from .configuration import RepositoryConfig

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SubscriptionEventRepository:
    """
    Interface for loading raw subscription events.

    Implementations return plain camelCase dicts, exactly what an HTTP caller
    would send, so stored events go through the same validation as inline ones.
    """

    def load(self) -> Sequence[Dict[str, Any]]:
        raise NotImplementedError


class SQLSubscriptionEventRepository(SubscriptionEventRepository):
    """
    Load events from a single table.

    Expected columns:
      - user_id, event_type, plan, event_date, promo_discount_pct, penalty_pct
    """

    def __init__(self, engine: Engine, table_name: str = "subscription_events"):
        if not _IDENTIFIER.match(table_name):
            raise ValueError(f"invalid table name {table_name!r}")
        self.engine = engine
        self.table_name = table_name

    def load(self) -> Sequence[Dict[str, Any]]:
        query = text(
            f"""
            SELECT user_id, event_type, plan, event_date, promo_discount_pct, penalty_pct
            FROM {self.table_name}
            ORDER BY event_date ASC
            """
        )
        with self.engine.connect() as connection:
            rows = connection.execute(query).fetchall()
        logger.debug("Loaded %d events from %s", len(rows), self.table_name)
        return tuple(self._row_to_event(row) for row in rows)

    @staticmethod
    def _row_to_event(row: Row) -> Dict[str, Any]:
        event_date = row.event_date
        if isinstance(event_date, date):
            event_date = event_date.isoformat()
        event: Dict[str, Any] = {
            "userId": str(row.user_id),
            "type": row.event_type,
            "date": event_date,
        }
        if row.plan is not None:
            event["plan"] = row.plan
        if row.promo_discount_pct is not None:
            event["promoDiscountPct"] = float(row.promo_discount_pct)
        if row.penalty_pct is not None:
            event["penaltyPct"] = float(row.penalty_pct)
        return event


def build_repository_from_env(config: Optional[RepositoryConfig] = None) -> Optional[SubscriptionEventRepository]:
    cfg = config or RepositoryConfig.from_env()
    if cfg.database_url:
        engine = create_engine(cfg.database_url)
        return SQLSubscriptionEventRepository(engine, table_name=cfg.table_name)
    return None
