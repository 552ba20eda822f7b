"""Tests for loading raw events from SQL."""

import pytest
from sqlalchemy import create_engine, text

from subscription_metrics.configuration import RepositoryConfig
from subscription_metrics.repository import SQLSubscriptionEventRepository, build_repository_from_env
from subscription_metrics.service import SubscriptionMetricsService


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'events.db'}")
    with engine.begin() as connection:
        connection.execute(
            text(
                """
                CREATE TABLE subscription_events (
                    user_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    plan TEXT,
                    event_date TEXT NOT NULL,
                    promo_discount_pct REAL,
                    penalty_pct REAL
                )
                """
            )
        )
        connection.execute(
            text(
                """
                INSERT INTO subscription_events
                    (user_id, event_type, plan, event_date, promo_discount_pct, penalty_pct)
                VALUES (:user_id, :event_type, :plan, :event_date, :promo, :penalty)
                """
            ),
            [
                {"user_id": "u3", "event_type": "cancel", "plan": None, "event_date": "2025-10-12", "promo": None, "penalty": 10},
                {"user_id": "u3", "event_type": "subscribe", "plan": "standard", "event_date": "2025-09-10", "promo": None, "penalty": None},
                {"user_id": "u2", "event_type": "subscribe", "plan": "premium", "event_date": "2025-10-01", "promo": 20, "penalty": None},
            ],
        )
    yield engine
    engine.dispose()


class TestSQLRepository:
    def test_rows_become_wire_dicts(self, engine):
        events = SQLSubscriptionEventRepository(engine).load()

        assert events[0] == {"userId": "u3", "type": "subscribe", "plan": "standard", "date": "2025-09-10"}
        assert events[1] == {"userId": "u2", "type": "subscribe", "plan": "premium", "date": "2025-10-01", "promoDiscountPct": 20.0}
        assert events[2] == {"userId": "u3", "type": "cancel", "date": "2025-10-12", "penaltyPct": 10.0}

    def test_loaded_events_feed_the_service(self, engine):
        events = SQLSubscriptionEventRepository(engine).load()

        report = SubscriptionMetricsService().compute(events)

        assert report.get("2025-10").total_revenue == pytest.approx(24.0 + 20.0 * 12 / 31 + 2.0)

    def test_integer_user_ids_are_loaded_as_strings(self, engine):
        with engine.begin() as connection:
            connection.execute(
                text(
                    """
                    CREATE TABLE numeric_events (
                        user_id INTEGER NOT NULL,
                        event_type TEXT NOT NULL,
                        plan TEXT,
                        event_date TEXT NOT NULL,
                        promo_discount_pct REAL,
                        penalty_pct REAL
                    )
                    """
                )
            )
            connection.execute(
                text(
                    """
                    INSERT INTO numeric_events (user_id, event_type, plan, event_date)
                    VALUES (7, 'subscribe', 'basic', '2025-10-01')
                    """
                )
            )

        events = SQLSubscriptionEventRepository(engine, table_name="numeric_events").load()

        assert events == ({"userId": "7", "type": "subscribe", "plan": "basic", "date": "2025-10-01"},)
        report = SubscriptionMetricsService().compute(events)
        assert report.get("2025-10").per_user[0].user_id == "7"

    def test_rejects_unsafe_table_name(self, engine):
        with pytest.raises(ValueError):
            SQLSubscriptionEventRepository(engine, table_name="events; DROP TABLE x")


class TestBuildRepository:
    def test_none_without_url(self):
        assert build_repository_from_env(RepositoryConfig(database_url=None)) is None

    def test_builds_sql_repository(self, tmp_path):
        repository = build_repository_from_env(RepositoryConfig(database_url=f"sqlite:///{tmp_path / 'x.db'}", table_name="events"))

        assert isinstance(repository, SQLSubscriptionEventRepository)
        assert repository.table_name == "events"

    def test_config_from_env(self, monkeypatch):
        monkeypatch.setenv("SUBSCRIPTION_METRICS_DATABASE_URL", "sqlite://")
        monkeypatch.delenv("SUBSCRIPTION_METRICS_TABLE", raising=False)

        config = RepositoryConfig.from_env()

        assert config.database_url == "sqlite://"
        assert config.table_name == "subscription_events"
