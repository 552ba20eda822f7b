import pytest

from subscription_metrics.samples import sample_events


@pytest.fixture
def demo_events():
    """The built-in six-event demo set (fresh copy per test)."""
    return sample_events()
