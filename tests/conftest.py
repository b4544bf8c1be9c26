"""
Test configuration for the eco-points server.
"""
import os
import threading

import django
import pytest


def pytest_configure():
    """Configure Django settings for testing."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'eco_server.settings.test')
    django.setup()


class FakeClock:
    """Millisecond clock that only moves when told to"""

    def __init__(self, start_ms=1_700_000_000_000):
        self.now_ms = start_ms
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            return self.now_ms

    def advance(self, ms):
        with self._lock:
            self.now_ms += ms


FLAT_TIERS = [
    {
        'id': 'seedling',
        'name': 'Seedling',
        'level': 1,
        'min_points': 0,
        'max_points': None,
        'multiplier': '1.0',
        'perks': [],
    },
]


@pytest.fixture
def fresh_singletons():
    """Drop the cached ledger and rate limiter so settings overrides take effect."""
    from apps.common.rate_limit import get_rate_limiter
    from apps.points.services import get_ledger

    get_ledger.cache_clear()
    get_rate_limiter.cache_clear()
    yield
    get_ledger.cache_clear()
    get_rate_limiter.cache_clear()


@pytest.fixture
def catalog():
    """The bundled reference catalog."""
    from apps.catalog.catalog import get_catalog
    return get_catalog()


@pytest.fixture
def flat_catalog():
    """Catalog with a single unbounded tier at multiplier 1."""
    from apps.catalog.catalog import build_catalog
    return build_catalog(tiers=FLAT_TIERS)


@pytest.fixture
def tier_engine(catalog):
    from apps.membership.services import TierEngine
    return TierEngine(catalog)


@pytest.fixture
def calculator(catalog):
    from apps.points.services import AttributionCalculator
    return AttributionCalculator(catalog)


@pytest.fixture
def memory_store():
    from apps.points.storage import InMemoryAccountStore
    return InMemoryAccountStore()


@pytest.fixture
def ledger(catalog, memory_store):
    """Ledger over the bundled catalog and an in-memory store."""
    from apps.membership.services import TierEngine
    from apps.points.services import EcoPointsLedger
    return EcoPointsLedger(memory_store, tier_engine=TierEngine(catalog))


@pytest.fixture
def flat_ledger(flat_catalog):
    """Ledger whose only tier has multiplier 1."""
    from apps.membership.services import TierEngine
    from apps.points.services import EcoPointsLedger
    from apps.points.storage import InMemoryAccountStore
    return EcoPointsLedger(InMemoryAccountStore(), tier_engine=TierEngine(flat_catalog))


@pytest.fixture
def fake_clock():
    return FakeClock()
