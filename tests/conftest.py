"""Pytest configuration and fixtures for ReversR tests."""

import pytest
from unittest.mock import AsyncMock, Mock

from reversr.config import Settings
from reversr.resilience import BackoffProfile, CredentialPool, ResponseCache, RetryOrchestrator


class FakeClock:
    """Simulated monotonic clock with an async sleep that advances it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def use_test_environment(monkeypatch):
    """Ensure all tests use test environment variables."""
    monkeypatch.setenv("GENERATION_API_KEYS", "test-key-1,test-key-2")
    monkeypatch.delenv("GENERATION_BASE_URL", raising=False)


@pytest.fixture
def clock():
    """Simulated clock."""
    return FakeClock()


@pytest.fixture
def test_settings():
    """Settings isolated from any .env file."""
    return Settings(_env_file=None, generation_api_keys="key-a,key-b")


@pytest.fixture
def pool(clock):
    """Two-credential pool on the simulated clock."""
    return CredentialPool(["secret-a", "secret-b"], default_cooldown=60.0, clock=clock)


@pytest.fixture
def cache(clock):
    """Small cache on the simulated clock."""
    return ResponseCache(max_entries=3, ttl_seconds=300.0, clock=clock)


@pytest.fixture
def orchestrator(pool, cache, clock):
    """Orchestrator with jitter-free backoff and simulated sleep."""
    return RetryOrchestrator(
        pool,
        cache,
        rate_limit_profile=BackoffProfile(base_delay=4.0, max_delay=60.0),
        generic_profile=BackoffProfile(base_delay=0.5, max_delay=5.0),
        sleep=clock.sleep,
    )


@pytest.fixture
def mock_similarity_store():
    """Mock similarity store returning no matches."""
    store = Mock()
    store.store = AsyncMock(return_value=True)
    store.search = AsyncMock(return_value=[])
    store.delete = AsyncMock(return_value=True)
    store.stats = AsyncMock(return_value=None)
    return store


@pytest.fixture
def sample_analysis():
    """Sample phase 1 analysis."""
    return {
        "productName": "Water Bottle",
        "components": [
            {"name": "Body", "description": "Stainless steel cylinder", "isEssential": True},
            {"name": "Lid", "description": "Screw-top lid", "isEssential": True},
            {"name": "Loop", "description": "Carrying loop", "isEssential": False},
        ],
        "neighborhoodResources": ["hand", "gravity", "sunlight"],
        "attributes": [{"name": "volume", "value": "750ml", "type": "Quantitative"}],
        "closedWorldBoundary": "Bottle, its contents, and the hand holding it",
        "rawAnalysis": "A simple vessel.",
    }


@pytest.fixture
def sample_innovation():
    """Sample phase 2 innovation."""
    return {
        "patternUsed": "Task Unification",
        "conceptName": "Sun-Lid",
        "conceptDescription": "The lid purifies water using sunlight.",
        "marketGap": "Hikers without filters",
        "constraint": "Lid must also sterilize",
        "noveltyScore": 7,
        "viabilityScore": 6,
        "marketBenefit": "No separate filter needed",
    }
