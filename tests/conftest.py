"""Global test configuration and fixtures."""

import logging
from decimal import Decimal

import pytest

from src.domain.scoring.entities.judgment import Judgment
from src.infrastructure.performance.cache_manager import CacheConfig, ResultCache
from src.infrastructure.performance.performance_recorder import (
    MonitoringConfig,
    PerformanceRecorder,
)
from tests.factories import AttemptFactory, RubricFactory, make_judgment

logging.basicConfig(level=logging.INFO)


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResultCache(CacheConfig(max_size=100), clock=clock)


@pytest.fixture
def recorder():
    return PerformanceRecorder(MonitoringConfig(enable_prometheus=False))


@pytest.fixture
def rubric():
    return RubricFactory()


@pytest.fixture
def attempt():
    return AttemptFactory()


@pytest.fixture
def judgment() -> Judgment:
    return make_judgment("gpt-4o-mini", {"content": Decimal("4"), "language": Decimal("3")})
