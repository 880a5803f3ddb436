"""Shared test fixtures."""

from __future__ import annotations

import math

import pytest
from httpx import ASGITransport, AsyncClient

import pawwalk.main as main_module
from pawwalk.config import AppConfig
from pawwalk.core.filter import FilterConfig
from pawwalk.core.geo import EARTH_RADIUS_M
from pawwalk.core.models import GeoSample
from pawwalk.core.tracker import PathTracker
from pawwalk.geolocation.memory import InMemoryGeolocationSource
from pawwalk.storage.memory import MemoryRecoveryStore, MemoryWalkGateway

BASE_LAT = 37.5665
BASE_LON = 126.9780
T0_MS = 1_760_000_000_000

# Degrees of latitude per meter along a meridian, exact for the haversine model.
_DEG_PER_M = 180 / (math.pi * EARTH_RADIUS_M)


def north_of_base(meters: float, timestamp_ms: int = T0_MS, accuracy_m: float = 5.0) -> GeoSample:
    return GeoSample(
        latitude=BASE_LAT + meters * _DEG_PER_M,
        longitude=BASE_LON,
        accuracy_m=accuracy_m,
        timestamp_ms=timestamp_ms,
    )


@pytest.fixture
def sample():
    """Factory: a fix ``meters`` north of the base point, ``seconds`` after T0."""

    def make(meters: float = 0.0, seconds: float = 0.0, accuracy_m: float = 5.0) -> GeoSample:
        return north_of_base(meters, T0_MS + int(seconds * 1000), accuracy_m)

    return make


class FakeClock:
    def __init__(self, now: float = T0_MS / 1000) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return InMemoryGeolocationSource()


@pytest.fixture
def recovery():
    return MemoryRecoveryStore()


@pytest.fixture
def gateway():
    return MemoryWalkGateway()


@pytest.fixture
def tracker(source, recovery, clock):
    return PathTracker(
        source,
        recovery,
        "kong",
        filter_config=FilterConfig(min_distance_m=1.5, max_accuracy_m=50.0),
        fix_timeout_s=0.5,
        clock=clock,
    )


@pytest.fixture(autouse=True)
def _init_server(tmp_path):
    """Initialize server singletons for every test, using an in-memory gateway."""
    config = AppConfig()
    config.storage.backend = "memory"
    config.storage.base_dir = str(tmp_path / "walks")
    config.recovery.base_dir = str(tmp_path / "recovery")
    config.logging.level = "warning"

    # Patch module-level singletons
    main_module._config = config
    main_module._gateway = MemoryWalkGateway()

    yield

    # Cleanup
    main_module._config = None
    main_module._gateway = None


@pytest.fixture
async def client():
    from pawwalk.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
