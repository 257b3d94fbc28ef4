"""Shared pytest fixtures for azimuth_planner tests.

Provides fake elevation services and reusable waypoint paths.

COORDINATE SYSTEM:
    Most tests walk along a meridian, where the haversine distance of a latitude
    difference is exactly R * radians(dlat). METERS_PER_DEGREE below uses the same
    spherical radius as GeoCalculator, so "100 / METERS_PER_DEGREE" is 100m north.
"""

import asyncio
from math import pi
from typing import Callable, Optional, Sequence

import pytest

from azimuth_planner.constants import GeoConfig
from azimuth_planner.core.elevation_cache import ElevationCache, InMemoryStore
from azimuth_planner.core.elevation_fetcher import ElevationFetcher, ElevationService
from azimuth_planner.core.path_analysis import PathAnalyzer
from azimuth_planner.errors import RemoteServiceUnavailable
from azimuth_planner.model.analysis_result import AnalysisResult, SegmentReport
from azimuth_planner.model.waypoint import Waypoint
from azimuth_planner.scheduler.listeners import AnalysisListener

METERS_PER_DEGREE = GeoConfig.EARTH_RADIUS_M * pi / 180

Terrain = Callable[[float, float], float]


def flat_terrain(lat: float, lon: float) -> float:
    """Constant 500m everywhere."""
    return 500.0


def rising_north_10pct(lat: float, lon: float) -> float:
    """500m at 45°N, rising 10m per 100m going north."""
    return 500.0 + (lat - 45.0) * METERS_PER_DEGREE * 0.10


def make_waypoints(coords: Sequence[tuple[float, float]]) -> tuple[Waypoint, ...]:
    """Snapshot from (lat, lon) pairs, labelled P1, P2, ..."""
    return tuple(
        Waypoint(id=f"W{i + 1}", lat=lat, lon=lon, label=f"P{i + 1}", order=i) for i, (lat, lon) in enumerate(coords)
    )


# =============================================================================
# FAKE ELEVATION SERVICES
# =============================================================================


class FakeElevationService(ElevationService):
    """Elevation service computing elevations from a terrain function.

    Records every batch so tests can assert on request counts and sizes.

    Args:
        terrain: (lat, lon) -> elevation
        fail: Raise RemoteServiceUnavailable on every lookup
        drop_last: Return one result too few (length mismatch)
    """

    def __init__(self, terrain: Terrain = flat_terrain, fail: bool = False, drop_last: bool = False) -> None:
        self.terrain = terrain
        self.fail = fail
        self.drop_last = drop_last
        self.calls: list[list[tuple[float, float]]] = []

    @property
    def batch_sizes(self) -> list[int]:
        return [len(c) for c in self.calls]

    @property
    def requested_points(self) -> int:
        return sum(self.batch_sizes)

    async def lookup(self, locations: Sequence[tuple[float, float]]) -> list[float]:
        self.calls.append(list(locations))
        if self.fail:
            raise RemoteServiceUnavailable("Elevation service down")
        elevations = [self.terrain(lat, lon) for lat, lon in locations]
        return elevations[:-1] if self.drop_last else elevations


class GatedElevationService(FakeElevationService):
    """Elevation service whose lookups block until released by the test.

    Lookup number i waits on gates[i]; call release(i) to let it complete.
    """

    def __init__(self, terrain: Terrain = flat_terrain) -> None:
        super().__init__(terrain=terrain)
        self.gates: list[asyncio.Event] = []

    async def lookup(self, locations: Sequence[tuple[float, float]]) -> list[float]:
        gate = asyncio.Event()
        self.gates.append(gate)
        self.calls.append(list(locations))
        await gate.wait()
        return [self.terrain(lat, lon) for lat, lon in locations]

    def release(self, index: int) -> None:
        self.gates[index].set()


class RaisingElevationService(FakeElevationService):
    """Elevation service raising an arbitrary exception until error is cleared."""

    def __init__(self, error: Optional[Exception]) -> None:
        super().__init__()
        self.error = error

    async def lookup(self, locations: Sequence[tuple[float, float]]) -> list[float]:
        if self.error is not None:
            self.calls.append(list(locations))
            raise self.error
        return await super().lookup(locations)


class RecordingListener(AnalysisListener):
    """Rendering-layer stand-in that records everything published."""

    def __init__(self) -> None:
        self.segments: list[tuple[SegmentReport, ...]] = []
        self.results: list[AnalysisResult] = []

    def on_segments(self, segments: tuple[SegmentReport, ...]) -> None:
        self.segments.append(segments)

    def on_result(self, result: AnalysisResult) -> None:
        self.results.append(result)

    @property
    def last_result(self) -> Optional[AnalysisResult]:
        return self.results[-1] if self.results else None


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def flat_service() -> FakeElevationService:
    """Flat terrain at 500m."""
    return FakeElevationService(terrain=flat_terrain)


@pytest.fixture
def rising_service() -> FakeElevationService:
    """Terrain rising 10% to the north."""
    return FakeElevationService(terrain=rising_north_10pct)


@pytest.fixture
def memory_cache() -> ElevationCache:
    return ElevationCache(store=InMemoryStore())


@pytest.fixture
def flat_analyzer(flat_service: FakeElevationService, memory_cache: ElevationCache) -> PathAnalyzer:
    return PathAnalyzer(fetcher=ElevationFetcher(service=flat_service, cache=memory_cache))


@pytest.fixture
def path_1km_north() -> tuple[Waypoint, ...]:
    """Two waypoints ~1000m apart along the 11°E meridian at 45°N."""
    return make_waypoints([(45.000000, 11.000000), (45.009000, 11.000000)])


@pytest.fixture
def path_1km_east() -> tuple[Waypoint, ...]:
    """Two waypoints ~700m apart along the 45°N parallel."""
    return make_waypoints([(45.000000, 11.000000), (45.000000, 11.009000)])


@pytest.fixture
def path_3_points() -> tuple[Waypoint, ...]:
    """Three waypoints: 500m north, then 500m further north."""
    step = 500 / METERS_PER_DEGREE
    return make_waypoints([(45.0, 11.0), (45.0 + step, 11.0), (45.0 + 2 * step, 11.0)])
