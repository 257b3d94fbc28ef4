"""Elevation retrieval through the cache and a remote elevation service.

ElevationFetcher resolves an ordered list of coordinates to elevations:
1. Cache hits are resolved immediately
2. Misses are split into contiguous batches of at most BATCH_SIZE
3. Each batch is one remote request; results are written back to the cache
4. Everything is merged at the original indices

Resolution is all-or-nothing: a failed batch or a response with the wrong
number of results fails the whole call, since a shifted index mapping would
silently attribute elevations to the wrong coordinates.

Data Source:
    Open-Elevation public API - https://open-elevation.com
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from math import isfinite
from typing import Any, Optional, Sequence

import requests

from azimuth_planner.constants import ElevationConfig
from azimuth_planner.core.elevation_cache import ElevationCache
from azimuth_planner.core.geo_calculator import LatLon
from azimuth_planner.errors import MalformedResponse, RemoteServiceUnavailable

logger = logging.getLogger(__name__)


class ElevationService(ABC):
    """Remote elevation lookup for one batch of (lat, lon) locations."""

    @abstractmethod
    async def lookup(self, locations: Sequence[tuple[float, float]]) -> list[float]:
        """Return one elevation per location, in order.

        Raises:
            RemoteServiceUnavailable: Network failure, timeout or non-success status.
            MalformedResponse: Response shape or length does not match the request.
        """


def parse_elevation_response(payload: Any, expected_count: int) -> list[float]:
    """Validate an Open-Elevation response body and extract elevations.

    Args:
        payload: Decoded JSON body
        expected_count: Number of locations sent

    Returns:
        Elevations in request order.

    Raises:
        MalformedResponse: Missing results, count mismatch or non-numeric elevation.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        raise MalformedResponse("Elevation response has no 'results' list")

    results = payload["results"]
    if len(results) != expected_count:
        raise MalformedResponse(f"Elevation response has {len(results)} results, expected {expected_count}")

    elevations: list[float] = []
    for i, item in enumerate(results):
        value = item.get("elevation") if isinstance(item, dict) else None
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not isfinite(value):
            raise MalformedResponse(f"Elevation result {i} has invalid elevation: {value!r}")
        elevations.append(float(value))
    return elevations


class OpenElevationService(ElevationService):
    """Open-Elevation HTTP client.

    The blocking request runs in a worker thread so the event loop keeps
    serving waypoint edits while a batch is in flight.

    Example:
        service = OpenElevationService()
        elevations = await service.lookup([(45.0, 11.0), (45.001, 11.0)])
    """

    def __init__(
        self,
        url: str = ElevationConfig.API_URL,
        timeout_s: float = ElevationConfig.REQUEST_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._session = session or requests.Session()

    async def lookup(self, locations: Sequence[tuple[float, float]]) -> list[float]:
        return await asyncio.to_thread(self.lookup_blocking, locations)

    def lookup_blocking(self, locations: Sequence[tuple[float, float]]) -> list[float]:
        """Synchronous lookup (used by lookup() and scripts)."""
        body = {"locations": [{"latitude": lat, "longitude": lon} for lat, lon in locations]}
        try:
            response = self._session.post(self._url, json=body, timeout=self._timeout_s)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RemoteServiceUnavailable(f"Elevation service unavailable: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Elevation response is not valid JSON: {e}") from e

        return parse_elevation_response(payload, expected_count=len(locations))


class ElevationFetcher:
    """Resolves elevations for ordered coordinates, cache first.

    Example:
        fetcher = ElevationFetcher(service=OpenElevationService(), cache=ElevationCache())
        elevations = await fetcher.resolve(points)
    """

    def __init__(
        self,
        service: ElevationService,
        cache: Optional[ElevationCache] = None,
        batch_size: int = ElevationConfig.BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self._service = service
        self._cache = cache or ElevationCache()
        self._batch_size = batch_size

    @property
    def cache(self) -> ElevationCache:
        return self._cache

    def count_misses(self, points: Sequence[LatLon]) -> int:
        """Number of points that would need a remote lookup."""
        return sum(1 for p in points if self._cache.get(lat=p.lat, lon=p.lon) is None)

    async def resolve(self, points: Sequence[LatLon]) -> list[float]:
        """Resolve one elevation per point, preserving order.

        Raises:
            RemoteServiceUnavailable: A batch failed (no partial result is returned).
            MalformedResponse: A batch response did not match its request.
        """
        resolved: list[Optional[float]] = [None] * len(points)
        missing: list[int] = []
        for i, p in enumerate(points):
            cached = self._cache.get(lat=p.lat, lon=p.lon)
            if cached is None:
                missing.append(i)
            else:
                resolved[i] = cached

        if not missing:
            logger.debug(f"All {len(points)} elevations served from cache")
            return [e for e in resolved if e is not None]

        batches = [missing[i : i + self._batch_size] for i in range(0, len(missing), self._batch_size)]
        logger.info(
            f"Resolving {len(points)} points: {len(points) - len(missing)} cached, "
            f"{len(missing)} remote in {len(batches)} batch(es)"
        )

        try:
            for batch in batches:
                locations = [(points[i].lat, points[i].lon) for i in batch]
                elevations = await self._service.lookup(locations)
                if len(elevations) != len(batch):
                    raise MalformedResponse(f"Elevation service returned {len(elevations)} values for {len(batch)}")
                for i, elevation in zip(batch, elevations):
                    resolved[i] = elevation
                    self._cache.put(lat=points[i].lat, lon=points[i].lon, elevation=elevation)
        finally:
            self._cache.flush()

        return [e for e in resolved if e is not None]
