"""Path analysis pipeline: segments, densification, elevation and slope.

Two paths through the pipeline:
- Light: per-segment bearing and distance. O(n), never suspends, run on
  every waypoint change.
- Heavy: densify -> resolve elevations -> slope summary. Suspends on the
  remote elevation service, run debounced by the RecomputeScheduler.
"""

import logging
from dataclasses import dataclass
from math import ceil
from typing import Optional, Sequence

from azimuth_planner.constants import ElevationConfig, PathConfig
from azimuth_planner.core.elevation_fetcher import ElevationFetcher
from azimuth_planner.core.geo_calculator import GeoCalculator
from azimuth_planner.core.slope_analyzer import SlopeAnalyzer
from azimuth_planner.errors import InsufficientPointsError, PathTooShortError
from azimuth_planner.model.analysis_result import AnalysisResult, SegmentReport
from azimuth_planner.model.densified_point import DensifiedPoint
from azimuth_planner.model.waypoint import Waypoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisSettings:
    """Per-analyzer overrides of the PathConfig / ElevationConfig defaults."""

    densify_step_m: float = PathConfig.DENSIFY_STEP_M
    min_path_length_m: float = PathConfig.MIN_PATH_LENGTH_M
    max_requested_points: int = ElevationConfig.MAX_REQUESTED_POINTS

    def __post_init__(self) -> None:
        if self.densify_step_m <= 0:
            raise ValueError(f"densify_step_m must be positive, got {self.densify_step_m}")
        if self.max_requested_points < 1:
            raise ValueError(f"max_requested_points must be at least 1, got {self.max_requested_points}")


class PathAnalyzer:
    """Runs the analysis pipeline for a waypoint snapshot.

    Example:
        analyzer = PathAnalyzer(fetcher=ElevationFetcher(service=OpenElevationService()))
        result = await analyzer.analyze(waypoints, declination_deg=3.0)
    """

    def __init__(
        self,
        fetcher: ElevationFetcher,
        slope_analyzer: Optional[SlopeAnalyzer] = None,
        settings: Optional[AnalysisSettings] = None,
    ) -> None:
        self._fetcher = fetcher
        self._slope_analyzer = slope_analyzer or SlopeAnalyzer()
        self._settings = settings or AnalysisSettings()

    @property
    def settings(self) -> AnalysisSettings:
        return self._settings

    @property
    def fetcher(self) -> ElevationFetcher:
        return self._fetcher

    @staticmethod
    def compute_segments(
        waypoints: Sequence[Waypoint],
        declination_deg: float = 0.0,
        waypoint_elevations: Optional[Sequence[Optional[float]]] = None,
    ) -> tuple[SegmentReport, ...]:
        """Bearing, magnetic bearing, distance (and slope if elevations known) per pair."""
        segments = []
        for i in range(len(waypoints) - 1):
            a, b = waypoints[i], waypoints[i + 1]
            bearing = GeoCalculator.bearing(a, b)
            distance = GeoCalculator.distance(a, b)
            slope = None
            if waypoint_elevations is not None:
                slope = SlopeAnalyzer.segment_slope_deg(
                    start_elevation_m=waypoint_elevations[i],
                    end_elevation_m=waypoint_elevations[i + 1],
                    distance_m=distance,
                )
            segments.append(
                SegmentReport(
                    waypoint_pair_index=i,
                    bearing_deg=bearing,
                    bearing_magnetic_deg=GeoCalculator.magnetic_bearing_deg(bearing, declination_deg),
                    distance_m=distance,
                    slope_deg_abs=slope,
                    from_label=a.label,
                    to_label=b.label,
                    from_lat_lon=a.lat_lon,
                    to_lat_lon=b.lat_lon,
                )
            )
        return tuple(segments)

    def densify_within_budget(self, waypoints: Sequence[Waypoint]) -> list[DensifiedPoint]:
        """Densify, coarsening the step until uncached points fit the request ceiling.

        The step is scaled by ceil(point_count / ceiling) each round. Stops when
        coarsening no longer reduces the point count (waypoints alone).

        Raises:
            InsufficientPointsError: Fewer than two waypoints.
        """
        if len(waypoints) < 2:
            raise InsufficientPointsError(f"Need at least 2 waypoints to densify, got {len(waypoints)}")
        ceiling = self._settings.max_requested_points
        step_m = self._settings.densify_step_m
        points = GeoCalculator.densify(waypoints, step_m=step_m)

        misses = self._fetcher.count_misses(points)
        while misses > ceiling:
            step_m *= ceil(len(points) / ceiling)
            coarser = GeoCalculator.densify(waypoints, step_m=step_m)
            if len(coarser) >= len(points):
                logger.warning(f"Cannot reduce {len(points)} points below ceiling {ceiling}")
                break
            logger.info(f"Coarsened densify step to {step_m:.0f}m: {len(points)} -> {len(coarser)} points")
            points = coarser
            misses = self._fetcher.count_misses(points)
        return points

    async def analyze(self, waypoints: Sequence[Waypoint], declination_deg: float = 0.0) -> AnalysisResult:
        """Full analysis of a waypoint snapshot.

        Returns:
            EMPTY result for fewer than two waypoints (no remote call), otherwise
            an OK result with profile, steps and segment slopes.

        Raises:
            PathTooShortError: Total length below min_path_length_m.
            RemoteServiceUnavailable: Elevation lookup failed.
            MalformedResponse: Elevation response did not match the request.
        """
        signature = GeoCalculator.path_signature(waypoints)
        if len(waypoints) < 2:
            return AnalysisResult.empty(signature=signature)

        length_m = GeoCalculator.path_length_m(waypoints)
        if length_m < self._settings.min_path_length_m:
            raise PathTooShortError(length_m=length_m, min_length_m=self._settings.min_path_length_m)

        points = self.densify_within_budget(waypoints)
        elevations = await self._fetcher.resolve(points)
        summary = self._slope_analyzer.summarize(points=points, elevations=elevations)
        waypoint_elevations = self._slope_analyzer.match_waypoint_elevations(
            waypoints=waypoints,
            points=points,
            elevations=elevations,
        )

        return AnalysisResult(
            signature=signature,
            gain_m=summary.gain_m,
            loss_m=summary.loss_m,
            min_elevation_m=summary.min_elevation_m,
            max_elevation_m=summary.max_elevation_m,
            max_slope_deg=summary.max_slope_deg,
            percent_over_threshold=summary.percent_over_threshold,
            segments=self.compute_segments(
                waypoints,
                declination_deg=declination_deg,
                waypoint_elevations=waypoint_elevations,
            ),
            profile=summary.profile,
            steps=summary.steps,
        )
