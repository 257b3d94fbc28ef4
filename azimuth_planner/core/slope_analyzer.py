"""Slope analysis for densified paths.

Turns densified samples plus their elevations into:
- Per-step slope (degrees from horizontal) with severity classification
- Elevation gain/loss and extrema
- Share of steps at or above the warning slope
- Distance-indexed elevation profile
- Per-waypoint elevation (nearest sample) and per-segment slope

Slope in degrees: |atan(Δh / d)| * 180/π, defined as 0 for coincident samples.
"""

import logging
from dataclasses import dataclass
from math import atan, degrees
from typing import Optional, Sequence

import numpy as np

from azimuth_planner.constants import GeoConfig, SlopeConfig
from azimuth_planner.core.geo_calculator import LatLon
from azimuth_planner.model.analysis_result import ProfilePoint
from azimuth_planner.model.densified_point import DensifiedPoint
from azimuth_planner.model.slope_step import SlopeStep

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlopeSummary:
    """Aggregated slope metrics of a densified path.

    Attributes:
        gain_m: Sum of positive elevation deltas
        loss_m: Sum of negative elevation deltas (as a positive number)
        min_elevation_m: Lowest sample
        max_elevation_m: Highest sample
        max_slope_deg: Steepest step
        percent_over_threshold: Steps at or above the warning slope, in percent
        steps: One SlopeStep per adjacent pair
        profile: (cumulative distance, elevation) per sample
    """

    gain_m: float
    loss_m: float
    min_elevation_m: float
    max_elevation_m: float
    max_slope_deg: float
    percent_over_threshold: float
    steps: tuple[SlopeStep, ...]
    profile: tuple[ProfilePoint, ...]


class SlopeAnalyzer:
    """Computes slope metrics from densified samples and elevations.

    Thresholds default to SlopeConfig and can be overridden per instance.

    Example:
        analyzer = SlopeAnalyzer()
        summary = analyzer.summarize(points=densified, elevations=elevations)
        print(f"Gain: {summary.gain_m:.0f}m, steepest: {summary.max_slope_deg:.1f}°")
    """

    def __init__(
        self,
        thresholds: Optional[dict[str, float]] = None,
        warn_threshold_deg: float = SlopeConfig.WARN_THRESHOLD_DEG,
    ) -> None:
        self._thresholds = dict(thresholds or SlopeConfig.SEVERITY_THRESHOLDS)
        if list(self._thresholds.values()) != sorted(self._thresholds.values()):
            raise ValueError(f"Severity thresholds must be ascending: {self._thresholds}")
        self._warn_threshold_deg = warn_threshold_deg

    @property
    def thresholds(self) -> dict[str, float]:
        return dict(self._thresholds)

    @staticmethod
    def classify_severity(slope_deg: float, thresholds: Optional[dict[str, float]] = None) -> str:
        """Classify an absolute slope into a severity class.

        Args:
            slope_deg: Slope in degrees from horizontal
            thresholds: Class name -> inclusive lower bound, ascending.
                Defaults to SlopeConfig.SEVERITY_THRESHOLDS.

        Returns:
            Severity string: "normal", "caution", "severe" or "critical"
            with the default thresholds.
        """
        thresholds = thresholds or SlopeConfig.SEVERITY_THRESHOLDS
        severity = next(iter(thresholds))
        for name, lower_bound in thresholds.items():
            if slope_deg >= lower_bound:
                severity = name
        return severity

    @staticmethod
    def slope_deg(elevation_delta_m: float, distance_m: float) -> float:
        """Absolute slope in degrees; 0 when the horizontal distance is not positive."""
        if distance_m <= 0:
            return 0.0
        return abs(degrees(atan(elevation_delta_m / distance_m)))

    def classify(self, slope_deg: float) -> str:
        """Classify with this analyzer's thresholds."""
        return SlopeAnalyzer.classify_severity(slope_deg=slope_deg, thresholds=self._thresholds)

    def summarize(self, points: Sequence[DensifiedPoint], elevations: Sequence[float]) -> SlopeSummary:
        """Aggregate slope metrics over a densified path.

        Raises:
            ValueError: If points and elevations differ in length.
        """
        if len(points) != len(elevations):
            raise ValueError(f"Got {len(points)} points but {len(elevations)} elevations")

        profile = tuple(
            ProfilePoint(distance_m=p.cumulative_distance_m, elevation_m=float(e)) for p, e in zip(points, elevations)
        )
        if not points:
            return SlopeSummary(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, (), ())

        elev = np.asarray(elevations, dtype=float)
        cumulative = np.asarray([p.cumulative_distance_m for p in points], dtype=float)
        deltas = np.diff(elev)
        distances = np.diff(cumulative)

        # Coincident samples (zero distance) have slope 0
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = deltas / distances
        slopes = np.where(distances > 0, np.abs(np.degrees(np.arctan(ratio))), 0.0)

        steps = tuple(
            SlopeStep(
                from_index=i,
                to_index=i + 1,
                distance_m=float(distances[i]),
                elevation_delta_m=float(deltas[i]),
                slope_deg_abs=float(slopes[i]),
                severity=self.classify(float(slopes[i])),
            )
            for i in range(len(deltas))
        )

        step_count = len(steps)
        over = int(np.count_nonzero(slopes >= self._warn_threshold_deg))
        percent_over = over / step_count * 100 if step_count else 0.0

        summary = SlopeSummary(
            gain_m=float(np.clip(deltas, 0, None).sum()),
            loss_m=float(np.clip(-deltas, 0, None).sum()),
            min_elevation_m=float(elev.min()),
            max_elevation_m=float(elev.max()),
            max_slope_deg=float(slopes.max()) if step_count else 0.0,
            percent_over_threshold=percent_over,
            steps=steps,
            profile=profile,
        )
        logger.debug(
            f"Slope summary: {step_count} steps, gain={summary.gain_m:.1f}m, loss={summary.loss_m:.1f}m, "
            f"max={summary.max_slope_deg:.1f}°, over threshold={percent_over:.1f}%"
        )
        return summary

    @staticmethod
    def nearest_sample_index(target: LatLon, points: Sequence[DensifiedPoint]) -> int:
        """Index of the sample closest to target (haversine), first on ties."""
        if not points:
            raise ValueError("Cannot match against an empty sample list")
        lat1 = np.radians(target.lat)
        lon1 = np.radians(target.lon)
        lat2 = np.radians(np.asarray([p.lat for p in points], dtype=float))
        lon2 = np.radians(np.asarray([p.lon for p in points], dtype=float))
        a = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
        distances = GeoConfig.EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
        # argmin returns the first occurrence of the minimum
        return int(np.argmin(distances))

    def match_waypoint_elevations(
        self,
        waypoints: Sequence[LatLon],
        points: Sequence[DensifiedPoint],
        elevations: Sequence[Optional[float]],
    ) -> list[Optional[float]]:
        """Elevation of each waypoint, read from its nearest densified sample.

        Returns None for every waypoint when there are no samples.
        """
        if not points:
            return [None] * len(waypoints)
        return [elevations[self.nearest_sample_index(target=w, points=points)] for w in waypoints]

    @staticmethod
    def segment_slope_deg(
        start_elevation_m: Optional[float],
        end_elevation_m: Optional[float],
        distance_m: float,
    ) -> Optional[float]:
        """Slope between two waypoints, None if either elevation is unknown."""
        if start_elevation_m is None or end_elevation_m is None:
            return None
        return SlopeAnalyzer.slope_deg(elevation_delta_m=end_elevation_m - start_elevation_m, distance_m=distance_m)
