"""AnalysisResult - Everything the rendering layer needs about a path.

AnalysisResult is a value object: it is entirely derived from a waypoint
snapshot and is replaced wholesale on every successful recompute. Non-numeric
outcomes (empty, too short, unavailable) are explicit statuses so the
rendering layer never mistakes them for a flat profile.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from azimuth_planner.model.slope_step import SlopeStep


class AnalysisStatus:
    """Outcome of an analysis request."""

    OK = "ok"
    EMPTY = "empty"  # Fewer than two waypoints
    TOO_SHORT = "too_short"  # Below PathConfig.MIN_PATH_LENGTH_M
    UNAVAILABLE = "unavailable"  # Remote failure or malformed response

    ALL = [OK, EMPTY, TOO_SHORT, UNAVAILABLE]


@dataclass(frozen=True)
class SegmentReport:
    """Bearing, distance and slope between two consecutive waypoints.

    Attributes:
        waypoint_pair_index: Index of the first waypoint of the pair
        bearing_deg: True bearing (0-360, clockwise from North)
        bearing_magnetic_deg: Bearing corrected by magnetic declination
        distance_m: Great-circle distance
        slope_deg_abs: Segment slope from matched elevations, None until known
        from_label: Label of the first waypoint
        to_label: Label of the second waypoint
        from_lat_lon: (lat, lon) of the first waypoint
        to_lat_lon: (lat, lon) of the second waypoint
    """

    waypoint_pair_index: int
    bearing_deg: float
    bearing_magnetic_deg: float
    distance_m: float
    slope_deg_abs: Optional[float] = None
    from_label: str = ""
    to_label: str = ""
    from_lat_lon: tuple[float, float] = (0.0, 0.0)
    to_lat_lon: tuple[float, float] = (0.0, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "waypoint_pair_index": self.waypoint_pair_index,
            "bearing_deg": self.bearing_deg,
            "bearing_magnetic_deg": self.bearing_magnetic_deg,
            "distance_m": self.distance_m,
            "slope_deg_abs": self.slope_deg_abs,
            "from_label": self.from_label,
            "to_label": self.to_label,
        }


@dataclass(frozen=True)
class ProfilePoint:
    """One point of the distance-indexed elevation profile."""

    distance_m: float
    elevation_m: float


@dataclass(frozen=True)
class AnalysisResult:
    """Derived summary of a waypoint path.

    Attributes:
        signature: Geometry fingerprint this result was computed for
        status: One of AnalysisStatus
        gain_m: Total ascent over the densified path
        loss_m: Total descent over the densified path
        min_elevation_m: Lowest densified sample
        max_elevation_m: Highest densified sample
        max_slope_deg: Steepest step
        percent_over_threshold: Share of steps at or above the warning slope
        segments: One report per waypoint pair
        profile: (distance, elevation) per densified sample
        steps: One SlopeStep per adjacent densified pair (overlay colouring)
        message: Advisory text for non-OK statuses
    """

    signature: str
    status: str = AnalysisStatus.OK
    gain_m: float = 0.0
    loss_m: float = 0.0
    min_elevation_m: float = 0.0
    max_elevation_m: float = 0.0
    max_slope_deg: float = 0.0
    percent_over_threshold: float = 0.0
    segments: tuple[SegmentReport, ...] = ()
    profile: tuple[ProfilePoint, ...] = ()
    steps: tuple[SlopeStep, ...] = field(default=(), repr=False)
    message: str = ""

    def __post_init__(self) -> None:
        if self.status not in AnalysisStatus.ALL:
            raise ValueError(f"Unknown analysis status: {self.status}")

    @property
    def is_ok(self) -> bool:
        return self.status == AnalysisStatus.OK

    @property
    def has_steep_steps(self) -> bool:
        """True if any step reaches the warning slope."""
        return self.percent_over_threshold > 0

    @staticmethod
    def empty(signature: str, segments: tuple[SegmentReport, ...] = ()) -> "AnalysisResult":
        """Zeroed result for paths with fewer than two waypoints."""
        return AnalysisResult(signature=signature, status=AnalysisStatus.EMPTY, segments=segments)

    @staticmethod
    def too_short(signature: str, segments: tuple[SegmentReport, ...], message: str) -> "AnalysisResult":
        return AnalysisResult(
            signature=signature,
            status=AnalysisStatus.TOO_SHORT,
            segments=segments,
            message=message,
        )

    @staticmethod
    def unavailable(signature: str, segments: tuple[SegmentReport, ...], message: str) -> "AnalysisResult":
        return AnalysisResult(
            signature=signature,
            status=AnalysisStatus.UNAVAILABLE,
            segments=segments,
            message=message,
        )

    def summary(self) -> dict[str, float]:
        """Summary statistics for export surfaces."""
        return {
            "gain_m": self.gain_m,
            "loss_m": self.loss_m,
            "min_elevation_m": self.min_elevation_m,
            "max_elevation_m": self.max_elevation_m,
            "max_slope_deg": self.max_slope_deg,
            "percent_over_threshold": self.percent_over_threshold,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "status": self.status,
            **self.summary(),
            "segments": [s.to_dict() for s in self.segments],
            "profile": [{"distance_m": p.distance_m, "elevation_m": p.elevation_m} for p in self.profile],
            "steps": [s.to_dict() for s in self.steps],
            "message": self.message,
        }

    def __repr__(self) -> str:
        return (
            f"AnalysisResult({self.status}, gain={self.gain_m:.0f}m, loss={self.loss_m:.0f}m, "
            f"max_slope={self.max_slope_deg:.1f}°, {len(self.segments)} segments)"
        )
