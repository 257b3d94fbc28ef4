"""SlopeStep - Slope between two adjacent densified samples."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SlopeStep:
    """One step of the densified path.

    Attributes:
        from_index: Index of the first sample
        to_index: Index of the second sample (from_index + 1)
        distance_m: Horizontal distance between the samples
        elevation_delta_m: Elevation change (positive = uphill)
        slope_deg_abs: Absolute slope in degrees from horizontal
        severity: "normal", "caution", "severe" or "critical"
    """

    from_index: int
    to_index: int
    distance_m: float
    elevation_delta_m: float
    slope_deg_abs: float
    severity: str

    def to_dict(self) -> dict:
        return {
            "from_index": self.from_index,
            "to_index": self.to_index,
            "distance_m": self.distance_m,
            "elevation_delta_m": self.elevation_delta_m,
            "slope_deg_abs": self.slope_deg_abs,
            "severity": self.severity,
        }

    def __repr__(self) -> str:
        return f"SlopeStep({self.from_index}->{self.to_index}, {self.slope_deg_abs:.1f}°, {self.severity})"
