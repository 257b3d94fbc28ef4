"""DensifiedPoint - A regularly spaced sample along a waypoint path.

Produced by GeoCalculator.densify(). The first and last waypoints are always
included exactly; interior samples are linear interpolations in lat/lon space.

Used by:
- ElevationFetcher (one elevation per sample)
- SlopeAnalyzer (per-step slope and profile)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DensifiedPoint:
    """A sample on a densified path.

    Attributes:
        lat: Latitude in decimal degrees (WGS84)
        lon: Longitude in decimal degrees (WGS84)
        cumulative_distance_m: Distance along the path from the first waypoint

    Example:
        point = DensifiedPoint(lat=45.0045, lon=11.0, cumulative_distance_m=500.0)
    """

    lat: float
    lon: float
    cumulative_distance_m: float

    @property
    def lat_lon(self) -> tuple[float, float]:
        """Return (lat, lon) tuple - standard geographic order."""
        return (self.lat, self.lon)

    def __repr__(self) -> str:
        return f"DensifiedPoint(lat={self.lat:.6f}, lon={self.lon:.6f}, at={self.cumulative_distance_m:.1f}m)"
