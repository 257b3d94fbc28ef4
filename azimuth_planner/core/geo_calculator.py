"""Geodesic calculations on Earth's surface.

Provides geographic helper functions for path analysis:
- Distance calculation (Haversine formula)
- Bearing calculation (initial heading between points, true and magnetic)
- Path densification (regularly spaced samples along straight segments)
- Coordinate quantization and path signatures

All calculations use a spherical Earth approximation (R = 6,371 km).
"""

from math import atan2, cos, degrees, floor, radians, sin, sqrt
from typing import Protocol, Sequence

from azimuth_planner.constants import GeoConfig
from azimuth_planner.model.densified_point import DensifiedPoint

EARTH_RADIUS_M = GeoConfig.EARTH_RADIUS_M


class LatLon(Protocol):
    """Anything with lat/lon attributes (Waypoint, DensifiedPoint)."""

    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


class GeoCalculator:
    """Static methods for geodesic calculations on Earth's surface.

    Coordinates are in decimal degrees (WGS84).
    Bearings are in degrees clockwise from North (0-360).
    Distances are in meters.
    """

    EARTH_RADIUS_M = EARTH_RADIUS_M

    @staticmethod
    def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate great-circle distance between two points using Haversine formula.

        Args:
            lat1: Latitude of first point (decimal degrees)
            lon1: Longitude of first point (decimal degrees)
            lat2: Latitude of second point (decimal degrees)
            lon2: Longitude of second point (decimal degrees)

        Returns:
            Distance in meters.
        """
        dlat = radians(lat2 - lat1)
        dlon = radians(lon2 - lon1)
        a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
        return EARTH_RADIUS_M * 2 * atan2(sqrt(a), sqrt(1 - a))

    @staticmethod
    def initial_bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate initial bearing (forward azimuth) from point 1 to point 2.

        Args:
            lat1: Latitude of start point (decimal degrees)
            lon1: Longitude of start point (decimal degrees)
            lat2: Latitude of end point (decimal degrees)
            lon2: Longitude of end point (decimal degrees)

        Returns:
            Bearing in degrees [0, 360), clockwise from true North.
        """
        lat1_rad, lat2_rad = radians(lat1), radians(lat2)
        dlon = radians(lon2 - lon1)
        y = sin(dlon) * cos(lat2_rad)
        x = cos(lat1_rad) * sin(lat2_rad) - sin(lat1_rad) * cos(lat2_rad) * cos(dlon)
        # Second modulo folds -0.0 and float rounding up to 360.0 back into range
        return ((degrees(atan2(y, x)) + 360) % 360) % 360

    @staticmethod
    def magnetic_bearing_deg(bearing_deg: float, declination_deg: float) -> float:
        """Convert a true bearing to a magnetic bearing.

        Args:
            bearing_deg: True bearing in degrees
            declination_deg: Magnetic declination, positive east

        Returns:
            Magnetic bearing in degrees [0, 360).
        """
        return ((bearing_deg - declination_deg + 360) % 360) % 360

    @staticmethod
    def bearing(a: LatLon, b: LatLon) -> float:
        """Initial bearing from point a to point b."""
        return GeoCalculator.initial_bearing_deg(lat1=a.lat, lon1=a.lon, lat2=b.lat, lon2=b.lon)

    @staticmethod
    def distance(a: LatLon, b: LatLon) -> float:
        """Great-circle distance between point a and point b in meters."""
        return GeoCalculator.haversine_distance_m(lat1=a.lat, lon1=a.lon, lat2=b.lat, lon2=b.lon)

    @staticmethod
    def path_length_m(points: Sequence[LatLon]) -> float:
        """Sum of great-circle distances between consecutive points."""
        return sum(GeoCalculator.distance(points[i], points[i + 1]) for i in range(len(points) - 1))

    @staticmethod
    def densify(waypoints: Sequence[LatLon], step_m: float) -> list[DensifiedPoint]:
        """Insert evenly spaced samples along each straight waypoint segment.

        For each consecutive pair: if the pair is no longer than step_m only the
        endpoint is emitted; otherwise floor(distance / step_m) interior points at
        parametric fractions k * step_m / distance, then the endpoint. Interior
        points are linear interpolations in lat/lon space.

        Args:
            waypoints: Ordered points with lat/lon
            step_m: Sample spacing in meters (must be positive)

        Returns:
            Samples with cumulative distance, starting at 0 and ending at the
            total path length. Empty for fewer than two waypoints.
        """
        if step_m <= 0:
            raise ValueError(f"step_m must be positive, got {step_m}")
        if len(waypoints) < 2:
            return []

        first = waypoints[0]
        result = [DensifiedPoint(lat=first.lat, lon=first.lon, cumulative_distance_m=0.0)]
        cumulative = 0.0

        for a, b in zip(waypoints, waypoints[1:]):
            segment_m = GeoCalculator.distance(a, b)
            if segment_m > step_m:
                for k in range(1, floor(segment_m / step_m) + 1):
                    t = k * step_m / segment_m
                    if t >= 1:
                        break
                    result.append(
                        DensifiedPoint(
                            lat=a.lat + (b.lat - a.lat) * t,
                            lon=a.lon + (b.lon - a.lon) * t,
                            cumulative_distance_m=cumulative + t * segment_m,
                        )
                    )
            cumulative += segment_m
            result.append(DensifiedPoint(lat=b.lat, lon=b.lon, cumulative_distance_m=cumulative))

        return result

    @staticmethod
    def quantize_key(lat: float, lon: float, decimals: int = GeoConfig.SIGNATURE_DECIMALS) -> str:
        """Stable string key for a coordinate rounded to `decimals` places."""
        # + 0.0 folds -0.0 into 0.0
        lat = round(lat, decimals) + 0.0
        lon = round(lon, decimals) + 0.0
        return f"{lat:.{decimals}f},{lon:.{decimals}f}"

    @staticmethod
    def path_signature(points: Sequence[LatLon], decimals: int = GeoConfig.SIGNATURE_DECIMALS) -> str:
        """Deterministic fingerprint of ordered, rounded coordinates.

        Equal geometry within rounding yields an equal signature.
        """
        return "|".join(GeoCalculator.quantize_key(p.lat, p.lon, decimals) for p in points)
