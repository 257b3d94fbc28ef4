"""External services used by the interaction layer."""

from azimuth_planner.services.geocoding import NominatimGeocoder, Place

__all__ = ["NominatimGeocoder", "Place"]
