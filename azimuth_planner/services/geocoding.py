"""Place search for adding waypoints by name.

Thin client for the Nominatim search API. The analysis core only consumes the
selected place's coordinates, which become a new waypoint.

Data Source:
    OpenStreetMap Nominatim - https://nominatim.openstreetmap.org
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from azimuth_planner.constants import GeocodingConfig
from azimuth_planner.errors import MalformedResponse, RemoteServiceUnavailable
from azimuth_planner.model.waypoint import Waypoint, WaypointPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Place:
    """A search result."""

    display_name: str
    lat: float
    lon: float


class NominatimGeocoder:
    """Free-text place search.

    Example:
        geocoder = NominatimGeocoder()
        places = geocoder.search("Recoaro Terme")
        geocoder.add_to_path(places[0], path)
    """

    def __init__(
        self,
        url: str = GeocodingConfig.SEARCH_URL,
        timeout_s: float = GeocodingConfig.REQUEST_TIMEOUT_S,
        max_results: int = GeocodingConfig.MAX_RESULTS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._max_results = max_results
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", GeocodingConfig.USER_AGENT)

    def search(self, query: str) -> list[Place]:
        """Search places matching a free-text query.

        Queries shorter than GeocodingConfig.MIN_QUERY_LENGTH return no results
        without contacting the service.

        Raises:
            RemoteServiceUnavailable: Network failure or non-success status.
            MalformedResponse: Body is not a list of places.
        """
        query = query.strip()
        if len(query) < GeocodingConfig.MIN_QUERY_LENGTH:
            return []

        params = {"format": "json", "addressdetails": 1, "q": query}
        try:
            response = self._session.get(self._url, params=params, timeout=self._timeout_s)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RemoteServiceUnavailable(f"Place search unavailable: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Place search response is not valid JSON: {e}") from e

        if not isinstance(payload, list):
            raise MalformedResponse("Place search response is not a list")

        places = []
        for item in payload[: self._max_results]:
            try:
                places.append(
                    Place(
                        display_name=str(item["display_name"]),
                        lat=float(item["lat"]),
                        lon=float(item["lon"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise MalformedResponse(f"Place search result missing fields: {e}") from e

        logger.info(f"Place search '{query}': {len(places)} result(s)")
        return places

    @staticmethod
    def add_to_path(place: Place, path: WaypointPath) -> Waypoint:
        """Append the selected place as a new waypoint."""
        return path.add(lat=place.lat, lon=place.lon, label=place.display_name)
