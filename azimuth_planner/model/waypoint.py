"""Waypoint - A user-placed point of the analyzed path.

The waypoint list is owned by the interaction layer. WaypointPath keeps the
ordering and id bookkeeping in one place and hands the analysis core an
immutable snapshot after every mutation.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from azimuth_planner.constants import PathConfig
from azimuth_planner.errors import WaypointLimitError

logger = logging.getLogger(__name__)

# Receives (snapshot, urgent) after every mutation
ChangeCallback = Callable[[tuple["Waypoint", ...], bool], None]


@dataclass(frozen=True)
class Waypoint:
    """A waypoint with position and display label.

    Attributes:
        id: Unique identifier (e.g., "W1", "W2", ...)
        lat: Latitude in decimal degrees (WGS84)
        lon: Longitude in decimal degrees (WGS84)
        label: Display name (search result, "GPS position", ...)
        order: Position in the path, 0-based
    """

    id: str
    lat: float
    lon: float
    label: str = ""
    order: int = 0

    @property
    def lat_lon(self) -> tuple[float, float]:
        """Return (lat, lon) tuple - standard geographic order."""
        return (self.lat, self.lon)

    def to_dict(self) -> dict:
        return {"id": self.id, "lat": self.lat, "lon": self.lon, "label": self.label, "order": self.order}


class WaypointPath:
    """Ordered, bounded list of waypoints with change notification.

    Discrete edits (add, remove, drag end) are reported as urgent; moves during
    a continuous drag are not, so the heavy recompute waits for the drag to settle.

    Example:
        path = WaypointPath(on_change=scheduler.notify_changed)
        first = path.add(lat=45.0, lon=11.0, label="Start")
        path.move(first.id, lat=45.001, lon=11.0, final=False)
    """

    def __init__(
        self,
        max_waypoints: int = PathConfig.MAX_WAYPOINTS,
        on_change: Optional[ChangeCallback] = None,
    ) -> None:
        self._waypoints: list[Waypoint] = []
        self._next_id = 1
        self._max_waypoints = max_waypoints
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._waypoints)

    @property
    def is_full(self) -> bool:
        return len(self._waypoints) >= self._max_waypoints

    def snapshot(self) -> tuple[Waypoint, ...]:
        """Immutable copy of the current ordered waypoints."""
        return tuple(self._waypoints)

    def get(self, waypoint_id: str) -> Waypoint:
        for waypoint in self._waypoints:
            if waypoint.id == waypoint_id:
                return waypoint
        raise KeyError(f"Unknown waypoint: {waypoint_id}")

    def add(self, lat: float, lon: float, label: str = "") -> Waypoint:
        """Append a waypoint at the end of the path.

        Raises:
            WaypointLimitError: If the path already holds max_waypoints.
        """
        if self.is_full:
            raise WaypointLimitError(f"Maximum of {self._max_waypoints} waypoints reached")

        waypoint = Waypoint(
            id=f"W{self._next_id}",
            lat=lat,
            lon=lon,
            label=label,
            order=len(self._waypoints),
        )
        self._next_id += 1
        self._waypoints.append(waypoint)
        logger.info(f"Added waypoint {waypoint.id} at ({lat:.6f}, {lon:.6f})")
        self._notify(urgent=True)
        return waypoint

    def move(self, waypoint_id: str, lat: float, lon: float, final: bool = True) -> Waypoint:
        """Move a waypoint. Pass final=False while a drag is still in progress."""
        current = self.get(waypoint_id)
        moved = replace(current, lat=lat, lon=lon)
        self._waypoints[current.order] = moved
        self._notify(urgent=final)
        return moved

    def remove(self, waypoint_id: str) -> None:
        current = self.get(waypoint_id)
        del self._waypoints[current.order]
        self._reindex()
        logger.info(f"Removed waypoint {waypoint_id}")
        self._notify(urgent=True)

    def reset(self) -> None:
        """Remove all waypoints."""
        self._waypoints = []
        logger.info("Waypoint path reset")
        self._notify(urgent=True)

    def _reindex(self) -> None:
        self._waypoints = [replace(w, order=i) for i, w in enumerate(self._waypoints)]

    def _notify(self, urgent: bool) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot(), urgent)

    def __repr__(self) -> str:
        return f"WaypointPath({len(self._waypoints)}/{self._max_waypoints} waypoints)"
