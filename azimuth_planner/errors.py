"""Central error types used across the path analysis pipeline."""

from __future__ import annotations


class AzimuthPlannerError(RuntimeError):
    """Base error for path analysis failures."""


class InsufficientPointsError(AzimuthPlannerError):
    """Raised when an operation needs at least two waypoints."""


class PathTooShortError(AzimuthPlannerError):
    """Raised when the total path length is below the profile minimum."""

    def __init__(self, length_m: float, min_length_m: float) -> None:
        super().__init__(f"Path length {length_m:.1f}m is below minimum {min_length_m:.0f}m")
        self.length_m = length_m
        self.min_length_m = min_length_m


class RemoteServiceUnavailable(AzimuthPlannerError):
    """Raised on network failure or a non-success response from a remote service."""


class MalformedResponse(RemoteServiceUnavailable):
    """Raised when a remote response has the wrong shape or result count."""


class WaypointLimitError(AzimuthPlannerError):
    """Raised when adding a waypoint would exceed the configured maximum."""


__all__ = [
    "AzimuthPlannerError",
    "InsufficientPointsError",
    "PathTooShortError",
    "RemoteServiceUnavailable",
    "MalformedResponse",
    "WaypointLimitError",
]
