"""Data model classes for path analysis.

- Waypoint: User-placed point (id, position, label, order)
- WaypointPath: Ordered, bounded waypoint list with change notification
- DensifiedPoint: Regularly spaced sample with cumulative distance
- SlopeStep: Slope between two adjacent samples
- SegmentReport: Bearing/distance/slope between two waypoints
- ProfilePoint: Distance-indexed elevation
- AnalysisResult: Derived value object handed to the rendering layer
"""

from azimuth_planner.model.analysis_result import (
    AnalysisResult,
    AnalysisStatus,
    ProfilePoint,
    SegmentReport,
)
from azimuth_planner.model.densified_point import DensifiedPoint
from azimuth_planner.model.slope_step import SlopeStep
from azimuth_planner.model.waypoint import Waypoint, WaypointPath

__all__ = [
    "Waypoint",
    "WaypointPath",
    "DensifiedPoint",
    "SlopeStep",
    "SegmentReport",
    "ProfilePoint",
    "AnalysisResult",
    "AnalysisStatus",
]
