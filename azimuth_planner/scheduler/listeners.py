"""Rendering-layer listeners for the recompute scheduler.

The scheduler never touches presentation state. It hands segments and
results to an AnalysisListener; the interaction layer subclasses it to
redraw polylines, labels, the profile chart and the summary badges.
"""

import logging

from azimuth_planner.model.analysis_result import AnalysisResult, AnalysisStatus, SegmentReport

logger = logging.getLogger(__name__)


class AnalysisListener:
    """Receives analysis output. Default implementation ignores everything."""

    def on_segments(self, segments: tuple[SegmentReport, ...]) -> None:
        """Light path: bearings and distances for the latest snapshot."""

    def on_result(self, result: AnalysisResult) -> None:
        """Heavy path: committed result or an explicit empty/too-short/unavailable state."""


class LoggingAnalysisListener(AnalysisListener):
    """Logs analysis output (used by scripts and as the scheduler default)."""

    def on_segments(self, segments: tuple[SegmentReport, ...]) -> None:
        for s in segments:
            logger.info(
                f"Segment {s.waypoint_pair_index + 1}: {s.from_label} -> {s.to_label} | "
                f"bearing {s.bearing_deg:.2f}° | magnetic {s.bearing_magnetic_deg:.2f}° | {s.distance_m:.2f} m"
            )

    def on_result(self, result: AnalysisResult) -> None:
        if result.status != AnalysisStatus.OK:
            logger.info(f"Elevation profile {result.status}: {result.message or 'no data'}")
            return
        logger.info(
            f"Gain +{result.gain_m:.0f} m | loss -{result.loss_m:.0f} m | "
            f"min {result.min_elevation_m:.0f} m | max {result.max_elevation_m:.0f} m | "
            f"max slope {result.max_slope_deg:.1f}° | {result.percent_over_threshold:.1f}% over threshold"
        )
        if result.has_steep_steps:
            logger.warning(f"Steep section: max slope {result.max_slope_deg:.1f}°")
