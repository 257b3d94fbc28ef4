"""CSV export of segment reports and summary statistics.

Export surfaces only read AnalysisResult data; formatting lives here.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Sequence

from azimuth_planner.constants import OUTPUT_DIR, ExportConfig
from azimuth_planner.model.analysis_result import AnalysisResult, SegmentReport

logger = logging.getLogger(__name__)


def segments_to_csv(segments: Sequence[SegmentReport]) -> str:
    """Render segments as CSV text (header plus one row per segment).

    Returns an empty string when there are no segments (fewer than two waypoints).
    """
    if not segments:
        return ""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(ExportConfig.CSV_HEADER)
    for s in segments:
        writer.writerow(
            [
                s.waypoint_pair_index + 1,
                s.from_label,
                s.to_label,
                s.from_lat_lon[0],
                s.from_lat_lon[1],
                s.to_lat_lon[0],
                s.to_lat_lon[1],
                s.bearing_deg,
                s.bearing_magnetic_deg,
                s.distance_m,
            ]
        )
    return buffer.getvalue()


def summary_line(result: AnalysisResult) -> str:
    """One-line elevation summary (rounded like the on-screen badges)."""
    return (
        f"Gain +: {round(result.gain_m)} m | Loss -: {round(result.loss_m)} m | "
        f"Min: {round(result.min_elevation_m)} m | Max: {round(result.max_elevation_m)} m | "
        f"Max slope: {result.max_slope_deg:.1f}° | Over threshold: {result.percent_over_threshold:.1f}%"
    )


def write_csv(segments: Sequence[SegmentReport], path: Path = OUTPUT_DIR / ExportConfig.CSV_FILENAME) -> Path:
    """Write segments to a CSV file, creating the output directory if needed."""
    text = segments_to_csv(segments)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    logger.info(f"Exported {len(segments)} segment(s) to {path}")
    return path
