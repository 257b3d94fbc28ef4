"""Analyze a waypoint path from the command line.

Feeds waypoints through the same WaypointPath -> RecomputeScheduler flow the
map interface uses, then prints segments and the elevation summary.

Usage:
    python scripts/analyze_path.py 45.545,11.535 45.552,11.541 --declination 3.2
    python scripts/analyze_path.py 45.545,11.535 45.552,11.541 --csv output/path.csv
"""

import argparse
import asyncio
import logging
from pathlib import Path

from azimuth_planner.constants import ElevationConfig
from azimuth_planner.core import (
    ElevationCache,
    ElevationFetcher,
    JsonFileStore,
    OpenElevationService,
    PathAnalyzer,
)
from azimuth_planner.export import summary_line, write_csv
from azimuth_planner.model import AnalysisStatus, WaypointPath
from azimuth_planner.scheduler import LoggingAnalysisListener, RecomputeScheduler

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_point(text: str) -> tuple[float, float]:
    try:
        lat_text, lon_text = text.split(",")
        return float(lat_text), float(lon_text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Expected 'lat,lon', got '{text}'") from e


async def analyze(points: list[tuple[float, float]], declination_deg: float, cache_path: Path):
    fetcher = ElevationFetcher(
        service=OpenElevationService(),
        cache=ElevationCache(store=JsonFileStore(path=cache_path)),
    )
    scheduler = RecomputeScheduler(
        analyzer=PathAnalyzer(fetcher=fetcher),
        listener=LoggingAnalysisListener(),
        declination_deg=declination_deg,
    )
    path = WaypointPath(on_change=scheduler.notify_changed)
    for i, (lat, lon) in enumerate(points, start=1):
        path.add(lat=lat, lon=lon, label=f"Point {i}")
    return await scheduler.wait_idle()


def main() -> None:
    parser = argparse.ArgumentParser(description="Bearings, distances and elevation profile of a path")
    parser.add_argument("points", nargs="+", type=parse_point, help="Waypoints as lat,lon")
    parser.add_argument("--declination", type=float, default=0.0, help="Magnetic declination in degrees (east +)")
    parser.add_argument("--cache", type=Path, default=ElevationConfig.CACHE_PATH, help="Elevation cache file")
    parser.add_argument("--csv", type=Path, default=None, help="Write segment CSV to this path")
    args = parser.parse_args()

    result = asyncio.run(analyze(points=args.points, declination_deg=args.declination, cache_path=args.cache))
    if result is None:
        return
    if result.status == AnalysisStatus.OK:
        print(summary_line(result))
    else:
        print(f"Elevation profile {result.status}: {result.message}")
    if args.csv is not None:
        write_csv(result.segments, path=args.csv)


if __name__ == "__main__":
    main()
