"""Core path analysis classes.

- GeoCalculator: Bearings, distances, densification, signatures
- ElevationCache: Quantized-coordinate elevation cache over a pluggable store
- ElevationFetcher: Cache-first, batched remote elevation lookup
- SlopeAnalyzer: Slope, gain/loss, severity and profile aggregation
- PathAnalyzer: The light/heavy analysis pipeline
"""

from azimuth_planner.core.elevation_cache import (
    ElevationCache,
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
)
from azimuth_planner.core.elevation_fetcher import (
    ElevationFetcher,
    ElevationService,
    OpenElevationService,
    parse_elevation_response,
)
from azimuth_planner.core.geo_calculator import GeoCalculator
from azimuth_planner.core.path_analysis import AnalysisSettings, PathAnalyzer
from azimuth_planner.core.slope_analyzer import SlopeAnalyzer, SlopeSummary

__all__ = [
    # Geo calculator
    "GeoCalculator",
    # Elevation cache
    "ElevationCache",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    # Elevation fetcher
    "ElevationFetcher",
    "ElevationService",
    "OpenElevationService",
    "parse_elevation_response",
    # Slope analyzer
    "SlopeAnalyzer",
    "SlopeSummary",
    # Pipeline
    "PathAnalyzer",
    "AnalysisSettings",
]
