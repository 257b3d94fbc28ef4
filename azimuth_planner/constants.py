"""Configuration constants for Azimuth Planner.

All configurable parameters are centralized here for easy tuning.

Classes:
    GeoConfig: Earth model and coordinate rounding
    PathConfig: Waypoint limits and densification
    ElevationConfig: Remote elevation service and cache
    SlopeConfig: Severity thresholds
    SchedulerConfig: Debounce delays for recomputation
    GeocodingConfig: Place search service
    ExportConfig: CSV export layout
"""

from pathlib import Path

# Package root directory (where azimuth_planner/ lives)
PACKAGE_DIR = Path(__file__).parent

# Project root directory (parent of azimuth_planner/)
PROJECT_ROOT = PACKAGE_DIR.parent

# Data directory outside package (elevation cache lives here)
DATA_DIR = PROJECT_ROOT / "data"

# Output directory for exports
OUTPUT_DIR = PROJECT_ROOT / "output"


class GeoConfig:
    """Earth model and coordinate rounding."""

    # Spherical Earth approximation
    EARTH_RADIUS_M = 6_371_000

    # Signature rounding: 5 decimals ≈ 1.1m, edits below that are no-ops
    SIGNATURE_DECIMALS = 5


class PathConfig:
    """Waypoint limits and densification parameters."""

    MAX_WAYPOINTS = 20

    # Spacing of interpolated samples along each segment (meters)
    DENSIFY_STEP_M = 25.0

    # Paths shorter than this are too short for a meaningful profile
    MIN_PATH_LENGTH_M = 100.0


class ElevationConfig:
    """Remote elevation service and local cache."""

    API_URL = "https://api.open-elevation.com/api/v1/lookup"
    REQUEST_TIMEOUT_S = 20

    # Locations per remote request
    BATCH_SIZE = 100

    # Upper bound on points requested from the remote service per analysis
    MAX_REQUESTED_POINTS = 300

    # Cache key rounding (5 decimals ≈ 1.1m) - accuracy vs hit rate tradeoff
    CACHE_KEY_DECIMALS = 5
    CACHE_PATH = DATA_DIR / "elevation_cache.json"


class SlopeConfig:
    """Slope severity classification (degrees from horizontal)."""

    # Lower bound (inclusive) of each class, ascending
    SEVERITY_THRESHOLDS = {
        "normal": 0.0,
        "caution": 30.0,
        "severe": 35.0,
        "critical": 40.0,
    }
    SEVERITIES = list(SEVERITY_THRESHOLDS.keys())

    # Steps at or above this count towards percent_over_threshold
    WARN_THRESHOLD_DEG = SEVERITY_THRESHOLDS["caution"]


assert list(SlopeConfig.SEVERITY_THRESHOLDS.values()) == sorted(
    SlopeConfig.SEVERITY_THRESHOLDS.values()
), "Severity thresholds must be ascending"


class SchedulerConfig:
    """Debounce delays for the heavy (elevation) path."""

    SHORT_DELAY_S = 0.05  # Discrete edits: add, remove, drag end
    LONG_DELAY_S = 0.7  # Continuous drag


class GeocodingConfig:
    """Place search (Nominatim) parameters."""

    SEARCH_URL = "https://nominatim.openstreetmap.org/search"
    MIN_QUERY_LENGTH = 3
    MAX_RESULTS = 6
    REQUEST_TIMEOUT_S = 10
    USER_AGENT = "azimuth-planner/1.0"


class ExportConfig:
    """CSV export layout."""

    CSV_HEADER = [
        "segment",
        "from_label",
        "to_label",
        "lat1",
        "lon1",
        "lat2",
        "lon2",
        "bearing_deg",
        "bearing_magnetic_deg",
        "distance_m",
    ]
    CSV_FILENAME = "azimuth_multi_segment.csv"
