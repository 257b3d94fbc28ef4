"""Azimuth Planner - Bearings, distances and elevation profiles for map paths.

Analyzes a user-drawn multi-point path:
- True and magnetic bearing plus great-circle distance per segment
- Densification into regularly spaced samples
- Cached, batched elevation lookup from a remote service
- Gain/loss, extrema, per-step slope with severity classes, elevation profile
- Debounced, staleness-aware recomputation while waypoints are edited

Modules:
    core: Geometry, elevation cache/fetcher, slope analysis, pipeline
    model: Data structures (Waypoint, DensifiedPoint, SlopeStep, AnalysisResult)
    scheduler: Recompute state machine and scheduler
    services: Place search
    export: CSV export

Example:
    from azimuth_planner.core import ElevationFetcher, OpenElevationService, PathAnalyzer
    from azimuth_planner.model import WaypointPath
    from azimuth_planner.scheduler import RecomputeScheduler
"""
