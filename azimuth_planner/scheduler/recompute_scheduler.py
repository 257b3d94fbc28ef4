"""Debounced, staleness-aware recompute of the path analysis.

The scheduler owns the analysis lifecycle for one waypoint path:

1. notify_changed() publishes bearings/distances synchronously (light path)
2. The heavy path (densify -> elevation -> slope) is debounced: short delay
   for discrete edits, long delay while dragging
3. Every armed recompute carries a fresh token; a completion is committed
   only if its token is still the latest AND the signature recomputed from
   the latest waypoints still equals the one captured when it started
4. Failures are published as explicit states and never stop the scheduler

Superseded computations are not cancelled, their results are discarded.
All methods must be called from the thread running the event loop.
"""

import asyncio
import itertools
import logging
from dataclasses import replace
from typing import Optional, Sequence

from azimuth_planner.constants import SchedulerConfig
from azimuth_planner.core.geo_calculator import GeoCalculator
from azimuth_planner.core.path_analysis import PathAnalyzer
from azimuth_planner.errors import PathTooShortError, RemoteServiceUnavailable
from azimuth_planner.model.analysis_result import AnalysisResult
from azimuth_planner.model.waypoint import Waypoint
from azimuth_planner.scheduler.listeners import AnalysisListener, LoggingAnalysisListener
from azimuth_planner.scheduler.state_machine import (
    RecomputeContext,
    RecomputeStateMachine,
    TransitionLogListener,
)

logger = logging.getLogger(__name__)


class RecomputeScheduler:
    """Reconciles rapid waypoint edits with slow elevation lookups.

    One scheduler per path; there is no shared global state.

    Example:
        scheduler = RecomputeScheduler(analyzer=analyzer, listener=renderer)
        path = WaypointPath(on_change=scheduler.notify_changed)
        path.add(lat=45.0, lon=11.0)
        path.add(lat=45.009, lon=11.0)
        await scheduler.wait_idle()
    """

    def __init__(
        self,
        analyzer: PathAnalyzer,
        listener: Optional[AnalysisListener] = None,
        short_delay_s: float = SchedulerConfig.SHORT_DELAY_S,
        long_delay_s: float = SchedulerConfig.LONG_DELAY_S,
        declination_deg: float = 0.0,
    ) -> None:
        self._analyzer = analyzer
        self._listener = listener or LoggingAnalysisListener()
        self._short_delay_s = short_delay_s
        self._long_delay_s = long_delay_s

        self._sm = RecomputeStateMachine(context=RecomputeContext(declination_deg=declination_deg))
        self._sm.add_listener(TransitionLogListener())

        self._tokens = itertools.count(1)
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()

    # ==========================================================================
    # Read-only state
    # ==========================================================================

    @property
    def state_machine(self) -> RecomputeStateMachine:
        return self._sm

    @property
    def context(self) -> RecomputeContext:
        return self._sm.context

    @property
    def last_result(self) -> Optional[AnalysisResult]:
        return self.context.last_result

    @property
    def committed_signature(self) -> Optional[str]:
        return self.context.committed_signature

    # ==========================================================================
    # Events from the interaction layer
    # ==========================================================================

    def notify_changed(self, waypoints: Sequence[Waypoint], urgent: bool = False) -> None:
        """Handle a waypoint mutation.

        Args:
            waypoints: Ordered snapshot after the mutation
            urgent: True for discrete edits (add, remove, drag end),
                False while a drag is in progress
        """
        snapshot = tuple(waypoints)
        ctx = self.context
        in_flight = ctx.running_signature if self._sm.is_computing else None
        self._sm.change(waypoints=snapshot)

        segments = PathAnalyzer.compute_segments(snapshot, declination_deg=ctx.declination_deg)
        self._listener.on_segments(segments)

        signature = GeoCalculator.path_signature(snapshot)
        self._cancel_timer()

        if signature == ctx.committed_signature:
            # Back to the committed geometry: drop pending or in-flight work
            ctx.token = next(self._tokens)
            self._sm.settle()
            if ctx.committed_result is not None and ctx.last_result is not ctx.committed_result:
                # A newer failure is on screen; restore the committed outcome
                ctx.last_result = self._with_declination(ctx.committed_result)
                ctx.committed_result = ctx.last_result
                self._listener.on_result(ctx.last_result)
            return

        if len(snapshot) < 2:
            ctx.token = next(self._tokens)
            result = AnalysisResult.empty(signature=signature, segments=segments)
            self._sm.commit(result=result)
            self._listener.on_result(result)
            self._sm.settle()
            return

        if signature == in_flight:
            # Same geometry as the running computation: keep its token
            self._sm.resume()
            logger.debug(f"Recompute {ctx.token} already running for this geometry")
            return

        token = next(self._tokens)
        self._sm.debounce(token=token)
        delay = self._short_delay_s if urgent else self._long_delay_s
        self._timer = asyncio.get_running_loop().call_later(delay, self._on_timer, token)
        logger.debug(f"Recompute {token} armed in {delay:.2f}s")

    def set_declination(self, declination_deg: float) -> None:
        """Change magnetic declination; only magnetic bearings are recomputed."""
        ctx = self.context
        ctx.declination_deg = declination_deg
        self._listener.on_segments(PathAnalyzer.compute_segments(ctx.waypoints, declination_deg=declination_deg))

        result = ctx.last_result
        if result is None or not result.segments:
            return
        if result.signature != GeoCalculator.path_signature(ctx.waypoints):
            return
        ctx.last_result = self._with_declination(result)
        if ctx.committed_result is result:
            ctx.committed_result = ctx.last_result
        self._listener.on_result(ctx.last_result)

    def _with_declination(self, result: AnalysisResult) -> AnalysisResult:
        declination_deg = self.context.declination_deg
        segments = tuple(
            replace(s, bearing_magnetic_deg=GeoCalculator.magnetic_bearing_deg(s.bearing_deg, declination_deg))
            for s in result.segments
        )
        return replace(result, segments=segments)

    # ==========================================================================
    # Heavy path
    # ==========================================================================

    def _on_timer(self, token: int) -> None:
        self._timer = None
        ctx = self.context
        if token != ctx.token:
            return

        signature = GeoCalculator.path_signature(ctx.waypoints)
        self._sm.fire(signature=signature)
        task = asyncio.get_running_loop().create_task(self._run(token, ctx.waypoints, signature))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, token: int, snapshot: tuple[Waypoint, ...], signature: str) -> None:
        ctx = self.context
        segments = PathAnalyzer.compute_segments(snapshot, declination_deg=ctx.declination_deg)
        failed = True
        try:
            result = await self._analyzer.analyze(snapshot, declination_deg=ctx.declination_deg)
            failed = False
        except PathTooShortError as e:
            result = AnalysisResult.too_short(signature=signature, segments=segments, message=str(e))
        except RemoteServiceUnavailable as e:
            logger.warning(f"Elevation unavailable for recompute {token}: {e}")
            result = AnalysisResult.unavailable(signature=signature, segments=segments, message=str(e))
        except Exception as e:
            # Any other service error counts as no response
            error_msg = f"{type(e).__name__}: {e}"
            logger.error(f"Recompute {token} failed: {error_msg}", exc_info=True)
            result = AnalysisResult.unavailable(signature=signature, segments=segments, message=error_msg)

        if not self._is_current(token=token, signature=signature):
            logger.debug(f"Discarding stale recompute {token}")
            return

        if failed:
            self._sm.fail(result=result)
            self._listener.on_result(result)
            return

        self._sm.commit(result=result)
        self._listener.on_result(result)
        self._sm.settle()

    def _is_current(self, token: int, signature: str) -> bool:
        ctx = self.context
        return token == ctx.token and GeoCalculator.path_signature(ctx.waypoints) == signature

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait_idle(self, poll_s: float = 0.01) -> Optional[AnalysisResult]:
        """Wait until no recompute is armed or in flight.

        Returns:
            The last published result.
        """
        while self._timer is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(poll_s)
        return self.context.last_result

    def close(self) -> None:
        """Cancel the armed timer and in-flight computations."""
        self._cancel_timer()
        self.context.token = next(self._tokens)
        for task in list(self._tasks):
            task.cancel()

    def __repr__(self) -> str:
        return f"RecomputeScheduler({self._sm!r})"
