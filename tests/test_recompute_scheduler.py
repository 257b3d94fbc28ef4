"""Tests for RecomputeScheduler: debounce, staleness, failures, idempotence.

Every test drives the scheduler inside its own event loop via asyncio.run().
Delays are shortened so debounced work fires within milliseconds.
"""

import asyncio
from typing import Callable

import pytest

from azimuth_planner.core.elevation_cache import ElevationCache, InMemoryStore
from azimuth_planner.core.elevation_fetcher import ElevationFetcher
from azimuth_planner.core.geo_calculator import GeoCalculator
from azimuth_planner.core.path_analysis import PathAnalyzer
from azimuth_planner.model.analysis_result import AnalysisStatus
from azimuth_planner.model.waypoint import WaypointPath
from azimuth_planner.scheduler.recompute_scheduler import RecomputeScheduler

from conftest import (
    METERS_PER_DEGREE,
    FakeElevationService,
    GatedElevationService,
    RaisingElevationService,
    RecordingListener,
    make_waypoints,
)

SHORT_S = 0.001
LONG_S = 0.03

PATH_A = make_waypoints([(45.0, 11.0), (45.009, 11.0)])
PATH_B = make_waypoints([(45.0, 11.0), (45.0, 11.009)])


def make_scheduler(
    service, listener: RecordingListener, short_delay_s: float = SHORT_S, long_delay_s: float = LONG_S
) -> RecomputeScheduler:
    analyzer = PathAnalyzer(fetcher=ElevationFetcher(service=service, cache=ElevationCache(store=InMemoryStore())))
    return RecomputeScheduler(
        analyzer=analyzer,
        listener=listener,
        short_delay_s=short_delay_s,
        long_delay_s=long_delay_s,
    )


async def wait_for(predicate: Callable[[], bool], timeout_s: float = 2.0) -> None:
    """Yield to the loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.001)


class TestLightAndHeavyPath:
    """Segments publish synchronously; the elevation summary follows."""

    def test_segments_published_before_elevation(self) -> None:
        listener = RecordingListener()
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=True)

            assert len(listener.segments) == 1
            assert listener.segments[0][0].distance_m == pytest.approx(1000.75, abs=0.1)
            assert listener.results == []
            assert scheduler.state_machine.is_pending

            return await scheduler.wait_idle(), scheduler

        result, scheduler = asyncio.run(scenario())

        assert result.status == AnalysisStatus.OK
        assert result.signature == GeoCalculator.path_signature(PATH_A)
        assert scheduler.committed_signature == result.signature
        assert scheduler.state_machine.is_idle
        assert listener.results == [result]

    def test_waypoint_path_drives_scheduler(self) -> None:
        listener = RecordingListener()

        async def scenario():
            scheduler = make_scheduler(FakeElevationService(), listener)
            path = WaypointPath(on_change=scheduler.notify_changed)
            path.add(lat=45.0, lon=11.0, label="Start")
            path.add(lat=45.009, lon=11.0, label="Summit")
            return await scheduler.wait_idle()

        result = asyncio.run(scenario())

        assert result.status == AnalysisStatus.OK
        assert result.segments[0].from_label == "Start"
        assert result.segments[0].to_label == "Summit"
        # First add published an EMPTY result, the second the full summary
        assert [r.status for r in listener.results] == [AnalysisStatus.EMPTY, AnalysisStatus.OK]


class TestIdempotence:
    """Unchanged geometry never triggers a recompute."""

    def test_same_snapshot_is_noop(self) -> None:
        listener = RecordingListener()
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=True)
            await scheduler.wait_idle()
            calls_after_commit = len(service.calls)

            scheduler.notify_changed(PATH_A, urgent=True)
            assert scheduler.state_machine.is_idle
            await asyncio.sleep(LONG_S * 2)
            return calls_after_commit, scheduler

        calls_after_commit, scheduler = asyncio.run(scenario())

        assert len(service.calls) == calls_after_commit == 1
        assert len(listener.results) == 1
        # The light path still republishes
        assert len(listener.segments) == 2

    def test_move_below_rounding_is_noop(self) -> None:
        service = FakeElevationService()
        nudged = make_waypoints([(45.0000001, 11.0000001), (45.009, 11.0)])

        async def scenario():
            scheduler = make_scheduler(service, RecordingListener())
            scheduler.notify_changed(PATH_A, urgent=True)
            await scheduler.wait_idle()
            scheduler.notify_changed(nudged, urgent=True)
            await scheduler.wait_idle()

        asyncio.run(scenario())
        assert len(service.calls) == 1

    def test_drag_end_on_running_geometry_keeps_computation(self) -> None:
        """Releasing a drag held still past the long delay does not fetch again."""
        listener = RecordingListener()
        service = GatedElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=False)
            await wait_for(lambda: len(service.gates) == 1)
            running_token = scheduler.context.token

            scheduler.notify_changed(PATH_A, urgent=True)
            assert scheduler.state_machine.is_computing
            assert scheduler.context.token == running_token

            service.release(0)
            return await scheduler.wait_idle()

        result = asyncio.run(scenario())

        assert len(service.calls) == 1
        assert result.status == AnalysisStatus.OK
        assert result.signature == GeoCalculator.path_signature(PATH_A)
        assert len(listener.segments) == 2
        assert listener.results == [result]


class TestDebounce:
    """Rapid edits coalesce into one computation for the latest snapshot."""

    def test_drag_coalesces(self) -> None:
        listener = RecordingListener()
        service = FakeElevationService()
        step = 10 / METERS_PER_DEGREE
        drags = [make_waypoints([(45.0, 11.0), (45.009 + i * step, 11.0)]) for i in range(5)]

        async def scenario():
            scheduler = make_scheduler(service, listener)
            for snapshot in drags:
                scheduler.notify_changed(snapshot, urgent=False)
            return await scheduler.wait_idle()

        result = asyncio.run(scenario())

        assert len(service.calls) == 1
        assert result.signature == GeoCalculator.path_signature(drags[-1])
        assert len(listener.segments) == 5
        assert len(listener.results) == 1

    def test_drag_end_uses_short_delay(self) -> None:
        """A final move re-arms with the short delay, replacing the long one."""
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, RecordingListener(), long_delay_s=10.0)
            scheduler.notify_changed(PATH_A, urgent=False)
            scheduler.notify_changed(PATH_B, urgent=True)
            await asyncio.wait_for(scheduler.wait_idle(), timeout=2.0)
            return scheduler.last_result

        result = asyncio.run(scenario())
        assert result.signature == GeoCalculator.path_signature(PATH_B)
        assert len(service.calls) == 1


class TestStaleness:
    """Completions for superseded snapshots are discarded."""

    @pytest.mark.parametrize("release_order", [(1, 0), (0, 1)])
    def test_older_completion_never_overwrites_newer(self, release_order: tuple[int, int]) -> None:
        listener = RecordingListener()
        service = GatedElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)

            scheduler.notify_changed(PATH_A, urgent=True)
            await wait_for(lambda: len(service.gates) == 1)
            scheduler.notify_changed(PATH_B, urgent=True)
            await wait_for(lambda: len(service.gates) == 2)

            for index in release_order:
                service.release(index)
                await asyncio.sleep(0.01)
            return await scheduler.wait_idle(), scheduler

        result, scheduler = asyncio.run(scenario())

        expected = GeoCalculator.path_signature(PATH_B)
        assert result.signature == expected
        assert scheduler.committed_signature == expected
        assert [r.signature for r in listener.results] == [expected]
        assert scheduler.state_machine.is_idle

    def test_revert_to_committed_discards_in_flight(self) -> None:
        listener = RecordingListener()
        service = GatedElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=True)
            await wait_for(lambda: len(service.gates) == 1)
            service.release(0)
            await scheduler.wait_idle()

            scheduler.notify_changed(PATH_B, urgent=True)
            await wait_for(lambda: len(service.gates) == 2)
            scheduler.notify_changed(PATH_A, urgent=True)
            assert scheduler.state_machine.is_idle

            service.release(1)
            return await scheduler.wait_idle(), scheduler

        result, scheduler = asyncio.run(scenario())

        assert result.signature == GeoCalculator.path_signature(PATH_A)
        assert scheduler.committed_signature == result.signature
        assert len(listener.results) == 1

    def test_revert_before_timer_fires(self) -> None:
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, RecordingListener())
            scheduler.notify_changed(PATH_A, urgent=True)
            await scheduler.wait_idle()

            scheduler.notify_changed(PATH_B, urgent=False)
            scheduler.notify_changed(PATH_A, urgent=False)
            assert scheduler.state_machine.is_idle
            await asyncio.sleep(LONG_S * 2)

        asyncio.run(scenario())
        assert len(service.calls) == 1

    def test_revert_after_failure_republishes_committed(self) -> None:
        """A failure shown for B must not outlive a return to committed A."""
        listener = RecordingListener()
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=True)
            await scheduler.wait_idle()

            service.fail = True
            scheduler.notify_changed(PATH_B, urgent=True)
            await scheduler.wait_idle()

            scheduler.notify_changed(PATH_A, urgent=True)
            assert scheduler.state_machine.is_idle
            return scheduler

        scheduler = asyncio.run(scenario())

        signature_a = GeoCalculator.path_signature(PATH_A)
        assert [r.status for r in listener.results] == [
            AnalysisStatus.OK,
            AnalysisStatus.UNAVAILABLE,
            AnalysisStatus.OK,
        ]
        assert listener.last_result.signature == signature_a
        assert listener.last_result.summary() == listener.results[0].summary()
        assert scheduler.last_result is listener.last_result
        assert scheduler.committed_signature == signature_a
        assert len(service.calls) == 2


class TestFailures:
    """Explicit states for failures; the scheduler keeps working."""

    def test_unavailable_then_retry(self) -> None:
        listener = RecordingListener()
        service = FakeElevationService(fail=True)

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=True)
            failed = await scheduler.wait_idle()
            assert scheduler.state_machine.is_idle
            assert scheduler.committed_signature is None

            service.fail = False
            scheduler.notify_changed(PATH_A, urgent=True)
            return failed, await scheduler.wait_idle()

        failed, retried = asyncio.run(scenario())

        assert failed.status == AnalysisStatus.UNAVAILABLE
        assert failed.segments[0].distance_m == pytest.approx(1000.75, abs=0.1)
        assert failed.profile == ()
        assert retried.status == AnalysisStatus.OK
        assert len(service.calls) == 2

    def test_malformed_response_is_unavailable(self) -> None:
        listener = RecordingListener()

        async def scenario():
            scheduler = make_scheduler(FakeElevationService(drop_last=True), listener)
            scheduler.notify_changed(PATH_A, urgent=True)
            return await scheduler.wait_idle()

        assert asyncio.run(scenario()).status == AnalysisStatus.UNAVAILABLE

    @pytest.mark.parametrize(
        "error, name",
        [
            (asyncio.TimeoutError(), "TimeoutError"),
            (OSError("connection reset"), "OSError"),
        ],
    )
    def test_unexpected_service_error_is_unavailable(self, error: Exception, name: str) -> None:
        """Any exception from the service is published like an explicit failure."""
        listener = RecordingListener()
        service = RaisingElevationService(error)

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=True)
            failed = await scheduler.wait_idle()
            assert scheduler.state_machine.is_idle

            service.error = None
            scheduler.notify_changed(PATH_A, urgent=True)
            return failed, await scheduler.wait_idle()

        failed, retried = asyncio.run(scenario())

        assert failed.status == AnalysisStatus.UNAVAILABLE
        assert name in failed.message
        assert retried.status == AnalysisStatus.OK
        assert [r.status for r in listener.results] == [AnalysisStatus.UNAVAILABLE, AnalysisStatus.OK]

    def test_too_short(self) -> None:
        service = FakeElevationService()
        short = make_waypoints([(45.0, 11.0), (45.0 + 50 / METERS_PER_DEGREE, 11.0)])

        async def scenario():
            scheduler = make_scheduler(service, RecordingListener())
            scheduler.notify_changed(short, urgent=True)
            return await scheduler.wait_idle()

        result = asyncio.run(scenario())

        assert result.status == AnalysisStatus.TOO_SHORT
        assert "below minimum" in result.message
        assert len(result.segments) == 1
        assert service.calls == []


class TestFewerThanTwoWaypoints:
    """Empty result without any remote call."""

    def test_single_waypoint(self) -> None:
        listener = RecordingListener()
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A[:1], urgent=True)
            assert scheduler.state_machine.is_idle
            return scheduler.last_result

        result = asyncio.run(scenario())

        assert result.status == AnalysisStatus.EMPTY
        assert result.segments == ()
        assert listener.segments == [()]
        assert service.calls == []

    def test_removing_waypoint_drops_pending_work(self) -> None:
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, RecordingListener())
            scheduler.notify_changed(PATH_A, urgent=False)
            scheduler.notify_changed(PATH_A[:1], urgent=True)
            await asyncio.sleep(LONG_S * 2)
            return await scheduler.wait_idle()

        result = asyncio.run(scenario())
        assert result.status == AnalysisStatus.EMPTY
        assert service.calls == []


class TestDeclination:
    """Declination changes only magnetic bearings."""

    def test_set_declination_republishes_without_fetch(self) -> None:
        listener = RecordingListener()
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_B, urgent=True)
            await scheduler.wait_idle()
            scheduler.set_declination(3.0)
            return scheduler

        scheduler = asyncio.run(scenario())

        seg = listener.segments[-1][0]
        assert seg.bearing_magnetic_deg == pytest.approx(seg.bearing_deg - 3.0)
        result = listener.last_result
        assert result is scheduler.last_result
        assert result.status == AnalysisStatus.OK
        assert result.segments[0].bearing_magnetic_deg == pytest.approx(result.segments[0].bearing_deg - 3.0)
        assert result.segments[0].slope_deg_abs == 0.0
        assert len(service.calls) == 1


class TestClose:
    """close() stops armed and in-flight work."""

    def test_close_cancels_timer(self) -> None:
        service = FakeElevationService()

        async def scenario():
            scheduler = make_scheduler(service, RecordingListener())
            scheduler.notify_changed(PATH_A, urgent=False)
            scheduler.close()
            await asyncio.sleep(LONG_S * 2)

        asyncio.run(scenario())
        assert service.calls == []

    def test_close_cancels_in_flight(self) -> None:
        listener = RecordingListener()
        service = GatedElevationService()

        async def scenario():
            scheduler = make_scheduler(service, listener)
            scheduler.notify_changed(PATH_A, urgent=True)
            await wait_for(lambda: len(service.gates) == 1)
            scheduler.close()
            await asyncio.sleep(0.01)

        asyncio.run(scenario())
        assert listener.results == []

    def test_wait_idle_after_close_returns(self) -> None:
        service = GatedElevationService()

        async def scenario():
            scheduler = make_scheduler(service, RecordingListener())
            scheduler.notify_changed(PATH_A, urgent=True)
            await wait_for(lambda: len(service.gates) == 1)
            scheduler.close()
            return await asyncio.wait_for(scheduler.wait_idle(), timeout=2.0)

        assert asyncio.run(scenario()) is None
