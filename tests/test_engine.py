"""Tests for the streaming gait analysis engine."""

from __future__ import annotations

import threading
from dataclasses import replace

import pytest

from neurogait.analysis.engine import GaitAnalysisResults, GaitAnalyzer
from neurogait.pipeline.events import (
    AnomalyDetected,
    EventBus,
    FreezingDetected,
    MetricsUpdated,
    StepDetected,
)
from neurogait.pipeline.frames import EnvironmentData, Frame, Obstacle, ObstacleType, Session


@pytest.fixture
def analyzer(settings):
    """Engine with default settings, shut down after the test."""
    engine = GaitAnalyzer(settings)
    yield engine
    engine.shutdown()


def _run(analyzer: GaitAnalyzer, frames, session: Session | None = None) -> GaitAnalysisResults:
    analyzer.start_session(session or Session(start_time=frames[0].timestamp))
    for frame in frames:
        analyzer.process_frame(frame)
    return analyzer.finalize_session().result(timeout=30)


class TestLifecycle:
    """Tests for session lifecycle."""

    def test_frames_ignored_without_session(self, analyzer, walking_frames):
        """Test ingestion is a no-op before a session starts."""
        for frame in walking_frames:
            analyzer.process_frame(frame)

        assert not analyzer.is_active
        assert len(analyzer.window) == 0
        assert analyzer.current_metrics is None

    def test_frames_ignored_after_finalize(self, analyzer, walking_frames):
        """Test ingestion stops once the session is finalized."""
        session = Session()
        analyzer.start_session(session)
        for frame in walking_frames[:40]:
            analyzer.process_frame(frame)
        analyzer.finalize_session().result(timeout=30)

        for frame in walking_frames[40:]:
            analyzer.process_frame(frame)
        assert len(session.frames) == 40
        assert session.is_sealed
        assert analyzer.finalize_session() is None

    def test_finalize_without_session(self, analyzer):
        """Test finalizing with nothing to analyse."""
        assert analyzer.finalize_session() is None

    def test_finalize_seals_with_last_frame(self, analyzer, walking_frames):
        """Test session end time comes from the sensor clock."""
        session = Session(start_time=0.0)
        results = _run(analyzer, walking_frames, session)

        assert session.end_time == pytest.approx(89 / 30)
        assert results.duration == pytest.approx(89 / 30)
        assert results.session_id == session.session_id

    def test_empty_session(self, analyzer):
        """Test finalizing a session that never received frames."""
        analyzer.start_session(Session(start_time=5.0))
        results = analyzer.finalize_session().result(timeout=30)

        assert results.total_frames == 0
        assert results.duration == 0.0
        assert results.final_metrics.step_count == 0
        assert results.freezing_episodes == ()

    def test_callback_delivery(self, analyzer, walking_frames):
        """Test results are also delivered to a callback."""
        delivered = []
        done = threading.Event()

        def on_results(results):
            delivered.append(results)
            done.set()

        analyzer.start_session(Session())
        for frame in walking_frames:
            analyzer.process_frame(frame)
        future = analyzer.finalize_session(callback=on_results)

        assert done.wait(timeout=30)
        assert delivered[0] is future.result()

    def test_restart_resets_state(self, analyzer, walking_frames):
        """Test a new session starts from a clean slate."""
        _run(analyzer, walking_frames)
        assert analyzer.step_count == 2

        analyzer.start_session(Session())
        assert analyzer.is_active
        assert analyzer.step_count == 0
        assert analyzer.last_step_time is None
        assert len(analyzer.window) == 0

    def test_start_time_from_sensor_clock(self, analyzer, walking_frames):
        """Test a session without a start time uses the first frame timestamp."""
        offset = 10_000.0
        shifted = [Frame(timestamp=f.timestamp + offset, positions=f.positions) for f in walking_frames]
        session = Session()
        analyzer.start_session(session)
        for frame in shifted:
            analyzer.process_frame(frame)
        cadence = analyzer.current_metrics.cadence
        results = analyzer.finalize_session().result(timeout=30)

        assert session.start_time == offset
        assert cadence == pytest.approx(2 / (89 / 30) * 60)
        assert results.duration == pytest.approx(89 / 30)
        assert results.speed_over_time[0].time == pytest.approx(29 / 30)

    def test_empty_session_without_start_time(self, analyzer):
        """Test finalizing an empty session that never got a start time."""
        analyzer.start_session(Session())
        results = analyzer.finalize_session().result(timeout=30)

        assert results.total_frames == 0
        assert results.duration == 0.0

    def test_context_manager(self, settings, walking_frames):
        """Test the engine can be used as a context manager."""
        with GaitAnalyzer(settings) as engine:
            results = _run(engine, walking_frames)
        assert results.total_frames == 90


class TestRealtime:
    """Tests for per-frame analysis."""

    def test_window_is_bounded(self, analyzer, walking_frames):
        """Test the window never exceeds its capacity."""
        analyzer.start_session(Session())
        for frame in walking_frames:
            analyzer.process_frame(frame)
            assert len(analyzer.window) <= 30
        assert len(analyzer.window) == 30
        assert len(analyzer.session.frames) == 90

    def test_no_metrics_before_window_fills(self, analyzer, walking_frames):
        """Test analysis waits for a full window."""
        analyzer.start_session(Session())
        for frame in walking_frames[:29]:
            analyzer.process_frame(frame)
        assert analyzer.current_metrics is None

        analyzer.process_frame(walking_frames[29])
        assert analyzer.current_metrics is not None

    def test_steps_counted_once(self, analyzer, walking_frames):
        """Test each heel strike is counted once across window positions."""
        steps = []
        analyzer.subscribe(lambda e: steps.append(e) if isinstance(e, StepDetected) else None)
        analyzer.start_session(Session())
        for frame in walking_frames:
            analyzer.process_frame(frame)

        assert [e.step_count for e in steps] == [1, 2]
        assert [e.timestamp for e in steps] == pytest.approx([1.0, 2.0])
        assert analyzer.step_count == 2
        assert analyzer.last_step_time == pytest.approx(2.0)

    def test_step_count_monotonic(self, analyzer, freeze_frames):
        """Test the step count never decreases during a session."""
        counts = []
        analyzer.start_session(Session())
        for frame in freeze_frames:
            analyzer.process_frame(frame)
            counts.append(analyzer.step_count)

        assert counts == sorted(counts)
        assert counts[-1] == 4

    def test_event_order_within_frame(self, analyzer, walking_frames):
        """Test a step is published before the metrics it feeds."""
        events = []
        analyzer.subscribe(events.append)
        analyzer.start_session(Session())
        for frame in walking_frames:
            analyzer.process_frame(frame)

        first_step = next(i for i, e in enumerate(events) if isinstance(e, StepDetected))
        assert isinstance(events[first_step + 1], MetricsUpdated)
        assert events[first_step + 1].metrics.step_count == 1
        assert sum(isinstance(e, MetricsUpdated) for e in events) == 61

    def test_realtime_freezing(self, analyzer, freeze_frames):
        """Test a long gap between heel strikes is reported as it ends."""
        events = []
        analyzer.subscribe(events.append)
        analyzer.start_session(Session())
        for frame in freeze_frames:
            analyzer.process_frame(frame)

        freezes = [e.episode for e in events if isinstance(e, FreezingDetected)]
        assert len(freezes) == 1
        assert freezes[0].start_time == pytest.approx(2.0)
        assert freezes[0].duration == pytest.approx(7.0)

        flagged = [e.metrics.freezing_episode for e in events if isinstance(e, MetricsUpdated)]
        assert any(flagged)
        assert not flagged[-1]

    def test_anomalies_published(self, analyzer, standing_frames):
        """Test anomalies are published and kept for the results."""
        events = []
        analyzer.subscribe(events.append)
        results = _run(analyzer, standing_frames)

        anomalies = [e.anomaly for e in events if isinstance(e, AnomalyDetected)]
        assert len(anomalies) == 61
        assert list(results.anomalies) == anomalies

    def test_polling_queue(self, settings, walking_frames):
        """Test events can be polled instead of pushed."""
        bus = EventBus(queue_size=1000)
        with GaitAnalyzer(settings, event_bus=bus) as engine:
            engine.start_session(Session())
            for frame in walking_frames:
                engine.process_frame(frame)

        events = bus.drain()
        assert sum(isinstance(e, StepDetected) for e in events) == 2

    def test_clear_cache(self, analyzer, walking_frames):
        """Test clearing the cache keeps the session but resets counters."""
        analyzer.start_session(Session())
        for frame in walking_frames:
            analyzer.process_frame(frame)

        analyzer.clear_cache()
        state = (len(analyzer.window), analyzer.current_metrics, analyzer.step_count, analyzer.last_step_time)
        analyzer.clear_cache()

        assert state == (0, None, 0, None)
        assert (len(analyzer.window), analyzer.current_metrics, analyzer.step_count, analyzer.last_step_time) == state
        assert analyzer.is_active
        assert len(analyzer.session.frames) == 90


class TestResults:
    """Tests for full-session results."""

    def test_walking_results(self, analyzer, walking_frames):
        """Test final metrics come from the last window of the session."""
        results = _run(analyzer, walking_frames)

        assert results.total_frames == 90
        assert results.final_metrics.step_count == 2
        assert results.final_metrics.walking_speed == pytest.approx(1.3)
        assert results.final_metrics.cadence == pytest.approx(2 / (89 / 30) * 60)
        assert results.freezing_episodes == ()
        assert not results.freezing_summary.fog_detected
        assert results.spatial_analysis.step_length_mean == pytest.approx(0.65)
        assert len(results.speed_over_time) == 3

    def test_freeze_results_merged(self, analyzer, freeze_frames):
        """Test the scan episode replaces the overlapping real-time one."""
        results = _run(analyzer, freeze_frames)

        assert len(results.freezing_episodes) == 1
        episode = results.freezing_episodes[0]
        assert episode.start_time == pytest.approx(76 / 30)
        assert results.freezing_summary.n_episodes == 1
        assert results.final_metrics.step_count == 4

    def test_freeze_results_dense(self, settings, freeze_frames):
        """Test every frozen scan window is kept when merging is off."""
        dense = replace(settings, detection=replace(settings.detection, merge_overlapping=False))
        with GaitAnalyzer(dense) as engine:
            results = _run(engine, freeze_frames)

        assert len(results.freezing_episodes) == 119

    def test_results_are_immutable(self, analyzer, walking_frames):
        """Test results cannot be modified after delivery."""
        from dataclasses import FrozenInstanceError

        results = _run(analyzer, walking_frames)
        with pytest.raises(FrozenInstanceError):
            results.total_frames = 0

    def test_results_to_dict(self, analyzer, freeze_frames):
        """Test results serialize to plain data."""
        data = _run(analyzer, freeze_frames).to_dict()

        assert data["total_frames"] == 330
        assert data["freezing_episodes"][0]["severity"] == "mild"
        assert data["spatial_map"] is None
        assert "walking_speed" in data["final_metrics"]


class TestEnvironment:
    """Tests for environment handling."""

    def test_session_environment_is_mapped(self, analyzer, walking_frames):
        """Test the spatial map is built at session start and carried to results."""
        environment = EnvironmentData(
            obstacles=(Obstacle(position=(0.0, 0.0, 2.0), type=ObstacleType.DOORWAY),),
            walking_path=[[0, 0, 0], [0, 0, 4]],
        )
        analyzer.start_session(Session(environment=environment))
        assert analyzer.spatial_map is not None

        for frame in walking_frames:
            analyzer.process_frame(frame)
        results = analyzer.finalize_session().result(timeout=30)
        assert len(results.spatial_map.freezing_risk_zones) == 1

    def test_update_environment(self, analyzer):
        """Test attaching an environment mid-session."""
        analyzer.start_session(Session())
        assert analyzer.spatial_map is None

        environment = EnvironmentData(
            obstacles=(Obstacle(position=(1.0, 0.0, 1.0), type=ObstacleType.CORNER),),
        )
        spatial_map = analyzer.update_environment(environment)
        assert analyzer.session.environment is environment
        assert analyzer.spatial_map is spatial_map
        assert spatial_map.freezing_risk_zones[0].radius == 1.0

    def test_environment_before_session(self, analyzer, walking_frames):
        """Test a snapshot taken before recording is attached to the next session."""
        environment = EnvironmentData(
            obstacles=(Obstacle(position=(0.0, 0.0, 2.0), type=ObstacleType.DOORWAY),),
        )
        spatial_map = analyzer.update_environment(environment)
        assert analyzer.session is None

        session = Session()
        analyzer.start_session(session)
        assert session.environment is environment
        assert len(analyzer.spatial_map.freezing_risk_zones) == len(spatial_map.freezing_risk_zones)

        for frame in walking_frames:
            analyzer.process_frame(frame)
        results = analyzer.finalize_session().result(timeout=30)
        assert len(results.spatial_map.freezing_risk_zones) == 1

    def test_session_environment_wins(self, analyzer):
        """Test a session's own environment replaces a held snapshot."""
        analyzer.update_environment(EnvironmentData(
            obstacles=(Obstacle(position=(0.0, 0.0, 2.0), type=ObstacleType.DOORWAY),),
        ))
        own = EnvironmentData()
        analyzer.start_session(Session(environment=own))

        assert analyzer.session.environment is own
        assert analyzer.spatial_map.freezing_risk_zones == ()

    def test_held_environment_used_once(self, analyzer):
        """Test a held snapshot is not carried into later sessions."""
        analyzer.update_environment(EnvironmentData())
        analyzer.start_session(Session())
        analyzer.finalize_session().result(timeout=30)

        analyzer.start_session(Session())
        assert analyzer.session.environment is None
        assert analyzer.spatial_map is None
