"""Streaming gait analysis engine.

Per frame:
1) ingest into session history and the sliding window
2) once the window is full: step detection, metrics, anomaly detection

At session end the full history is re-analysed on a background worker and an
immutable GaitAnalysisResults is delivered through a Future / callback.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from neurogait.core.config import Settings, get_settings
from neurogait.pipeline.events import (
    AnomalyDetected,
    EventBus,
    FreezingDetected,
    Listener,
    MetricsUpdated,
    StepDetected,
)
from neurogait.pipeline.frames import EnvironmentData, Frame, Session
from neurogait.pipeline.window import SlidingWindow
from neurogait.spatial.mapper import SpatialMap, SpatialMapper

from .anomalies import AnomalyDetector, GaitAnomaly
from .metrics import GaitMetrics, MetricsCalculator
from .risk_analysis.fog import (
    FreezingDetector,
    FreezingEpisode,
    FreezingSummary,
    combine_episodes,
    summarize_episodes,
)
from .steps import StepDetector
from .summary import SessionSummarizer, SpatialAnalysis, SpeedSample, TemporalAnalysis, speed_trace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GaitAnalysisResults:
    """Structured output of a finalized session."""

    session_id: str
    duration: float  # seconds
    total_frames: int
    final_metrics: GaitMetrics
    freezing_episodes: tuple[FreezingEpisode, ...]
    anomalies: tuple[GaitAnomaly, ...]
    spatial_analysis: SpatialAnalysis
    temporal_analysis: TemporalAnalysis
    freezing_summary: FreezingSummary
    speed_over_time: tuple[SpeedSample, ...] = ()
    spatial_map: SpatialMap | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "duration": self.duration,
            "total_frames": self.total_frames,
            "final_metrics": self.final_metrics.to_dict(),
            "freezing_episodes": [ep.to_dict() for ep in self.freezing_episodes],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "spatial_analysis": self.spatial_analysis.to_dict(),
            "temporal_analysis": self.temporal_analysis.to_dict(),
            "freezing_summary": self.freezing_summary.to_dict(),
            "speed_over_time": [{"time": s.time, "speed": s.speed} for s in self.speed_over_time],
            "spatial_map": self.spatial_map.to_dict() if self.spatial_map else None,
        }


class GaitAnalyzer:
    """
    Real-time gait analysis for one recording session at a time.

    ``process_frame`` must be called from a single thread. The instance is
    owned by whoever drives the session; finalization hands back a frozen
    results value that is safe to pass across threads.

    Usage:
        analyzer = GaitAnalyzer()
        analyzer.subscribe(print)
        analyzer.start_session(Session(start_time=t0))
        for frame in stream:
            analyzer.process_frame(frame)
        results = analyzer.finalize_session().result()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        event_bus: EventBus | None = None,
    ):
        self.settings = settings or get_settings()
        engine = self.settings.engine
        detection = self.settings.detection

        self.events = event_bus or EventBus()
        self.window = SlidingWindow(engine.window_size)

        self.step_detector = StepDetector(
            lookback=detection.step_lookback,
            min_samples=detection.step_min_samples,
            threshold=detection.step_threshold,
        )
        self.metrics_calculator = MetricsCalculator(freezing_threshold=engine.freezing_threshold)
        self.freezing_detector = FreezingDetector(
            freezing_threshold=engine.freezing_threshold,
            scan_window=detection.scan_window,
            movement_threshold=detection.movement_threshold,
            merge_overlapping=detection.merge_overlapping,
        )
        self.anomaly_detector = AnomalyDetector(
            lookback=detection.step_lookback,
            min_samples=detection.step_min_samples,
            shuffling_range=detection.shuffling_range,
            asymmetry_threshold=detection.arm_swing_asymmetry,
            stability_threshold=detection.postural_stability,
        )
        self.summarizer = SessionSummarizer(
            prominence=detection.step_threshold,
            min_step_interval=engine.min_step_interval,
        )
        self.spatial_mapper = SpatialMapper()

        self._executor = ThreadPoolExecutor(
            max_workers=engine.finalize_workers,
            thread_name_prefix="neurogait-finalize",
        )

        self.session: Session | None = None
        self.current_metrics: GaitMetrics | None = None
        self.spatial_map: SpatialMap | None = None
        self._pending_environment: EnvironmentData | None = None
        self._is_active = False
        self._step_count = 0
        self._last_step_time: float | None = None
        self._realtime_episodes: list[FreezingEpisode] = []
        self._anomalies: list[GaitAnomaly] = []

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def last_step_time(self) -> float | None:
        return self._last_step_time

    def subscribe(self, listener: Listener) -> None:
        self.events.subscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self.events.unsubscribe(listener)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start_session(self, session: Session) -> None:
        """Reset all per-session state and start accepting frames."""
        self.session = session
        self.window.clear()
        self.current_metrics = None
        self._step_count = 0
        self._last_step_time = None
        self._realtime_episodes = []
        self._anomalies = []
        if session.environment is None and self._pending_environment is not None:
            session.environment = self._pending_environment
        self._pending_environment = None
        self.spatial_map = (
            self.spatial_mapper.map_environment(session.environment)
            if session.environment is not None
            else None
        )
        self._is_active = True
        logger.info("Started session %s", session.session_id)

    def process_frame(self, frame: Frame) -> None:
        """Ingest one frame; ignored when no session is active."""
        if not self._is_active or self.session is None:
            return

        self.session.add_frame(frame)
        evicted = self.window.append(frame)
        if evicted is not None:
            logger.debug("Evicted frame %d from window", evicted.frame_number)

        if self.window.is_full:
            self._analyze_window()

    def clear_cache(self) -> None:
        """Drop the window, metrics and step counters without ending the session."""
        self.window.clear()
        self.current_metrics = None
        self._step_count = 0
        self._last_step_time = None

    def update_environment(self, environment: EnvironmentData) -> SpatialMap:
        """
        Attach an environment snapshot and recompute the spatial map.

        Outside an active session the snapshot is held and attached to the
        next session that starts without an environment of its own.
        """
        if self._is_active and self.session is not None:
            self.session.environment = environment
        else:
            self._pending_environment = environment
        self.spatial_map = self.spatial_mapper.map_environment(environment)
        return self.spatial_map

    def finalize_session(
        self,
        callback: Callable[[GaitAnalysisResults], None] | None = None,
    ) -> Future[GaitAnalysisResults] | None:
        """
        Stop ingestion, seal the session and analyse it in the background.

        Args:
            callback: Called with the results on the worker thread

        Returns:
            Future resolving to GaitAnalysisResults, or None without an active session
        """
        session = self.session
        if session is None or not self._is_active:
            return None

        self._is_active = False
        if session.frames:
            end_time = session.frames[-1].timestamp
        else:
            end_time = session.start_time if session.start_time is not None else 0.0
        session.seal(end_time)

        # Snapshot everything the worker needs; the engine may be reused afterwards
        frames = tuple(session.frames)
        snapshot = _SessionSnapshot(
            session_id=session.session_id,
            start_time=session.start_time,
            duration=session.duration,
            frames=frames,
            step_count=self._step_count,
            last_step_time=self._last_step_time,
            realtime_episodes=tuple(self._realtime_episodes),
            anomalies=tuple(self._anomalies),
            spatial_map=self.spatial_map,
        )
        logger.info(
            "Finalizing session %s (%d frames, %.1fs)",
            session.session_id,
            len(frames),
            session.duration,
        )

        future = self._executor.submit(self._comprehensive_analysis, snapshot)
        if callback is not None:
            future.add_done_callback(lambda f: _deliver(f, callback))
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> GaitAnalyzer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Real-time path
    # ------------------------------------------------------------------

    def _analyze_window(self) -> None:
        assert self.session is not None
        frames = self.window.frames
        now = frames[-1].timestamp

        step_time = self.step_detector.detect(frames)
        if step_time is not None and self._accept_step(step_time):
            previous = self._last_step_time
            self._step_count += 1
            self._last_step_time = step_time
            self.events.publish(StepDetected(timestamp=step_time, step_count=self._step_count))

            episode = self.freezing_detector.check_step_gap(previous, step_time)
            if episode is not None:
                logger.info(
                    "Freezing episode: %.1fs without a step at t=%.2f",
                    episode.duration,
                    episode.start_time,
                )
                self._realtime_episodes.append(episode)
                self.events.publish(FreezingDetected(episode=episode))

        metrics = self.metrics_calculator.compute(
            frames,
            step_count=self._step_count,
            elapsed=now - self.session.start_time,
            now=now,
            last_step_time=self._last_step_time,
        )
        self.current_metrics = metrics
        self.events.publish(MetricsUpdated(metrics=metrics))

        anomaly = self.anomaly_detector.detect(frames, now)
        if anomaly is not None:
            self._anomalies.append(anomaly)
            self.events.publish(AnomalyDetected(anomaly=anomaly))

    def _accept_step(self, step_time: float) -> bool:
        """Reject heel strikes already counted from an earlier window position."""
        if self._last_step_time is None:
            return True
        return step_time - self._last_step_time >= self.settings.engine.min_step_interval

    # ------------------------------------------------------------------
    # Full-session analysis (worker thread)
    # ------------------------------------------------------------------

    def _comprehensive_analysis(self, snapshot: _SessionSnapshot) -> GaitAnalysisResults:
        frames = snapshot.frames
        final_metrics = self._final_metrics(snapshot)

        scanned = self.freezing_detector.scan_session(frames)
        episodes = combine_episodes(scanned, snapshot.realtime_episodes)
        anomalies = list(snapshot.anomalies) + self.anomaly_detector.scan_session(frames)

        results = GaitAnalysisResults(
            session_id=snapshot.session_id,
            duration=snapshot.duration,
            total_frames=len(frames),
            final_metrics=final_metrics,
            freezing_episodes=tuple(episodes),
            anomalies=tuple(anomalies),
            spatial_analysis=self.summarizer.spatial(frames),
            temporal_analysis=self.summarizer.temporal(frames),
            freezing_summary=summarize_episodes(episodes, snapshot.duration),
            speed_over_time=tuple(speed_trace(frames, self.window.capacity, snapshot.start_time)),
            spatial_map=snapshot.spatial_map,
        )
        logger.info(
            "Session %s: %d steps, %d freezing episode(s), %d anomalies",
            snapshot.session_id,
            final_metrics.step_count,
            len(episodes),
            len(anomalies),
        )
        return results

    def _final_metrics(self, snapshot: _SessionSnapshot) -> GaitMetrics:
        """Recompute metrics over the last window of the full history."""
        if not snapshot.frames:
            return GaitMetrics.default(step_count=snapshot.step_count)

        tail = snapshot.frames[-self.window.capacity:]
        return self.metrics_calculator.compute(
            tail,
            step_count=snapshot.step_count,
            elapsed=snapshot.duration,
            now=tail[-1].timestamp,
            last_step_time=snapshot.last_step_time,
        )


@dataclass(frozen=True)
class _SessionSnapshot:
    session_id: str
    start_time: float | None
    duration: float
    frames: tuple[Frame, ...]
    step_count: int
    last_step_time: float | None
    realtime_episodes: tuple[FreezingEpisode, ...]
    anomalies: tuple[GaitAnomaly, ...]
    spatial_map: SpatialMap | None


def _deliver(future: Future[GaitAnalysisResults], callback: Callable[[GaitAnalysisResults], None]) -> None:
    if future.exception() is not None:
        logger.error("Session analysis failed", exc_info=future.exception())
        return
    try:
        callback(future.result())
    except Exception:
        logger.exception("Results callback failed")
