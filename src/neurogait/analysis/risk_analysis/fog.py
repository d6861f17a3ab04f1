"""
Freezing of Gait (FOG) Detection
================================

Detect freezing episodes from the skeleton stream. FOG is characterized by a
sudden inability to move forward despite the intention to walk.

Two detectors are provided:
- a real-time check on the gap between consecutive heel strikes
- a full-session scan for windows with almost no pelvis movement
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import numpy as np

from neurogait.analysis.metrics import mean_displacement
from neurogait.pipeline.frames import Frame, Joint

logger = logging.getLogger(__name__)


class FreezingSeverity(Enum):
    """Severity tiers of a freezing episode."""

    MILD = 1
    MODERATE = 2
    SEVERE = 3


class FreezingTrigger(Enum):
    """Context in which a freezing episode occurred."""

    DOORWAY = "doorway"
    TURN_INITIATION = "turn_initiation"
    DUAL_TASK = "dual_task"
    ANXIETY = "anxiety"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FreezingEpisode:
    """A single freezing episode."""

    start_time: float  # seconds, sensor clock
    duration: float  # seconds
    severity: FreezingSeverity
    trigger: FreezingTrigger
    recovery_time: float  # seconds

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def overlaps(self, other: FreezingEpisode) -> bool:
        return self.start_time < other.end_time and other.start_time < self.end_time

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_time": self.start_time,
            "duration": self.duration,
            "severity": self.severity.name.lower(),
            "trigger": self.trigger.value,
            "recovery_time": self.recovery_time,
        }


@dataclass(frozen=True)
class FreezingSummary:
    """Aggregate FOG statistics for a session."""

    fog_detected: bool
    n_episodes: int
    total_fog_duration: float  # seconds
    fog_percentage: float  # % of session with FOG
    mean_episode_duration: float
    max_episode_duration: float
    fog_frequency: float  # episodes per minute

    def to_dict(self) -> dict[str, float]:
        return {
            "fog_detected": float(self.fog_detected),
            "n_episodes": float(self.n_episodes),
            "total_fog_duration": self.total_fog_duration,
            "fog_percentage": self.fog_percentage,
            "mean_episode_duration": self.mean_episode_duration,
            "max_episode_duration": self.max_episode_duration,
            "fog_frequency": self.fog_frequency,
        }


class FreezingDetector:
    """
    Detect freezing of gait from heel-strike timing and pelvis movement.

    Real-time: a gap between heel strikes longer than ``freezing_threshold``.
    Full session: ``scan_window``-frame windows whose mean pelvis
    displacement per frame is below ``movement_threshold``.
    """

    SCAN_EPISODE_DURATION = 2.0  # seconds, one ~60-frame window
    SCAN_RECOVERY_TIME = 1.0

    def __init__(
        self,
        freezing_threshold: float = 3.0,  # seconds
        scan_window: int = 60,  # frames
        movement_threshold: float = 0.01,  # meters per frame
        merge_overlapping: bool = True,
    ):
        """
        Initialize FOG detector.

        Args:
            freezing_threshold: Step gap above this is a freezing episode
            scan_window: Sliding window length for the session scan
            movement_threshold: Movement below this is considered frozen
            merge_overlapping: Merge runs of overlapping frozen windows into one episode
        """
        self.freezing_threshold = freezing_threshold
        self.scan_window = scan_window
        self.movement_threshold = movement_threshold
        self.merge_overlapping = merge_overlapping

    def check_step_gap(
        self,
        previous_step: float | None,
        current_step: float,
    ) -> FreezingEpisode | None:
        """Episode covering the gap between two heel strikes, if it is long enough."""
        if previous_step is None:
            return None

        gap = current_step - previous_step
        if gap <= self.freezing_threshold:
            return None

        return FreezingEpisode(
            start_time=previous_step,
            duration=gap,
            severity=FreezingSeverity.MODERATE,
            trigger=FreezingTrigger.UNKNOWN,
            recovery_time=0.0,
        )

    def movement_variation(self, frames: Sequence[Frame]) -> float:
        """Mean consecutive pelvis displacement inside a window."""
        return mean_displacement(frames, Joint.ROOT)

    def scan_session(self, frames: Sequence[Frame]) -> list[FreezingEpisode]:
        """
        Scan the full frame history for low-movement windows.

        Args:
            frames: Entire session history in arrival order

        Returns:
            Episodes sorted by start time
        """
        frames = list(frames)
        n_windows = len(frames) - self.scan_window + 1
        if n_windows <= 0:
            return []

        frozen = self._window_variations(frames, n_windows) < self.movement_threshold

        if not self.merge_overlapping:
            return [self._window_episode(frames[i]) for i in np.flatnonzero(frozen)]

        return self._merged_episodes(frames, frozen)

    def _window_variations(self, frames: list[Frame], n_windows: int) -> np.ndarray:
        """Movement variation of every scan window."""
        root = np.stack([f.positions[Joint.ROOT.index] for f in frames])

        if np.isnan(root).any() or self.scan_window < 2:
            return np.array([
                self.movement_variation(frames[i:i + self.scan_window])
                for i in range(n_windows)
            ])

        # All pelvis samples present: windowed mean via cumulative sum
        steps = np.linalg.norm(np.diff(root, axis=0), axis=1)
        cumulative = np.concatenate([[0.0], np.cumsum(steps)])
        span = self.scan_window - 1
        starts = np.arange(n_windows)
        return (cumulative[starts + span] - cumulative[starts]) / span

    def _window_episode(self, first: Frame) -> FreezingEpisode:
        return FreezingEpisode(
            start_time=first.timestamp,
            duration=self.SCAN_EPISODE_DURATION,
            severity=FreezingSeverity.MILD,
            trigger=FreezingTrigger.UNKNOWN,
            recovery_time=self.SCAN_RECOVERY_TIME,
        )

    def _merged_episodes(
        self,
        frames: list[Frame],
        frozen: np.ndarray,
    ) -> list[FreezingEpisode]:
        """One episode per contiguous run of frozen windows."""
        episodes = []
        in_episode = False
        start = 0

        for i, is_frozen in enumerate(frozen):
            if is_frozen and not in_episode:
                in_episode = True
                start = i
            elif not is_frozen and in_episode:
                in_episode = False
                episodes.append(self._span_episode(frames, start, i - 1))

        # Handle episode at end
        if in_episode:
            episodes.append(self._span_episode(frames, start, len(frozen) - 1))

        if episodes:
            logger.debug("Session scan merged frozen windows into %d episode(s)", len(episodes))
        return episodes

    def _span_episode(self, frames: list[Frame], first_window: int, last_window: int) -> FreezingEpisode:
        start_time = frames[first_window].timestamp
        end_time = frames[last_window + self.scan_window - 1].timestamp
        duration = end_time - start_time
        if duration <= 0:
            duration = self.SCAN_EPISODE_DURATION

        return FreezingEpisode(
            start_time=start_time,
            duration=duration,
            severity=FreezingSeverity.MILD,
            trigger=FreezingTrigger.UNKNOWN,
            recovery_time=self.SCAN_RECOVERY_TIME,
        )


def combine_episodes(
    scanned: Sequence[FreezingEpisode],
    realtime: Sequence[FreezingEpisode],
) -> list[FreezingEpisode]:
    """Scan episodes plus real-time episodes that do not overlap any of them."""
    combined = list(scanned)
    for episode in realtime:
        if not any(episode.overlaps(s) for s in scanned):
            combined.append(episode)
    return sorted(combined, key=lambda ep: ep.start_time)


def summarize_episodes(
    episodes: Sequence[FreezingEpisode],
    session_duration: float,
) -> FreezingSummary:
    """Aggregate statistics over a session's freezing episodes."""
    if not episodes:
        return FreezingSummary(
            fog_detected=False,
            n_episodes=0,
            total_fog_duration=0.0,
            fog_percentage=0.0,
            mean_episode_duration=0.0,
            max_episode_duration=0.0,
            fog_frequency=0.0,
        )

    durations = [ep.duration for ep in episodes]
    total_duration = float(sum(durations))

    return FreezingSummary(
        fog_detected=True,
        n_episodes=len(episodes),
        total_fog_duration=total_duration,
        fog_percentage=min(100.0, total_duration / session_duration * 100) if session_duration > 0 else 0.0,
        mean_episode_duration=float(np.mean(durations)),
        max_episode_duration=float(max(durations)),
        fog_frequency=len(episodes) / (session_duration / 60) if session_duration > 0 else 0.0,
    )
