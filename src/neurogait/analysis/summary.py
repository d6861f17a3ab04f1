"""
Session Aggregates
==================

Spatial and temporal summaries computed once over the full frame history
when a session is finalized.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

import numpy as np
from scipy import signal
from scipy.ndimage import uniform_filter1d
from scipy.stats import variation

from neurogait.pipeline.frames import Frame, Joint

from .metrics import walking_speed

# Pending gait-phase detection; percent of gait cycle.
PLACEHOLDER_STANCE_PHASE = 60.0
PLACEHOLDER_SWING_PHASE = 40.0
PLACEHOLDER_DOUBLE_STANCE_PHASE = 20.0


@dataclass(frozen=True)
class SpatialAnalysis:
    """Spatial gait summary."""

    step_length_mean: float  # meters
    step_length_cv: float  # coefficient of variation
    step_width_mean: float  # meters
    step_width_cv: float
    stride_length_asymmetry: float  # 0-1
    arm_swing_amplitude: tuple[float, float]  # (left, right) meters
    postural_sway: float  # meters

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["arm_swing_amplitude"] = {
            "left": self.arm_swing_amplitude[0],
            "right": self.arm_swing_amplitude[1],
        }
        return data


@dataclass(frozen=True)
class TemporalAnalysis:
    """Temporal gait summary."""

    stance_phase: float  # % of gait cycle
    swing_phase: float
    double_stance_phase: float
    cadence_variability: float  # CV of step intervals
    rhythmicity: float  # 0-1

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class SpeedSample:
    """Walking speed at a point in the session."""

    time: float  # seconds since session start
    speed: float  # m/s


def estimate_fps(frames: Sequence[Frame]) -> float:
    """Frame rate from the median timestamp spacing (30 Hz fallback)."""
    if len(frames) < 2:
        return 30.0
    dt = np.diff([f.timestamp for f in frames])
    dt = dt[dt > 0]
    if len(dt) == 0:
        return 30.0
    return float(1.0 / np.median(dt))


def _safe_cv(values: Sequence[float]) -> float:
    values = np.asarray(values, dtype=np.float64)
    if len(values) < 2 or np.mean(values) <= 0:
        return 0.0
    return float(variation(values))


def heel_strike_indices(
    frames: Sequence[Frame],
    joint: Joint,
    prominence: float = 0.02,
    min_interval: float = 0.3,
) -> np.ndarray:
    """Frame indices of heel strikes (foot-height minima) for one foot."""
    idx = np.array([i for i, f in enumerate(frames) if f.joint(joint) is not None], dtype=int)
    if len(idx) < 3:
        return np.array([], dtype=int)

    heights = np.array([frames[i].joint(joint)[1] for i in idx])
    distance = max(1, int(round(min_interval * estimate_fps(frames))))
    peaks, _ = signal.find_peaks(-heights, prominence=prominence, distance=distance)
    return idx[peaks]


def _root_displacements(frames: Sequence[Frame], strikes: np.ndarray) -> list[float]:
    """Horizontal pelvis travel between consecutive strike frames."""
    lengths = []
    for a, b in zip(strikes[:-1], strikes[1:]):
        start = frames[a].joint(Joint.ROOT)
        end = frames[b].joint(Joint.ROOT)
        if start is not None and end is not None:
            lengths.append(float(np.linalg.norm((end - start)[[0, 2]])))
    return lengths


class SessionSummarizer:
    """Compute spatial/temporal aggregates over an entire session."""

    def __init__(self, prominence: float = 0.02, min_step_interval: float = 0.3):
        self.prominence = prominence
        self.min_step_interval = min_step_interval

    def _strikes(self, frames: Sequence[Frame], joint: Joint) -> np.ndarray:
        return heel_strike_indices(frames, joint, self.prominence, self.min_step_interval)

    def spatial(self, frames: Sequence[Frame]) -> SpatialAnalysis:
        """Spatial summary; zeros when there is too little data."""
        frames = list(frames)
        left = self._strikes(frames, Joint.LEFT_FOOT)
        right = self._strikes(frames, Joint.RIGHT_FOOT)
        all_strikes = np.union1d(left, right)

        step_lengths = _root_displacements(frames, all_strikes)
        widths = [
            abs(f.joint(Joint.LEFT_FOOT)[0] - f.joint(Joint.RIGHT_FOOT)[0])
            for f in frames
            if f.has(Joint.LEFT_FOOT, Joint.RIGHT_FOOT)
        ]

        left_strides = _root_displacements(frames, left)
        right_strides = _root_displacements(frames, right)
        asymmetry = 0.0
        if left_strides and right_strides:
            l_mean, r_mean = np.mean(left_strides), np.mean(right_strides)
            if max(l_mean, r_mean) > 0:
                asymmetry = float(abs(l_mean - r_mean) / max(l_mean, r_mean))

        return SpatialAnalysis(
            step_length_mean=float(np.mean(step_lengths)) if step_lengths else 0.0,
            step_length_cv=_safe_cv(step_lengths),
            step_width_mean=float(np.mean(widths)) if widths else 0.0,
            step_width_cv=_safe_cv(widths),
            stride_length_asymmetry=asymmetry,
            arm_swing_amplitude=self._arm_swing_amplitude(frames),
            postural_sway=self._postural_sway(frames),
        )

    def _arm_swing_amplitude(self, frames: Sequence[Frame]) -> tuple[float, float]:
        """Peak-to-peak shoulder-to-hand distance per side."""
        amplitudes = []
        for shoulder, hand in (
            (Joint.LEFT_SHOULDER, Joint.LEFT_HAND),
            (Joint.RIGHT_SHOULDER, Joint.RIGHT_HAND),
        ):
            reach = [
                np.linalg.norm(f.joint(shoulder) - f.joint(hand))
                for f in frames
                if f.has(shoulder, hand)
            ]
            amplitudes.append(float(np.ptp(reach)) if len(reach) >= 2 else 0.0)
        return amplitudes[0], amplitudes[1]

    def _postural_sway(self, frames: Sequence[Frame], window: int = 30) -> float:
        """Mean pelvis deviation from its moving average (walking trend removed)."""
        track = [f.joint(Joint.ROOT) for f in frames if f.has(Joint.ROOT)]
        if len(track) < 10:
            return 0.0
        track = np.stack(track)
        trend = uniform_filter1d(track, size=min(window, len(track)), axis=0, mode="nearest")
        return float(np.mean(np.linalg.norm(track - trend, axis=1)))

    def temporal(self, frames: Sequence[Frame]) -> TemporalAnalysis:
        """Temporal summary; neutral when fewer than three heel strikes."""
        frames = list(frames)
        strikes = np.union1d(
            self._strikes(frames, Joint.LEFT_FOOT),
            self._strikes(frames, Joint.RIGHT_FOOT),
        )

        cadence_variability = 0.0
        rhythmicity = 1.0
        if len(frames) >= 10 and len(strikes) >= 3:
            times = np.array([frames[i].timestamp for i in strikes])
            intervals = np.diff(times)
            intervals = intervals[intervals > 0]
            if len(intervals) >= 2:
                cadence_variability = _safe_cv(intervals)
                rhythmicity = float(max(0.0, 1.0 - min(1.0, cadence_variability)))

        return TemporalAnalysis(
            stance_phase=PLACEHOLDER_STANCE_PHASE,
            swing_phase=PLACEHOLDER_SWING_PHASE,
            double_stance_phase=PLACEHOLDER_DOUBLE_STANCE_PHASE,
            cadence_variability=cadence_variability,
            rhythmicity=rhythmicity,
        )


def speed_trace(
    frames: Sequence[Frame],
    window: int = 30,
    start_time: float | None = None,
) -> list[SpeedSample]:
    """Walking speed over consecutive non-overlapping windows."""
    frames = list(frames)
    if not frames:
        return []

    origin = frames[0].timestamp if start_time is None else start_time
    samples = []
    for i in range(0, len(frames) - window + 1, window):
        chunk = frames[i:i + window]
        samples.append(SpeedSample(
            time=chunk[-1].timestamp - origin,
            speed=walking_speed(chunk),
        ))
    return samples
