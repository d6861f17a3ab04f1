"""
Real-Time Gait Metrics
======================

Spatial and temporal gait metrics recomputed from the current frame window.
Every metric has its own minimum-sample precondition and degrades to a
neutral value when it is not met.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

import numpy as np

from neurogait.pipeline.frames import Frame, Joint

# Pending gait-phase detection; not validated clinical values.
PLACEHOLDER_DOUBLE_STANCE_TIME = 0.2  # seconds
PLACEHOLDER_SWING_TIME = 0.4  # seconds
PLACEHOLDER_FESTINATION_INDEX = 0.1
PLACEHOLDER_STEP_REGULARITY = 0.9

MIN_WINDOW_FRAMES = 10


@dataclass(frozen=True)
class GaitMetrics:
    """Gait metrics snapshot."""

    step_count: int
    cadence: float  # steps per minute
    stride_length: float  # meters
    step_width: float  # meters
    walking_speed: float  # m/s
    double_stance_time: float  # seconds
    swing_time: float  # seconds
    freezing_episode: bool
    arm_swing_asymmetry: float  # 0-1
    postural_stability: float  # 0-1

    # Clinical
    bradykinesia_score: float  # 0-4 UPDRS-like
    festination_index: float  # 0-1
    step_regularity: float  # 0-1

    @classmethod
    def default(cls, step_count: int = 0) -> GaitMetrics:
        """Neutral metrics for sessions without usable frames."""
        return cls(
            step_count=step_count,
            cadence=0.0,
            stride_length=0.0,
            step_width=0.0,
            walking_speed=0.0,
            double_stance_time=0.0,
            swing_time=0.0,
            freezing_episode=False,
            arm_swing_asymmetry=0.0,
            postural_stability=1.0,
            bradykinesia_score=0.0,
            festination_index=0.0,
            step_regularity=1.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _joint_track(frames: Sequence[Frame], joint: Joint) -> np.ndarray:
    """Stack the available positions of one joint, (M, 3)."""
    points = [p for p in (f.joint(joint) for f in frames) if p is not None]
    if not points:
        return np.zeros((0, 3))
    return np.stack(points)


def mean_displacement(frames: Sequence[Frame], joint: Joint = Joint.ROOT) -> float:
    """Mean consecutive-sample displacement of a joint (0 with <2 samples)."""
    track = _joint_track(frames, joint)
    if len(track) < 2:
        return 0.0
    return float(np.mean(np.linalg.norm(np.diff(track, axis=0), axis=1)))


def stride_length(frames: Sequence[Frame]) -> float:
    """Mean inter-frame pelvis displacement."""
    if len(frames) < MIN_WINDOW_FRAMES:
        return 0.0
    return mean_displacement(frames, Joint.ROOT)


def step_width(frames: Sequence[Frame]) -> float:
    """Mean lateral (x) separation of the feet."""
    if len(frames) < 5:
        return 0.0

    widths = [
        abs(f.joint(Joint.LEFT_FOOT)[0] - f.joint(Joint.RIGHT_FOOT)[0])
        for f in frames
        if f.has(Joint.LEFT_FOOT, Joint.RIGHT_FOOT)
    ]
    if not widths:
        return 0.0
    return float(np.mean(widths))


def walking_speed(frames: Sequence[Frame]) -> float:
    """Root displacement between first and last frame over elapsed time."""
    if len(frames) < 2:
        return 0.0

    first, last = frames[0], frames[-1]
    start = first.joint(Joint.ROOT)
    end = last.joint(Joint.ROOT)
    if start is None or end is None:
        return 0.0

    dt = last.timestamp - first.timestamp
    if dt <= 0:
        return 0.0
    return float(np.linalg.norm(end - start) / dt)


def arm_swing_ranges(frames: Sequence[Frame]) -> tuple[float, float] | None:
    """Mean shoulder-to-hand distance (left, right) over frames with all four joints."""
    left = []
    right = []
    for f in frames:
        if f.has(Joint.LEFT_SHOULDER, Joint.LEFT_HAND, Joint.RIGHT_SHOULDER, Joint.RIGHT_HAND):
            left.append(np.linalg.norm(f.joint(Joint.LEFT_SHOULDER) - f.joint(Joint.LEFT_HAND)))
            right.append(np.linalg.norm(f.joint(Joint.RIGHT_SHOULDER) - f.joint(Joint.RIGHT_HAND)))

    if not left:
        return None
    return float(np.mean(left)), float(np.mean(right))


def arm_swing_asymmetry(frames: Sequence[Frame]) -> float:
    """|left - right| / max(left, right) of mean arm ranges, 0-1."""
    if len(frames) < MIN_WINDOW_FRAMES:
        return 0.0

    ranges = arm_swing_ranges(frames)
    if ranges is None:
        return 0.0

    left_avg, right_avg = ranges
    denom = max(left_avg, right_avg)
    if denom <= 0:
        return 0.0
    return abs(left_avg - right_avg) / denom


def postural_sway(frames: Sequence[Frame]) -> float | None:
    """Mean distance of the pelvis from its average position."""
    track = _joint_track(frames, Joint.ROOT)
    if len(track) < 5:
        return None
    center = track.mean(axis=0)
    return float(np.mean(np.linalg.norm(track - center, axis=1)))


def postural_stability(frames: Sequence[Frame]) -> float:
    """1 - 10 x sway, floored at 0; 1.0 when there is not enough data."""
    if len(frames) < MIN_WINDOW_FRAMES:
        return 1.0

    sway = postural_sway(frames)
    if sway is None:
        return 1.0
    return max(0.0, 1.0 - sway * 10)


def bradykinesia_from_speed(speed: float) -> float:
    """Band walking speed into a 0-4 UPDRS-like score."""
    if speed > 1.2:
        return 0.0  # Normal
    if speed > 1.0:
        return 1.0  # Slight
    if speed > 0.8:
        return 2.0  # Mild
    if speed > 0.6:
        return 3.0  # Moderate
    return 4.0  # Severe


class MetricsCalculator:
    """Assemble a GaitMetrics snapshot from a frame window."""

    def __init__(self, freezing_threshold: float = 3.0):
        self.freezing_threshold = freezing_threshold

    def compute(
        self,
        frames: Sequence[Frame],
        step_count: int,
        elapsed: float,
        now: float,
        last_step_time: float | None = None,
    ) -> GaitMetrics:
        """
        Compute metrics for the given window.

        Args:
            frames: Window frames in arrival order
            step_count: Steps detected so far in the session
            elapsed: Seconds since session start
            now: Current sensor time (seconds)
            last_step_time: Timestamp of the last accepted step

        Returns:
            GaitMetrics
        """
        frames = list(frames)
        cadence = step_count / elapsed * 60 if elapsed > 0 else 0.0
        speed = walking_speed(frames)

        return GaitMetrics(
            step_count=step_count,
            cadence=cadence,
            stride_length=stride_length(frames),
            step_width=step_width(frames),
            walking_speed=speed,
            double_stance_time=PLACEHOLDER_DOUBLE_STANCE_TIME,
            swing_time=PLACEHOLDER_SWING_TIME,
            freezing_episode=self.is_freezing(now, last_step_time),
            arm_swing_asymmetry=arm_swing_asymmetry(frames),
            postural_stability=postural_stability(frames),
            bradykinesia_score=bradykinesia_from_speed(speed),
            festination_index=PLACEHOLDER_FESTINATION_INDEX,
            step_regularity=PLACEHOLDER_STEP_REGULARITY,
        )

    def is_freezing(self, now: float, last_step_time: float | None) -> bool:
        if last_step_time is None:
            return False
        return now - last_step_time > self.freezing_threshold
