"""
Heel-Strike Step Detection
==========================

Local-minimum detection over the recent foot-height signal. One call
evaluates one candidate: the first qualifying minimum scanning forward.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from neurogait.pipeline.frames import Frame, Joint


def detect_heel_strike(
    timestamps: Sequence[float],
    heights: Sequence[float],
    threshold: float = 0.02,
) -> float | None:
    """
    Find the first heel strike in a foot-height series.

    Index ``i`` (``2 <= i <= n-3``) is a heel strike when it is a strict local
    minimum and the drop from the previous sample exceeds ``threshold``.

    Args:
        timestamps: Sample times (seconds), same length as heights
        heights: Foot height (y) per sample, meters
        threshold: Minimum drop into the minimum, meters (2 cm)

    Returns:
        Timestamp of the heel strike, or None
    """
    h = np.asarray(heights, dtype=np.float64)
    n = len(h)

    for i in range(2, n - 2):
        current, prev, nxt = h[i], h[i - 1], h[i + 1]
        if current < prev and current < nxt and (prev - current) > threshold:
            return float(timestamps[i])

    return None


class StepDetector:
    """Detect heel strikes from the tail of the frame window."""

    def __init__(
        self,
        joint: Joint = Joint.LEFT_FOOT,
        lookback: int = 10,  # frames
        min_samples: int = 5,
        threshold: float = 0.02,  # meters
    ):
        self.joint = joint
        self.lookback = lookback
        self.min_samples = min_samples
        self.threshold = threshold

    def detect(self, frames: Sequence[Frame]) -> float | None:
        """Return the heel-strike timestamp in the last ``lookback`` frames, or None."""
        if len(frames) < self.lookback:
            return None

        recent = list(frames)[-self.lookback:]
        timestamps = []
        heights = []
        for frame in recent:
            pos = frame.joint(self.joint)
            if pos is not None:
                timestamps.append(frame.timestamp)
                heights.append(pos[1])

        if len(heights) < self.min_samples:
            return None

        return detect_heel_strike(timestamps, heights, self.threshold)
