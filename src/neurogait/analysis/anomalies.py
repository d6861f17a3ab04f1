"""
Gait Anomaly Detection
======================

Per-window checks for shuffling, reduced arm swing and postural instability.
Checks run in that order and the first hit wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import numpy as np

from neurogait.pipeline.frames import Frame, Joint

from .metrics import arm_swing_asymmetry, postural_stability


class AnomalyType(Enum):
    """Types of gait anomalies."""

    SHUFFLING = "shuffling"
    REDUCED_ARM_SWING = "reduced_arm_swing"
    FESTINATION = "festination"
    TREMOR_GAIT = "tremor_gait"
    FREEZING = "freezing"
    POSTURAL_INSTABILITY = "postural_instability"


@dataclass(frozen=True)
class GaitAnomaly:
    """A detected gait anomaly."""

    type: AnomalyType
    severity: float  # 0-1
    confidence: float  # 0-1
    timestamp: float  # seconds, sensor clock
    duration: float = 1.0  # seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity,
            "confidence": self.confidence,
            "timestamp": self.timestamp,
            "duration": self.duration,
        }


class AnomalyDetector:
    """First-match anomaly detection over the current window."""

    def __init__(
        self,
        lookback: int = 10,  # frames
        min_samples: int = 5,
        shuffling_range: float = 0.05,  # meters of foot-height range
        asymmetry_threshold: float = 0.5,
        stability_threshold: float = 0.6,
    ):
        self.lookback = lookback
        self.min_samples = min_samples
        self.shuffling_range = shuffling_range
        self.asymmetry_threshold = asymmetry_threshold
        self.stability_threshold = stability_threshold

    def detect(self, frames: Sequence[Frame], now: float) -> GaitAnomaly | None:
        """Return the first anomaly found in the window, or None."""
        frames = list(frames)
        for check in (self.detect_shuffling, self.detect_reduced_arm_swing, self.detect_postural_instability):
            anomaly = check(frames, now)
            if anomaly is not None:
                return anomaly
        return None

    def detect_shuffling(self, frames: Sequence[Frame], now: float) -> GaitAnomaly | None:
        """Low range of mean foot height suggests feet barely leave the floor."""
        if len(frames) < self.lookback:
            return None

        heights = [
            (f.joint(Joint.LEFT_FOOT)[1] + f.joint(Joint.RIGHT_FOOT)[1]) / 2
            for f in list(frames)[-self.lookback:]
            if f.has(Joint.LEFT_FOOT, Joint.RIGHT_FOOT)
        ]
        if len(heights) < self.min_samples:
            return None

        variation = float(np.max(heights) - np.min(heights))
        if variation >= self.shuffling_range:
            return None

        return GaitAnomaly(
            type=AnomalyType.SHUFFLING,
            severity=1.0 - variation * 20,
            confidence=0.7,
            timestamp=now,
        )

    def detect_reduced_arm_swing(self, frames: Sequence[Frame], now: float) -> GaitAnomaly | None:
        asymmetry = arm_swing_asymmetry(frames)
        if asymmetry <= self.asymmetry_threshold:
            return None

        return GaitAnomaly(
            type=AnomalyType.REDUCED_ARM_SWING,
            severity=asymmetry,
            confidence=0.8,
            timestamp=now,
        )

    def detect_postural_instability(self, frames: Sequence[Frame], now: float) -> GaitAnomaly | None:
        stability = postural_stability(frames)
        if stability >= self.stability_threshold:
            return None

        return GaitAnomaly(
            type=AnomalyType.POSTURAL_INSTABILITY,
            severity=1.0 - stability,
            confidence=0.75,
            timestamp=now,
        )

    def scan_session(self, frames: Sequence[Frame]) -> list[GaitAnomaly]:
        """
        Full-session anomaly re-analysis.

        Not implemented yet: returns an empty list. Session results carry the
        anomalies collected during recording instead.
        """
        return []
