"""Frame ingest: data model, sliding window, events and recorded replay.

Example:
    from neurogait.pipeline import Frame, Joint, Session

    frame = Frame.from_joints(0.0, {"root": (0.0, 1.0, 0.0)})
    frame.joint(Joint.ROOT)
"""

from .events import (
    AnomalyDetected,
    EventBus,
    FreezingDetected,
    GaitEvent,
    MetricsUpdated,
    StepDetected,
)
from .frames import (
    ADDITIONAL_JOINT_NAMES,
    JOINT_ORDER,
    N_JOINTS,
    EnvironmentData,
    Frame,
    Joint,
    Obstacle,
    ObstacleType,
    Session,
)
from .recording import Recording, load_recording, parse_environment, replay
from .window import SlidingWindow

__all__ = [
    # Data model
    "ADDITIONAL_JOINT_NAMES",
    "JOINT_ORDER",
    "N_JOINTS",
    "EnvironmentData",
    "Frame",
    "Joint",
    "Obstacle",
    "ObstacleType",
    "Session",
    # Window
    "SlidingWindow",
    # Events
    "AnomalyDetected",
    "EventBus",
    "FreezingDetected",
    "GaitEvent",
    "MetricsUpdated",
    "StepDetected",
    # Replay
    "Recording",
    "load_recording",
    "parse_environment",
    "replay",
]
