"""
Skeleton Frames and Recording Sessions
======================================

Data model for the joint-position stream produced by the body-tracking sensor.
Joints are addressed through the fixed ``Joint`` enumeration; anything the
sensor reports beyond it lands in ``Frame.extra_joints``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Sequence

import numpy as np


class Joint(Enum):
    """Tracked skeleton joints (values are the sensor's raw joint names)."""

    HEAD = "head_joint"
    LEFT_SHOULDER = "left_shoulder_1_joint"
    RIGHT_SHOULDER = "right_shoulder_1_joint"
    LEFT_HAND = "left_hand_joint"
    RIGHT_HAND = "right_hand_joint"
    ROOT = "root"  # Pelvis
    LEFT_FOOT = "left_foot_joint"
    RIGHT_FOOT = "right_foot_joint"

    @property
    def index(self) -> int:
        return JOINT_INDEX[self]

    @classmethod
    def from_name(cls, name: str) -> Joint | None:
        """Resolve a raw sensor name or enum member name, else None."""
        try:
            return cls(name)
        except ValueError:
            return cls.__members__.get(name.upper())


JOINT_ORDER: list[Joint] = list(Joint)
JOINT_INDEX: dict[Joint, int] = {joint: i for i, joint in enumerate(JOINT_ORDER)}
N_JOINTS = len(JOINT_ORDER)

# Joints the sensor exposes by raw name only (richer rigs)
ADDITIONAL_JOINT_NAMES = [
    "neck_1_joint",
    "left_arm_joint", "right_arm_joint",
    "left_forearm_joint", "right_forearm_joint",
    "left_upLeg_joint", "right_upLeg_joint",
    "left_leg_joint", "right_leg_joint",
    "left_toes_joint", "right_toes_joint",
    "spine_1_joint", "spine_2_joint", "spine_3_joint",
]


@dataclass(frozen=True, eq=False)
class Frame:
    """Single skeleton sample."""

    timestamp: float  # seconds, sensor clock
    positions: np.ndarray  # (N_JOINTS, 3), NaN rows for missing joints
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))
    frame_number: int = 0
    extra_joints: Mapping[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        positions = np.array(self.positions, dtype=np.float64)
        if positions.shape != (N_JOINTS, 3):
            raise ValueError(
                f"positions must have shape ({N_JOINTS}, 3), got {positions.shape}"
            )
        positions.setflags(write=False)
        object.__setattr__(self, "positions", positions)

        transform = np.array(self.transform, dtype=np.float64)
        if transform.shape != (4, 4):
            raise ValueError(f"transform must have shape (4, 4), got {transform.shape}")
        transform.setflags(write=False)
        object.__setattr__(self, "transform", transform)

    @classmethod
    def from_joints(
        cls,
        timestamp: float,
        joints: Mapping[str | Joint, Sequence[float]],
        transform: np.ndarray | None = None,
        frame_number: int = 0,
    ) -> Frame:
        """Build a frame from a joint-name -> (x, y, z) mapping."""
        positions = np.full((N_JOINTS, 3), np.nan)
        extra: dict[str, np.ndarray] = {}

        for name, xyz in joints.items():
            joint = name if isinstance(name, Joint) else Joint.from_name(name)
            if joint is None:
                extra[str(name)] = np.asarray(xyz, dtype=np.float64)
            else:
                positions[joint.index] = np.asarray(xyz, dtype=np.float64)

        return cls(
            timestamp=float(timestamp),
            positions=positions,
            transform=np.eye(4) if transform is None else transform,
            frame_number=frame_number,
            extra_joints=extra,
        )

    def joint(self, joint: Joint) -> np.ndarray | None:
        """Position of a joint, or None when the sensor did not report it."""
        pos = self.positions[joint.index]
        if np.isnan(pos).any():
            return None
        return pos

    def has(self, *joints: Joint) -> bool:
        return all(self.joint(j) is not None for j in joints)


class ObstacleType(Enum):
    """Classified environment obstacles."""

    DOORWAY = "doorway"
    FURNITURE = "furniture"
    WALL = "wall"
    STAIRS = "stairs"
    CORNER = "corner"


@dataclass(frozen=True)
class Obstacle:
    """An obstacle classified upstream from environment geometry."""

    position: tuple[float, float, float]
    type: ObstacleType
    dimensions: tuple[float, float, float] = (0.1, 2.0, 0.1)


@dataclass(frozen=True, eq=False)
class EnvironmentData:
    """Environment snapshot from the sensor-geometry collaborator."""

    obstacles: tuple[Obstacle, ...] = ()
    walking_path: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    room_dimensions: tuple[float, float, float] = (5.0, 3.0, 5.0)

    def __post_init__(self) -> None:
        path = np.array(self.walking_path, dtype=np.float64)
        if path.size == 0:
            path = np.zeros((0, 3))
        elif path.ndim != 2 or path.shape[1] != 3:
            raise ValueError(f"walking_path must have shape (N, 3), got {path.shape}")
        path.setflags(write=False)
        object.__setattr__(self, "walking_path", path)
        object.__setattr__(self, "obstacles", tuple(self.obstacles))


class Session:
    """
    A recording session: frame history plus start/end times.

    Without an explicit ``start_time`` the session starts at the timestamp of
    the first frame it receives.
    """

    def __init__(
        self,
        start_time: float | None = None,
        session_id: str | None = None,
        environment: EnvironmentData | None = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.start_time = None if start_time is None else float(start_time)
        self.frames: list[Frame] = []
        self.environment = environment
        self._end_time: float | None = None

    @property
    def end_time(self) -> float | None:
        return self._end_time

    @property
    def is_sealed(self) -> bool:
        return self._end_time is not None

    @property
    def duration(self) -> float:
        if self._end_time is None or self.start_time is None:
            return 0.0
        return max(0.0, self._end_time - self.start_time)

    def add_frame(self, frame: Frame) -> None:
        if self.start_time is None:
            self.start_time = frame.timestamp
        self.frames.append(frame)

    def seal(self, end_time: float) -> None:
        """Set the end time. Only the first call has any effect."""
        if self._end_time is None:
            self._end_time = float(end_time)

    def __repr__(self) -> str:
        return (
            f"Session(id={self.session_id[:8]}, frames={len(self.frames)}, "
            f"start={self.start_time}, end={self._end_time})"
        )
