"""Pytest fixtures for neurogait tests."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import numpy as np
import pytest

from neurogait.core.config import Settings
from neurogait.pipeline.frames import JOINT_ORDER, Frame, Joint

FPS = 30.0
CYCLE = 30  # frames per left-foot gait cycle


def foot_height(k: int) -> float:
    """Foot height over a 30-frame cycle: slow lift, sharp drop into a heel strike at k=0."""
    k = k % CYCLE
    if k <= 25:
        return 0.12 * k / 25
    return 0.12 - 0.024 * (k - 25)


def skeleton_frame(
    frame_idx: int,
    z: float,
    left_foot_y: float,
    right_foot_y: float,
    arm_phase: float = 0.0,
    fps: float = FPS,
) -> Frame:
    """Full skeleton at forward position ``z`` (y is up)."""
    swing = 0.1 * np.sin(arm_phase)
    return Frame.from_joints(
        timestamp=frame_idx / fps,
        joints={
            Joint.HEAD: (0.0, 1.7, z),
            Joint.ROOT: (0.0, 1.0, z),
            Joint.LEFT_SHOULDER: (-0.2, 1.4, z),
            Joint.RIGHT_SHOULDER: (0.2, 1.4, z),
            Joint.LEFT_HAND: (-0.2, 0.8, z + swing),
            Joint.RIGHT_HAND: (0.2, 0.8, z - swing),
            Joint.LEFT_FOOT: (-0.1, left_foot_y, z),
            Joint.RIGHT_FOOT: (0.1, right_foot_y, z),
        },
        frame_number=frame_idx,
    )


def walking(n_frames: int, start_frame: int = 0, z0: float = 0.0, speed: float = 1.3) -> list[Frame]:
    """Steady walking along +z with a left heel strike every 30 frames."""
    frames = []
    for i in range(n_frames):
        k = start_frame + i
        frames.append(skeleton_frame(
            k,
            z=z0 + speed * i / FPS,
            left_foot_y=foot_height(k),
            right_foot_y=foot_height(k + CYCLE // 2),
            arm_phase=2 * np.pi * k / CYCLE,
        ))
    return frames


def standing(n_frames: int, start_frame: int = 0, z: float = 0.0) -> list[Frame]:
    """Motionless subject with both feet on the floor."""
    return [
        skeleton_frame(start_frame + i, z=z, left_foot_y=0.0, right_foot_y=0.0)
        for i in range(n_frames)
    ]


def walk_freeze_walk() -> list[Frame]:
    """3 s walking, 5 s frozen, 3 s walking (330 frames)."""
    first = walking(90)
    z_stop = first[-1].joint(Joint.ROOT)[2]
    frozen = standing(150, start_frame=90, z=z_stop)
    second = walking(90, start_frame=240, z0=z_stop)
    return first + frozen + second


def write_json_recording(path: Path, frames, environment=None, start_time=None) -> Path:
    """Write frames in the JSON recording format."""
    data = {
        "frames": [
            {
                "timestamp": f.timestamp,
                "frame_number": f.frame_number,
                "joints": {
                    joint.value: f.positions[joint.index].tolist()
                    for joint in JOINT_ORDER
                    if f.joint(joint) is not None
                },
            }
            for f in frames
        ]
    }
    if start_time is not None:
        data["start_time"] = start_time
    if environment is not None:
        data["environment"] = environment
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of any config file on disk."""
    return Settings()


@pytest.fixture
def walking_frames() -> list[Frame]:
    """Three seconds of steady walking at 1.3 m/s."""
    return walking(90)


@pytest.fixture
def standing_frames() -> list[Frame]:
    """Three seconds of standing still."""
    return standing(90)


@pytest.fixture
def freeze_frames() -> list[Frame]:
    """Walking interrupted by a five second freeze."""
    return walk_freeze_walk()


@pytest.fixture
def make_frame():
    """Factory for sparse frames from a joint mapping."""

    def _make(timestamp: float, **joints):
        return Frame.from_joints(
            timestamp,
            {Joint[name.upper()]: xyz for name, xyz in joints.items()},
        )

    return _make
