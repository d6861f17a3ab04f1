"""
Recorded Session Replay
=======================

Load a recorded skeleton stream from disk and replay it through the engine.

Supported formats:
- JSON: {"start_time": float?, "frames": [{"timestamp", "joints", "frame_number"?}],
         "environment": {"obstacles": [...], "walking_path": [...], "room_dimensions": [...]}?}
- NPZ: ``timestamps`` (T,), ``positions`` (T, N_JOINTS, 3) in Joint order,
       optional ``start_time``
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

from .frames import N_JOINTS, EnvironmentData, Frame, Obstacle, ObstacleType, Session

if TYPE_CHECKING:
    from neurogait.analysis.engine import GaitAnalysisResults, GaitAnalyzer

logger = logging.getLogger(__name__)


@dataclass
class Recording:
    """Frames and optional environment read from disk."""

    frames: list[Frame]
    start_time: float
    environment: EnvironmentData | None = None
    source: str = ""

    @property
    def duration(self) -> float:
        if not self.frames:
            return 0.0
        return self.frames[-1].timestamp - self.start_time

    def new_session(self) -> Session:
        return Session(start_time=self.start_time, environment=self.environment)


def load_recording(path: str | Path) -> Recording:
    """
    Load a recording from JSON or NPZ.

    Args:
        path: Recording file path

    Returns:
        Recording

    Raises:
        ValueError: If the file format or content is invalid
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        recording = _load_json(path)
    elif suffix == ".npz":
        recording = _load_npz(path)
    else:
        raise ValueError(f"Unsupported recording format: {path.suffix}")

    logger.info("Loaded %d frames from %s", len(recording.frames), path.name)
    return recording


def _load_json(path: Path) -> Recording:
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict) or "frames" not in data:
        raise ValueError(f"Recording {path} has no 'frames' list")

    frames = []
    for i, item in enumerate(data["frames"]):
        try:
            frames.append(Frame.from_joints(
                timestamp=item["timestamp"],
                joints=item.get("joints", {}),
                transform=np.asarray(item["transform"]) if "transform" in item else None,
                frame_number=item.get("frame_number", i),
            ))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid frame {i} in {path}: {e}") from e

    start_time = data.get("start_time")
    if start_time is None:
        start_time = frames[0].timestamp if frames else 0.0

    environment = parse_environment(data["environment"]) if data.get("environment") else None

    return Recording(
        frames=frames,
        start_time=float(start_time),
        environment=environment,
        source=str(path),
    )


def _load_npz(path: Path) -> Recording:
    with np.load(path) as data:
        if "timestamps" not in data or "positions" not in data:
            raise ValueError(f"Recording {path} needs 'timestamps' and 'positions' arrays")
        timestamps = np.asarray(data["timestamps"], dtype=np.float64)
        positions = np.asarray(data["positions"], dtype=np.float64)
        start_time = float(data["start_time"]) if "start_time" in data else None

    if positions.ndim != 3 or positions.shape[1:] != (N_JOINTS, 3):
        raise ValueError(
            f"positions must have shape (T, {N_JOINTS}, 3), got {positions.shape}"
        )
    if len(timestamps) != len(positions):
        raise ValueError("timestamps and positions lengths differ")

    frames = [
        Frame(timestamp=float(t), positions=p, frame_number=i)
        for i, (t, p) in enumerate(zip(timestamps, positions))
    ]
    if start_time is None:
        start_time = float(timestamps[0]) if len(timestamps) else 0.0

    return Recording(frames=frames, start_time=start_time, source=str(path))


def parse_environment(data: dict[str, Any]) -> EnvironmentData:
    """Build EnvironmentData from its JSON form."""
    try:
        obstacles = tuple(
            Obstacle(
                position=tuple(float(v) for v in o["position"]),
                type=ObstacleType(o["type"]),
                dimensions=tuple(float(v) for v in o.get("dimensions", (0.1, 2.0, 0.1))),
            )
            for o in data.get("obstacles", [])
        )
        return EnvironmentData(
            obstacles=obstacles,
            walking_path=np.asarray(data.get("walking_path", []), dtype=np.float64),
            room_dimensions=tuple(float(v) for v in data.get("room_dimensions", (5.0, 3.0, 5.0))),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid environment data: {e}") from e


def replay(analyzer: GaitAnalyzer, recording: Recording) -> GaitAnalysisResults:
    """Feed a recording through the engine and wait for the session results."""
    analyzer.start_session(recording.new_session())
    for frame in recording.frames:
        analyzer.process_frame(frame)

    future = analyzer.finalize_session()
    assert future is not None
    return future.result()
