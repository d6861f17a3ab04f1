"""
Spatial Risk Mapping
====================

Turn classified environment obstacles and the walking path into freezing
risk zones, a navigation difficulty score and turning points.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import numpy as np

from neurogait.analysis.risk_analysis.fog import FreezingTrigger
from neurogait.pipeline.frames import EnvironmentData, Obstacle, ObstacleType

DEFAULT_CLEAR_PATH_WIDTH = 1.5  # meters, placeholder until free-space estimation exists


class RiskLevel(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class TurnDirection(Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class FreezingRiskZone:
    position: tuple[float, float, float]
    risk_level: RiskLevel
    trigger: FreezingTrigger
    radius: float  # meters

    def contains(self, point: Sequence[float]) -> bool:
        return float(np.linalg.norm(np.asarray(point) - np.asarray(self.position))) <= self.radius

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": list(self.position),
            "risk_level": self.risk_level.value,
            "trigger": self.trigger.value,
            "radius": self.radius,
        }


@dataclass(frozen=True)
class TurningPoint:
    position: tuple[float, float, float]
    angle: float  # radians
    direction: TurnDirection

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": list(self.position),
            "angle": self.angle,
            "direction": self.direction.value,
        }


@dataclass(frozen=True)
class SpatialMap:
    """Read-only view derived from one environment snapshot."""

    freezing_risk_zones: tuple[FreezingRiskZone, ...]
    navigation_difficulty: float  # 0-1
    clear_path_width: float  # meters
    turning_points: tuple[TurningPoint, ...]

    def zone_at(self, position: Sequence[float]) -> FreezingRiskZone | None:
        """Highest-risk zone containing a point, if any."""
        order = {RiskLevel.HIGH: 0, RiskLevel.MODERATE: 1, RiskLevel.LOW: 2}
        hits = [z for z in self.freezing_risk_zones if z.contains(position)]
        if not hits:
            return None
        return min(hits, key=lambda z: order[z.risk_level])

    def to_dict(self) -> dict[str, Any]:
        return {
            "freezing_risk_zones": [z.to_dict() for z in self.freezing_risk_zones],
            "navigation_difficulty": self.navigation_difficulty,
            "clear_path_width": self.clear_path_width,
            "turning_points": [t.to_dict() for t in self.turning_points],
        }


def _as_position(value: Sequence[float]) -> tuple[float, float, float]:
    x, y, z = (float(v) for v in value)
    return (x, y, z)


class SpatialMapper:
    """Map an environment snapshot to freezing-relevant spatial features."""

    TYPE_PENALTIES = {
        ObstacleType.DOORWAY: 0.3,
        ObstacleType.STAIRS: 0.5,
        ObstacleType.CORNER: 0.2,
    }
    DEFAULT_PENALTY = 0.1
    DENSITY_WEIGHT = 0.5  # per obstacle per meter of path
    TURN_ANGLE = np.pi / 4  # 45 degrees

    def map_environment(self, environment: EnvironmentData) -> SpatialMap:
        obstacles = environment.obstacles
        path = environment.walking_path

        return SpatialMap(
            freezing_risk_zones=tuple(self.freezing_risk_zones(obstacles)),
            navigation_difficulty=self.navigation_difficulty(obstacles, path),
            clear_path_width=DEFAULT_CLEAR_PATH_WIDTH,
            turning_points=tuple(self.turning_points(path)),
        )

    def freezing_risk_zones(self, obstacles: Sequence[Obstacle]) -> list[FreezingRiskZone]:
        """Doorways and corners are classic freezing triggers."""
        zones = []
        for obstacle in obstacles:
            if obstacle.type is ObstacleType.DOORWAY:
                zones.append(FreezingRiskZone(
                    position=_as_position(obstacle.position),
                    risk_level=RiskLevel.HIGH,
                    trigger=FreezingTrigger.DOORWAY,
                    radius=1.5,
                ))
            elif obstacle.type is ObstacleType.CORNER:
                zones.append(FreezingRiskZone(
                    position=_as_position(obstacle.position),
                    risk_level=RiskLevel.MODERATE,
                    trigger=FreezingTrigger.TURN_INITIATION,
                    radius=1.0,
                ))
        return zones

    def navigation_difficulty(self, obstacles: Sequence[Obstacle], path: np.ndarray) -> float:
        """Obstacle density along the path plus per-type penalties, clamped to 0-1."""
        if len(obstacles) == 0 or len(path) == 0:
            return 0.0

        score = 0.0
        length = path_length(path)
        if length > 0:
            score += len(obstacles) / length * self.DENSITY_WEIGHT

        for obstacle in obstacles:
            score += self.TYPE_PENALTIES.get(obstacle.type, self.DEFAULT_PENALTY)

        return float(min(1.0, score))

    def turning_points(self, path: np.ndarray) -> list[TurningPoint]:
        """Interior path samples where heading changes by more than 45 degrees."""
        path = np.asarray(path, dtype=np.float64)
        if len(path) < 3:
            return []

        points = []
        for i in range(1, len(path) - 1):
            d1 = path[i] - path[i - 1]
            d2 = path[i + 1] - path[i]
            n1, n2 = np.linalg.norm(d1), np.linalg.norm(d2)
            if n1 == 0 or n2 == 0:
                continue

            d1, d2 = d1 / n1, d2 / n2
            angle = float(np.arccos(np.clip(np.dot(d1, d2), -1.0, 1.0)))
            if angle <= self.TURN_ANGLE:
                continue

            # Vertical (y) component of the cross product: positive turns left
            turn = np.cross(d1, d2)[1]
            points.append(TurningPoint(
                position=_as_position(path[i]),
                angle=angle,
                direction=TurnDirection.LEFT if turn >= 0 else TurnDirection.RIGHT,
            ))
        return points


def path_length(path: np.ndarray) -> float:
    path = np.asarray(path, dtype=np.float64)
    if len(path) < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(path, axis=0), axis=1)))
