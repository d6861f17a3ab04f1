"""Tests for spatial risk mapping."""

import numpy as np
import pytest

from neurogait.analysis.risk_analysis.fog import FreezingTrigger
from neurogait.pipeline.frames import EnvironmentData, Obstacle, ObstacleType
from neurogait.spatial.mapper import (
    DEFAULT_CLEAR_PATH_WIDTH,
    RiskLevel,
    SpatialMapper,
    TurnDirection,
    path_length,
)


def _obstacle(kind: ObstacleType, position=(0.0, 0.0, 0.0)) -> Obstacle:
    return Obstacle(position=position, type=kind)


@pytest.fixture
def mapper():
    return SpatialMapper()


class TestRiskZones:
    """Tests for freezing risk zones."""

    def test_doorway_and_corner(self, mapper):
        """Test doorways and corners become zones; other obstacles do not."""
        zones = mapper.freezing_risk_zones([
            _obstacle(ObstacleType.DOORWAY, (0.0, 0.0, 2.0)),
            _obstacle(ObstacleType.CORNER, (1.0, 0.0, 3.0)),
            _obstacle(ObstacleType.FURNITURE),
            _obstacle(ObstacleType.WALL),
        ])

        assert len(zones) == 2
        door, corner = zones
        assert door.risk_level is RiskLevel.HIGH
        assert door.trigger is FreezingTrigger.DOORWAY
        assert door.radius == 1.5
        assert corner.risk_level is RiskLevel.MODERATE
        assert corner.trigger is FreezingTrigger.TURN_INITIATION
        assert corner.radius == 1.0

    def test_zone_at_prefers_highest_risk(self, mapper):
        """Test overlapping zones resolve to the riskiest one."""
        environment = EnvironmentData(obstacles=(
            _obstacle(ObstacleType.CORNER, (0.0, 0.0, 2.5)),
            _obstacle(ObstacleType.DOORWAY, (0.0, 0.0, 2.0)),
        ))
        spatial_map = mapper.map_environment(environment)

        assert spatial_map.zone_at((0.0, 0.0, 2.2)).trigger is FreezingTrigger.DOORWAY
        assert spatial_map.zone_at((5.0, 0.0, 5.0)) is None


class TestNavigationDifficulty:
    """Tests for navigation difficulty."""

    def test_density_and_penalties(self, mapper):
        """Test obstacle density plus per-type penalties."""
        path = np.array([[0, 0, 0], [0, 0, 4]], dtype=float)
        obstacles = [_obstacle(ObstacleType.DOORWAY), _obstacle(ObstacleType.CORNER)]
        assert mapper.navigation_difficulty(obstacles, path) == pytest.approx(0.75)

    def test_default_penalty(self, mapper):
        """Test unlisted obstacle types use the default penalty."""
        path = np.array([[0, 0, 0], [0, 0, 10]], dtype=float)
        assert mapper.navigation_difficulty([_obstacle(ObstacleType.FURNITURE)], path) == pytest.approx(0.15)

    def test_clamped(self, mapper):
        """Test the score never exceeds 1."""
        path = np.array([[0, 0, 0], [0, 0, 1]], dtype=float)
        obstacles = [_obstacle(ObstacleType.STAIRS)] * 4
        assert mapper.navigation_difficulty(obstacles, path) == 1.0

    def test_empty(self, mapper):
        """Test no obstacles or no path means no difficulty."""
        path = np.array([[0, 0, 0], [0, 0, 1]], dtype=float)
        assert mapper.navigation_difficulty([], path) == 0.0
        assert mapper.navigation_difficulty([_obstacle(ObstacleType.STAIRS)], np.zeros((0, 3))) == 0.0


class TestTurningPoints:
    """Tests for turning point extraction."""

    def test_left_turn(self, mapper):
        """Test a right-angle turn towards +x."""
        points = mapper.turning_points(np.array([[0, 0, 0], [0, 0, 1], [1, 0, 1]], dtype=float))
        assert len(points) == 1
        assert points[0].position == (0.0, 0.0, 1.0)
        assert points[0].angle == pytest.approx(np.pi / 2)
        assert points[0].direction is TurnDirection.LEFT

    def test_right_turn(self, mapper):
        """Test a right-angle turn towards -x."""
        points = mapper.turning_points(np.array([[0, 0, 0], [0, 0, 1], [-1, 0, 1]], dtype=float))
        assert points[0].direction is TurnDirection.RIGHT

    def test_gentle_curve_ignored(self, mapper):
        """Test heading changes up to 45 degrees are not turns."""
        path = np.array([[0, 0, 0], [0, 0, 1], [0.5, 0, 2], [0.5, 0, 3]], dtype=float)
        assert mapper.turning_points(path) == []

    def test_repeated_samples_skipped(self, mapper):
        """Test zero-length segments do not produce turns."""
        path = np.array([[0, 0, 0], [0, 0, 1], [0, 0, 1], [0, 0, 2]], dtype=float)
        assert mapper.turning_points(path) == []

    def test_short_path(self, mapper):
        """Test paths with fewer than three samples."""
        assert mapper.turning_points(np.zeros((2, 3))) == []


class TestSpatialMap:
    """Tests for the combined spatial map."""

    def test_map_environment(self, mapper):
        """Test a complete map from an environment snapshot."""
        environment = EnvironmentData(
            obstacles=(_obstacle(ObstacleType.DOORWAY, (0.0, 0.0, 2.0)),),
            walking_path=[[0, 0, 0], [0, 0, 2], [2, 0, 2]],
        )
        spatial_map = mapper.map_environment(environment)

        assert len(spatial_map.freezing_risk_zones) == 1
        assert spatial_map.clear_path_width == DEFAULT_CLEAR_PATH_WIDTH
        assert len(spatial_map.turning_points) == 1
        assert 0.0 < spatial_map.navigation_difficulty <= 1.0

        data = spatial_map.to_dict()
        assert data["freezing_risk_zones"][0]["trigger"] == "doorway"
        assert data["turning_points"][0]["direction"] == "left"

    def test_path_length(self):
        """Test cumulative path length."""
        assert path_length(np.array([[0, 0, 0], [3, 0, 4], [3, 0, 5]], dtype=float)) == pytest.approx(6.0)
        assert path_length(np.zeros((1, 3))) == 0.0
