"""Environment-derived spatial risk mapping."""

from .mapper import (
    FreezingRiskZone,
    RiskLevel,
    SpatialMap,
    SpatialMapper,
    TurnDirection,
    TurningPoint,
    path_length,
)

__all__ = [
    "FreezingRiskZone",
    "RiskLevel",
    "SpatialMap",
    "SpatialMapper",
    "TurnDirection",
    "TurningPoint",
    "path_length",
]
