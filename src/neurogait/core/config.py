"""Configuration management with dataclasses and YAML loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class EngineConfig:
    """Real-time engine configuration."""

    window_size: int = 30  # frames, ~1 second at 30 FPS
    freezing_threshold: float = 3.0  # seconds without a step
    min_step_interval: float = 0.3  # seconds between accepted steps
    finalize_workers: int = 1

    def __post_init__(self) -> None:
        """Validate window capacity."""
        if self.window_size <= 0:
            raise ValueError(f"window_size must be positive, got {self.window_size}")


@dataclass
class DetectionConfig:
    """Step, anomaly and freezing detection thresholds."""

    step_lookback: int = 10  # frames
    step_min_samples: int = 5
    step_threshold: float = 0.02  # meters
    shuffling_range: float = 0.05  # meters
    arm_swing_asymmetry: float = 0.5
    postural_stability: float = 0.6
    scan_window: int = 60  # frames, ~2 seconds at 30 FPS
    movement_threshold: float = 0.01  # meters per frame
    merge_overlapping: bool = True


@dataclass
class ScoringConfig:
    """Clinical scoring configuration."""

    fogq_cap: int = 12
    fogq_high: int = 15
    fogq_moderate: int = 8
    risk_confidence: float = 0.85


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"

    def __post_init__(self) -> None:
        """Load level override from environment."""
        env_level = os.getenv("NEUROGAIT_LOG_LEVEL", "")
        if env_level:
            self.level = env_level
        self.level = self.level.upper()


@dataclass
class Settings:
    """Main application settings."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from dictionary."""
        return cls(
            engine=EngineConfig(**data.get("engine", {})),
            detection=DetectionConfig(**data.get("detection", {})),
            scoring=ScoringConfig(**data.get("scoring", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""
        from dataclasses import asdict

        return asdict(self)


# Global settings instance
_settings: Settings | None = None


def get_settings(config_path: str | Path | None = None) -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        if config_path is None:
            # Default config paths to check
            for candidate in [
                Path("config/neurogait.yaml"),
                Path.home() / ".config/neurogait/settings.yaml",
            ]:
                if candidate.exists():
                    config_path = candidate
                    break

        _settings = Settings.from_yaml(config_path) if config_path else Settings()

    return _settings


def reload_settings(config_path: str | Path | None = None) -> Settings:
    """Force reload settings from file."""
    global _settings
    _settings = None
    return get_settings(config_path)
