"""Risk analysis modules."""

from .clinical import (
    ClinicalRecommendation,
    ClinicalScorer,
    ClinicalScores,
    FOGQuestionnaire,
    FOGRiskLevel,
    HoehnYahrStage,
    ParkinsonsRisk,
    UPDRSPartIII,
)
from .fog import (
    FreezingDetector,
    FreezingEpisode,
    FreezingSeverity,
    FreezingSummary,
    FreezingTrigger,
    combine_episodes,
    summarize_episodes,
)

__all__ = [
    "ClinicalRecommendation",
    "ClinicalScorer",
    "ClinicalScores",
    "FOGQuestionnaire",
    "FOGRiskLevel",
    "HoehnYahrStage",
    "ParkinsonsRisk",
    "UPDRSPartIII",
    "FreezingDetector",
    "FreezingEpisode",
    "FreezingSeverity",
    "FreezingSummary",
    "FreezingTrigger",
    "combine_episodes",
    "summarize_episodes",
]
