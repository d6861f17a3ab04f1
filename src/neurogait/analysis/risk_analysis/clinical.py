"""
Clinical Scoring
================

Map final gait metrics and freezing episodes onto clinical scales:
UPDRS Part III (gait-related items), FOG-Q, Hoehn & Yahr, and an overall
Parkinson's risk with a recommendation tier.

All scores are rule-based and deterministic. They are decision support, not
a diagnosis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from neurogait.analysis.metrics import GaitMetrics

from .fog import FreezingEpisode

if TYPE_CHECKING:
    from neurogait.analysis.engine import GaitAnalysisResults

logger = logging.getLogger(__name__)


class FOGRiskLevel(Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class HoehnYahrStage(Enum):
    """Hoehn & Yahr staging, including half stages."""

    STAGE_0 = 0.0
    STAGE_1 = 1.0
    STAGE_1_5 = 1.5
    STAGE_2 = 2.0
    STAGE_2_5 = 2.5
    STAGE_3 = 3.0
    STAGE_4 = 4.0
    STAGE_5 = 5.0


class ClinicalRecommendation(Enum):
    NORMAL = "normal_gait"
    MONITOR = "continue_monitoring"
    CONSULT = "consult_neurologist"
    URGENT = "urgent_evaluation"


@dataclass(frozen=True)
class UPDRSPartIII:
    """Gait-related UPDRS Part III items, each 0-4."""

    gait_score: int
    postural_stability_score: int
    bradykinesia_score: int
    rigidity_score: int
    total_score: int  # sum of the four items, 0-16

    def to_dict(self) -> dict[str, int]:
        return {
            "gait_score": self.gait_score,
            "postural_stability_score": self.postural_stability_score,
            "bradykinesia_score": self.bradykinesia_score,
            "rigidity_score": self.rigidity_score,
            "total_score": self.total_score,
        }


@dataclass(frozen=True)
class FOGQuestionnaire:
    total_score: int
    risk_level: FOGRiskLevel

    def to_dict(self) -> dict[str, Any]:
        return {"total_score": self.total_score, "risk_level": self.risk_level.value}


@dataclass(frozen=True)
class ParkinsonsRisk:
    risk_score: float  # 0-1
    confidence: float  # 0-1
    key_indicators: tuple[str, ...]
    recommendation: ClinicalRecommendation

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_score": self.risk_score,
            "confidence": self.confidence,
            "key_indicators": list(self.key_indicators),
            "recommendation": self.recommendation.value,
        }


@dataclass(frozen=True)
class ClinicalScores:
    updrs_part_iii: UPDRSPartIII
    fog_q: FOGQuestionnaire
    hoehn_yahr: HoehnYahrStage
    overall_risk: ParkinsonsRisk

    def to_dict(self) -> dict[str, Any]:
        return {
            "updrs_part_iii": self.updrs_part_iii.to_dict(),
            "fog_q": self.fog_q.to_dict(),
            "hoehn_yahr": self.hoehn_yahr.value,
            "overall_risk": self.overall_risk.to_dict(),
        }


def _band(value: float, thresholds: Sequence[float], above: bool) -> int:
    """Index of the first threshold the value clears, else len(thresholds)."""
    for score, threshold in enumerate(thresholds):
        if (value > threshold) if above else (value < threshold):
            return score
    return len(thresholds)


class ClinicalScorer:
    """Rule-based clinical scores from gait metrics and freezing episodes."""

    # (walking speed, stride length) pairs for UPDRS 3.10 scores 0-3
    GAIT_BANDS = [(1.2, 0.6), (1.0, 0.5), (0.8, 0.4), (0.6, 0.3)]
    POSTURAL_BANDS = [0.9, 0.8, 0.6, 0.4]  # stability must exceed
    RIGIDITY_BANDS = [0.1, 0.3, 0.5, 0.7]  # asymmetry must stay below

    RISK_WEIGHTS = {
        "bradykinesia": 0.25,
        "arm_swing": 0.2,
        "freezing": 0.3,
        "regularity": 0.15,
        "postural": 0.2,
    }

    def __init__(
        self,
        fogq_cap: int = 12,
        fogq_high: int = 15,
        fogq_moderate: int = 8,
        risk_confidence: float = 0.85,
    ):
        self.fogq_cap = fogq_cap
        self.fogq_high = fogq_high
        self.fogq_moderate = fogq_moderate
        self.risk_confidence = risk_confidence

        if self.fogq_high > self.fogq_cap:
            logger.warning(
                "FOG-Q high tier (>= %d) is unreachable with score cap %d",
                self.fogq_high,
                self.fogq_cap,
            )

    def score_results(self, results: GaitAnalysisResults) -> ClinicalScores:
        """Score a finalized session."""
        return self.calculate_scores(results.final_metrics, results.freezing_episodes)

    def calculate_scores(
        self,
        metrics: GaitMetrics,
        freezing_episodes: Sequence[FreezingEpisode],
    ) -> ClinicalScores:
        """
        Compute all clinical scores.

        Args:
            metrics: Final session metrics
            freezing_episodes: Episodes detected in the session

        Returns:
            ClinicalScores
        """
        return ClinicalScores(
            updrs_part_iii=self.updrs_part_iii(metrics),
            fog_q=self.fog_questionnaire(freezing_episodes),
            hoehn_yahr=self.hoehn_yahr_stage(metrics, bool(freezing_episodes)),
            overall_risk=self.parkinsons_risk(metrics, freezing_episodes),
        )

    # ------------------------------------------------------------------
    # UPDRS Part III
    # ------------------------------------------------------------------

    def gait_score(self, metrics: GaitMetrics) -> int:
        """UPDRS item 3.10 (gait): speed and stride must both clear a band."""
        for score, (speed, stride) in enumerate(self.GAIT_BANDS):
            if metrics.walking_speed > speed and metrics.stride_length > stride:
                return score
        return 4

    def postural_stability_score(self, metrics: GaitMetrics) -> int:
        """UPDRS item 3.12 (postural stability)."""
        return _band(metrics.postural_stability, self.POSTURAL_BANDS, above=True)

    def rigidity_score(self, metrics: GaitMetrics) -> int:
        """Rigidity estimated from arm swing asymmetry."""
        return _band(metrics.arm_swing_asymmetry, self.RIGIDITY_BANDS, above=False)

    def updrs_part_iii(self, metrics: GaitMetrics) -> UPDRSPartIII:
        gait = self.gait_score(metrics)
        postural = self.postural_stability_score(metrics)
        bradykinesia = int(metrics.bradykinesia_score)
        rigidity = self.rigidity_score(metrics)

        return UPDRSPartIII(
            gait_score=gait,
            postural_stability_score=postural,
            bradykinesia_score=bradykinesia,
            rigidity_score=rigidity,
            total_score=gait + postural + bradykinesia + rigidity,
        )

    # ------------------------------------------------------------------
    # FOG-Q and Hoehn & Yahr
    # ------------------------------------------------------------------

    def fog_questionnaire(self, freezing_episodes: Sequence[FreezingEpisode]) -> FOGQuestionnaire:
        total = min(self.fogq_cap, len(freezing_episodes) * 2)

        if total >= self.fogq_high:
            level = FOGRiskLevel.HIGH
        elif total >= self.fogq_moderate:
            level = FOGRiskLevel.MODERATE
        else:
            level = FOGRiskLevel.LOW

        return FOGQuestionnaire(total_score=total, risk_level=level)

    def hoehn_yahr_stage(self, metrics: GaitMetrics, freezing_present: bool) -> HoehnYahrStage:
        """Top-down cascade; the first matching stage wins."""
        speed = metrics.walking_speed
        stability = metrics.postural_stability

        if speed > 1.2 and stability > 0.9 and not freezing_present:
            return HoehnYahrStage.STAGE_0  # No signs
        if speed > 1.0 and metrics.arm_swing_asymmetry < 0.3:
            return HoehnYahrStage.STAGE_1  # Unilateral involvement
        if speed > 0.8 and stability > 0.7:
            return HoehnYahrStage.STAGE_2  # Bilateral, balance intact
        if speed > 0.6 and stability > 0.5:
            return HoehnYahrStage.STAGE_3  # Mild to moderate bilateral
        if speed > 0.4:
            return HoehnYahrStage.STAGE_4  # Severe disability
        return HoehnYahrStage.STAGE_5  # Wheelchair bound

    # ------------------------------------------------------------------
    # Overall risk
    # ------------------------------------------------------------------

    def parkinsons_risk(
        self,
        metrics: GaitMetrics,
        freezing_episodes: Sequence[FreezingEpisode],
    ) -> ParkinsonsRisk:
        indicators: list[str] = []
        score = 0.0

        if metrics.bradykinesia_score >= 2:
            indicators.append("Significant bradykinesia detected")
            score += self.RISK_WEIGHTS["bradykinesia"]

        if metrics.arm_swing_asymmetry > 0.3:
            indicators.append("Asymmetric arm swing")
            score += self.RISK_WEIGHTS["arm_swing"]

        if freezing_episodes:
            indicators.append("Freezing episodes detected")
            score += self.RISK_WEIGHTS["freezing"]

        if metrics.step_regularity < 0.7:
            indicators.append("Irregular step patterns")
            score += self.RISK_WEIGHTS["regularity"]

        if metrics.postural_stability < 0.6:
            indicators.append("Postural instability")
            score += self.RISK_WEIGHTS["postural"]

        score = float(np.clip(score, 0.0, 1.0))

        return ParkinsonsRisk(
            risk_score=score,
            confidence=self.risk_confidence,
            key_indicators=tuple(indicators),
            recommendation=self._to_recommendation(score),
        )

    def _to_recommendation(self, score: float) -> ClinicalRecommendation:
        if score >= 0.8:
            return ClinicalRecommendation.URGENT
        if score >= 0.6:
            return ClinicalRecommendation.CONSULT
        if score >= 0.3:
            return ClinicalRecommendation.MONITOR
        return ClinicalRecommendation.NORMAL
