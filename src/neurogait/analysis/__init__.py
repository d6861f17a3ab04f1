"""Analysis modules organized by stages.

Execution order per window:
1) step detection
2) metrics
3) anomaly detection

At session end, freezing scan and aggregates run over the full history,
then risk analysis maps the results onto clinical scales.
"""

from .anomalies import AnomalyDetector, AnomalyType, GaitAnomaly
from .metrics import GaitMetrics, MetricsCalculator, bradykinesia_from_speed
from .risk_analysis import (
    ClinicalRecommendation,
    ClinicalScorer,
    ClinicalScores,
    FOGQuestionnaire,
    FOGRiskLevel,
    FreezingDetector,
    FreezingEpisode,
    FreezingSeverity,
    FreezingSummary,
    FreezingTrigger,
    HoehnYahrStage,
    ParkinsonsRisk,
    UPDRSPartIII,
)
from .steps import StepDetector, detect_heel_strike
from .summary import SessionSummarizer, SpatialAnalysis, SpeedSample, TemporalAnalysis, speed_trace
from .engine import GaitAnalysisResults, GaitAnalyzer

__all__ = [
    "GaitAnalysisResults",
    "GaitAnalyzer",
    "AnomalyDetector",
    "AnomalyType",
    "GaitAnomaly",
    "GaitMetrics",
    "MetricsCalculator",
    "bradykinesia_from_speed",
    "StepDetector",
    "detect_heel_strike",
    "SessionSummarizer",
    "SpatialAnalysis",
    "SpeedSample",
    "TemporalAnalysis",
    "speed_trace",
    "ClinicalRecommendation",
    "ClinicalScorer",
    "ClinicalScores",
    "FOGQuestionnaire",
    "FOGRiskLevel",
    "FreezingDetector",
    "FreezingEpisode",
    "FreezingSeverity",
    "FreezingSummary",
    "FreezingTrigger",
    "HoehnYahrStage",
    "ParkinsonsRisk",
    "UPDRSPartIII",
]
