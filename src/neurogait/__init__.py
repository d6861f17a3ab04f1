"""NeuroGait: streaming gait analysis for Parkinsonian risk assessment.

Turns a body-tracking sensor's skeleton stream into real-time gait metrics,
freezing-of-gait episodes, gait anomalies and rule-based clinical scores
(UPDRS Part III gait items, FOG-Q, Hoehn & Yahr).
"""

__version__ = "0.1.0"

from neurogait.core import Settings, configure_logging, get_settings
from neurogait.pipeline import EnvironmentData, Frame, Joint, Session
from neurogait.analysis.engine import GaitAnalysisResults, GaitAnalyzer
from neurogait.analysis.risk_analysis import ClinicalScorer, ClinicalScores

__all__ = [
    "ClinicalScorer",
    "ClinicalScores",
    "EnvironmentData",
    "Frame",
    "GaitAnalysisResults",
    "GaitAnalyzer",
    "Joint",
    "Session",
    "Settings",
    "__version__",
    "configure_logging",
    "get_settings",
]
