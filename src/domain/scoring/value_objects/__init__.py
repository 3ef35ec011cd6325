"""Value objects for scoring domain."""

from .committee import CommitteeConfig, ScorerConfig
from .quality_report import (
    ConsensusSummary,
    FeatureExtraction,
    QualityControlReport,
    QualityFlag,
    QualityThresholds,
)
from .score import CriterionScore, Score
from .scoring_settings import ScoringSettings
from .task_type import TaskType

__all__ = [
    "CommitteeConfig",
    "ConsensusSummary",
    "CriterionScore",
    "FeatureExtraction",
    "QualityControlReport",
    "QualityFlag",
    "QualityThresholds",
    "Score",
    "ScorerConfig",
    "ScoringSettings",
    "TaskType",
]
