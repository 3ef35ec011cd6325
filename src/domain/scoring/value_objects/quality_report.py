"""Quality-control report value objects."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..exceptions import ValidationError


class QualityFlag(Enum):
    """Closed vocabulary of quality flags."""

    HIGH_DISAGREEMENT = "high_disagreement"
    INCOMPLETE_COMMITTEE = "incomplete_committee"
    SLOW_PROCESSING = "slow_processing"


@dataclass(frozen=True)
class QualityThresholds:
    """Tunable thresholds for quality flags and consensus summary."""

    high_disagreement: Decimal = Decimal("0.2")
    unanimity: Decimal = Decimal("0.1")
    outlier_sigma: Decimal = Decimal("2.0")
    slow_processing_ms: int = 30000
    majority_threshold: Decimal = Decimal("0.6")

    def __post_init__(self):
        if self.high_disagreement < 0 or self.unanimity < 0:
            raise ValidationError("Disagreement thresholds cannot be negative")

        if self.outlier_sigma <= 0:
            raise ValidationError("Outlier sigma must be positive")

        if self.slow_processing_ms <= 0:
            raise ValidationError("Slow processing threshold must be positive")

        if not (0 <= self.majority_threshold <= 1):
            raise ValidationError("Majority threshold must be between 0 and 1")


@dataclass(frozen=True)
class ConsensusSummary:
    """Committee agreement summary."""

    unanimous: bool
    majority_threshold: Decimal
    outlier_scores: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unanimous": self.unanimous,
            "majority_threshold": float(self.majority_threshold),
            "outlier_scores": list(self.outlier_scores),
        }


@dataclass(frozen=True)
class FeatureExtraction:
    """Simple features extracted from textual payloads."""

    word_count: Optional[int] = None
    readability_score: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        features: Dict[str, Any] = {}
        if self.word_count is not None:
            features["word_count"] = self.word_count
        if self.readability_score is not None:
            features["readability_score"] = float(self.readability_score)
        return features


@dataclass(frozen=True)
class QualityControlReport:
    """Diagnostics about scorer agreement, cost and timing for one scoring call."""

    attempt_id: str
    processing_time_ms: int
    model_costs: Dict[str, Decimal]
    disagreement_score: Decimal
    confidence_intervals: Dict[str, Tuple[Decimal, Decimal]]
    feature_extraction: FeatureExtraction
    quality_flags: Tuple[QualityFlag, ...]
    consensus: ConsensusSummary
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.quality_flags, tuple):
            object.__setattr__(self, "quality_flags", tuple(self.quality_flags))

        if self.processing_time_ms < 0:
            raise ValidationError("Processing time cannot be negative")

        if self.disagreement_score < 0:
            raise ValidationError("Disagreement score cannot be negative")

    def has_flag(self, flag: QualityFlag) -> bool:
        return flag in self.quality_flags

    @property
    def total_cost(self) -> Decimal:
        return sum(self.model_costs.values(), Decimal("0"))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-compatible dictionary."""
        return {
            "attempt_id": self.attempt_id,
            "processing_time_ms": self.processing_time_ms,
            "model_costs": {model: float(cost) for model, cost in self.model_costs.items()},
            "disagreement_score": float(self.disagreement_score),
            "confidence_intervals": {
                criterion_id: [float(low), float(high)]
                for criterion_id, (low, high) in self.confidence_intervals.items()
            },
            "feature_extraction": self.feature_extraction.to_dict(),
            "quality_flags": [flag.value for flag in self.quality_flags],
            "committee_consensus": self.consensus.to_dict(),
        }
