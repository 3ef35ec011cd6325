"""Aggregated score value objects."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Tuple

from ..exceptions import ValidationError

TWO_PLACES = Decimal("0.01")
THREE_PLACES = Decimal("0.001")


def quantize(value: Decimal, places: Decimal = TWO_PLACES) -> Decimal:
    """Round half up to the given number of places."""
    return Decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def percentage_of(total: Decimal, maximum: Decimal) -> Decimal:
    """Percentage of maximum, rounded to 2 places and clamped to [0, 100]."""
    if maximum <= 0:
        return Decimal("0.00")
    percentage = quantize(total / maximum * 100)
    return min(Decimal("100.00"), max(Decimal("0.00"), percentage))


@dataclass(frozen=True)
class CriterionScore:
    """Score for one rubric criterion."""

    criterion_id: str
    score: Decimal
    max_score: Decimal
    band: Decimal
    evidence: Tuple[str, ...] = ()
    confidence: Decimal = Decimal("0.8")

    def __post_init__(self):
        if not isinstance(self.evidence, tuple):
            object.__setattr__(self, "evidence", tuple(self.evidence))

        if not (0 <= self.confidence <= 1):
            raise ValidationError("Criterion confidence must be between 0 and 1")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criterion_id": self.criterion_id,
            "score": float(self.score),
            "max_score": float(self.max_score),
            "band": float(self.band),
            "evidence": list(self.evidence),
            "confidence": float(self.confidence),
        }


@dataclass(frozen=True)
class Score:
    """Authoritative score for one attempt."""

    attempt_id: str
    total_score: Decimal
    max_score: Decimal
    percentage: Decimal
    passed: bool
    criteria_scores: Tuple[CriterionScore, ...]
    overall_feedback: Optional[str] = None
    strengths: Tuple[str, ...] = ()
    improvement_areas: Tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        """Validate score invariants."""
        for name in ("criteria_scores", "strengths", "improvement_areas"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

        if not (0 <= self.percentage <= 100):
            raise ValidationError("Percentage must be between 0 and 100")

        if self.total_score != sum(
            (criterion.score for criterion in self.criteria_scores), Decimal("0")
        ):
            raise ValidationError("Total score must equal the sum of criterion scores")

    def get_criterion(self, criterion_id: str) -> Optional[CriterionScore]:
        for criterion in self.criteria_scores:
            if criterion.criterion_id == criterion_id:
                return criterion
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-compatible dictionary."""
        return {
            "attempt_id": self.attempt_id,
            "total_score": float(self.total_score),
            "max_score": float(self.max_score),
            "percentage": float(self.percentage),
            "pass": self.passed,
            "criteria_scores": [criterion.to_dict() for criterion in self.criteria_scores],
            "overall_feedback": self.overall_feedback,
            "strengths": list(self.strengths),
            "improvement_areas": list(self.improvement_areas),
            "timestamp": self.timestamp.isoformat(),
        }
