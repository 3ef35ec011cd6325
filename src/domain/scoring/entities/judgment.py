"""Judgment entity: one scorer's raw structured output."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from ..exceptions import ValidationError
from ..value_objects.score import CriterionScore, Score, percentage_of
from .rubric import Rubric


@dataclass(frozen=True)
class CriterionJudgment:
    """Score a single scorer assigned to one criterion."""

    criterion_id: str
    score: Decimal
    max_score: Decimal = Decimal("0")
    band: Optional[Decimal] = None
    evidence: Tuple[str, ...] = ()
    confidence: Decimal = Decimal("0.8")

    def __post_init__(self):
        if not self.criterion_id:
            raise ValidationError("Criterion ID is required", field_name="criterion_id")

        if not isinstance(self.evidence, tuple):
            object.__setattr__(self, "evidence", tuple(self.evidence))

        if self.score < 0:
            raise ValidationError(f"Score for {self.criterion_id} cannot be negative")

        if not (0 <= self.confidence <= 1):
            raise ValidationError(f"Confidence for {self.criterion_id} must be between 0 and 1")


@dataclass(frozen=True)
class Judgment:
    """Raw result of one scorer backend for one attempt. Never persisted here."""

    model_name: str
    provider: str
    criteria_scores: Tuple[CriterionJudgment, ...]
    max_score: Decimal = Decimal("0")
    overall_feedback: Optional[str] = None
    strengths: Tuple[str, ...] = ()
    improvement_areas: Tuple[str, ...] = ()
    confidence: Decimal = Decimal("0.8")
    processing_time_ms: int = 0
    cost: Decimal = Decimal("0")
    completed_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        for name in ("criteria_scores", "strengths", "improvement_areas"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

        if not self.model_name:
            raise ValidationError("Model name is required", field_name="model_name")

        if self.processing_time_ms < 0:
            raise ValidationError("Processing time cannot be negative")

        if self.cost < 0:
            raise ValidationError("Cost cannot be negative")

    @property
    def total_score(self) -> Decimal:
        """Total score, always the sum of the criterion scores."""
        return sum((criterion.score for criterion in self.criteria_scores), Decimal("0"))

    def get_criterion(self, criterion_id: str) -> Optional[CriterionJudgment]:
        for criterion in self.criteria_scores:
            if criterion.criterion_id == criterion_id:
                return criterion
        return None

    def score_for(self, criterion_id: str) -> Decimal:
        """Score for a criterion; a missing criterion counts as 0."""
        criterion = self.get_criterion(criterion_id)
        return criterion.score if criterion else Decimal("0")

    def to_score(self, attempt_id: str, rubric: Rubric) -> Score:
        """Build a score from this judgment alone."""
        criteria_scores = []
        for criterion in self.criteria_scores:
            rubric_criterion = rubric.get_criterion(criterion.criterion_id)
            max_score = criterion.max_score
            if rubric_criterion is not None and not max_score:
                max_score = rubric_criterion.max_score

            band = criterion.band
            if band is None:
                band = rubric_criterion.band_for(criterion.score) if rubric_criterion else Decimal("0")

            criteria_scores.append(
                CriterionScore(
                    criterion_id=criterion.criterion_id,
                    score=criterion.score,
                    max_score=max_score,
                    band=band,
                    evidence=criterion.evidence,
                    confidence=criterion.confidence,
                )
            )

        total_score = self.total_score
        max_score = self.max_score if self.max_score > 0 else rubric.max_score

        return Score(
            attempt_id=attempt_id,
            total_score=total_score,
            max_score=max_score,
            percentage=percentage_of(total_score, max_score),
            passed=rubric.is_passing(total_score),
            criteria_scores=tuple(criteria_scores),
            overall_feedback=self.overall_feedback or None,
            strengths=self.strengths,
            improvement_areas=self.improvement_areas,
            timestamp=self.completed_at,
        )
