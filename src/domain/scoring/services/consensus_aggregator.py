"""Consensus aggregation service for committee scoring."""

import statistics
from decimal import Decimal
from typing import Iterable, List, Sequence

from ..entities.judgment import Judgment
from ..entities.rubric import Rubric, RubricCriterion
from ..exceptions import ValidationError
from ..value_objects.committee import CommitteeConfig
from ..value_objects.score import (
    THREE_PLACES,
    CriterionScore,
    Score,
    percentage_of,
    quantize,
)

MAX_EVIDENCE_ITEMS = 5
MAX_FEEDBACK_ITEMS = 3
SINGLE_SCORE_CONFIDENCE = Decimal("0.8")
MIN_CONFIDENCE = Decimal("0.1")
MAX_CONFIDENCE = Decimal("1.0")


def canonical_order(judgments: Iterable[Judgment]) -> List[Judgment]:
    """Sort judgments so results never depend on arrival order."""
    return sorted(judgments, key=lambda judgment: (judgment.model_name, judgment.provider))


def dedupe(items: Iterable[str], limit: int) -> List[str]:
    """Deduplicate keeping first appearance, capped at limit."""
    seen = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
            if len(seen) >= limit:
                break
    return seen


class ConsensusAggregator:
    """Service for combining committee judgments into one score."""

    def aggregate(
        self,
        judgments: Sequence[Judgment],
        committee: CommitteeConfig,
        rubric: Rubric,
        attempt_id: str,
    ) -> Score:
        """Calculate the weighted consensus score of the judgments."""
        if not judgments:
            raise ValidationError("Aggregation requires at least one judgment")

        if len(judgments) == 1:
            return judgments[0].to_score(attempt_id, rubric)

        ordered = canonical_order(judgments)
        weights = [Decimal(str(committee.weight_for(j.model_name))) for j in ordered]

        criteria_scores = tuple(
            self._aggregate_criterion(criterion, ordered, weights) for criterion in rubric.criteria
        )

        total_score = sum((criterion.score for criterion in criteria_scores), Decimal("0"))
        max_score = rubric.max_score

        feedback = next(
            (j.overall_feedback for j in ordered if j.overall_feedback and j.overall_feedback.strip()),
            None,
        )

        return Score(
            attempt_id=attempt_id,
            total_score=total_score,
            max_score=max_score,
            percentage=percentage_of(total_score, max_score),
            passed=rubric.is_passing(total_score),
            criteria_scores=criteria_scores,
            overall_feedback=feedback,
            strengths=tuple(
                dedupe((s for j in ordered for s in j.strengths), MAX_FEEDBACK_ITEMS)
            ),
            improvement_areas=tuple(
                dedupe((s for j in ordered for s in j.improvement_areas), MAX_FEEDBACK_ITEMS)
            ),
        )

    def _aggregate_criterion(
        self,
        criterion: RubricCriterion,
        judgments: List[Judgment],
        weights: List[Decimal],
    ) -> CriterionScore:
        """Aggregate one criterion across the committee."""
        scores = [judgment.score_for(criterion.criterion_id) for judgment in judgments]
        score = quantize(self.weighted_average(scores, weights))

        evidence = dedupe(
            (
                item
                for judgment in judgments
                if judgment.get_criterion(criterion.criterion_id) is not None
                for item in judgment.get_criterion(criterion.criterion_id).evidence
            ),
            MAX_EVIDENCE_ITEMS,
        )

        return CriterionScore(
            criterion_id=criterion.criterion_id,
            score=score,
            max_score=criterion.max_score,
            band=criterion.band_for(score),
            evidence=tuple(evidence),
            confidence=self.calculate_confidence(scores),
        )

    @staticmethod
    def weighted_average(scores: Sequence[Decimal], weights: Sequence[Decimal]) -> Decimal:
        """Weight-normalized average; plain mean when all weights are zero."""
        total_weight = sum(weights, Decimal("0"))
        if total_weight == 0:
            return sum(scores, Decimal("0")) / len(scores)

        weighted_sum = sum((s * w for s, w in zip(scores, weights)), Decimal("0"))
        return weighted_sum / total_weight

    @staticmethod
    def calculate_confidence(scores: Sequence[Decimal]) -> Decimal:
        """Confidence from the spread of scores: 1 - stddev/mean, bounded to [0.1, 1]."""
        if len(scores) <= 1:
            return SINGLE_SCORE_CONFIDENCE

        values = [float(score) for score in scores]
        mean_score = statistics.mean(values)
        if mean_score == 0:
            return SINGLE_SCORE_CONFIDENCE

        normalized_std_dev = statistics.pstdev(values) / mean_score
        confidence = Decimal(str(1 - normalized_std_dev))
        bounded = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence))
        return quantize(bounded, THREE_PLACES)
