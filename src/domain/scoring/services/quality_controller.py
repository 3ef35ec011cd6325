"""Quality control service for committee scoring."""

import re
import statistics
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from ..entities.attempt import Attempt
from ..entities.judgment import Judgment
from ..entities.rubric import Rubric
from ..value_objects.committee import CommitteeConfig
from ..value_objects.quality_report import (
    ConsensusSummary,
    FeatureExtraction,
    QualityControlReport,
    QualityFlag,
    QualityThresholds,
)
from ..value_objects.score import THREE_PLACES, TWO_PLACES, quantize
from .consensus_aggregator import canonical_order

SENTENCE_TERMINATORS = re.compile(r"[.!?]+")


def format_total(score: float) -> str:
    """Render a total without a trailing fractional zero, e.g. 10.0 as "10"."""
    value = Decimal(str(score))
    if value == value.to_integral_value():
        return str(value.to_integral_value())
    return str(value.normalize())


class QualityController:
    """Service deriving disagreement, cost and timing diagnostics from judgments."""

    def __init__(self, thresholds: Optional[QualityThresholds] = None):
        """Initialize quality controller with configurable thresholds."""
        self.thresholds = thresholds or QualityThresholds()

    def build_report(
        self,
        judgments: Sequence[Judgment],
        attempt: Attempt,
        committee: CommitteeConfig,
        elapsed_ms: int,
        rubric: Optional[Rubric] = None,
    ) -> QualityControlReport:
        """Build the quality-control report for one scoring call."""
        ordered = canonical_order(judgments)
        totals = [float(judgment.total_score) for judgment in ordered]

        disagreement_score = self.calculate_disagreement(totals)

        quality_flags: List[QualityFlag] = []
        if disagreement_score > self.thresholds.high_disagreement:
            quality_flags.append(QualityFlag.HIGH_DISAGREEMENT)
        if len(ordered) < committee.size:
            quality_flags.append(QualityFlag.INCOMPLETE_COMMITTEE)
        if elapsed_ms > self.thresholds.slow_processing_ms:
            quality_flags.append(QualityFlag.SLOW_PROCESSING)

        return QualityControlReport(
            attempt_id=attempt.attempt_id,
            processing_time_ms=int(elapsed_ms),
            model_costs={judgment.model_name: judgment.cost for judgment in ordered},
            disagreement_score=disagreement_score,
            confidence_intervals=self.calculate_confidence_intervals(ordered, rubric),
            feature_extraction=self.extract_features(attempt),
            quality_flags=tuple(quality_flags),
            consensus=ConsensusSummary(
                unanimous=disagreement_score < self.thresholds.unanimity,
                majority_threshold=self.thresholds.majority_threshold,
                outlier_scores=tuple(self.detect_outliers(totals)),
            ),
            metadata={
                "committee_size": committee.size,
                "successful_scorers": len(ordered),
            },
        )

    def calculate_disagreement(self, totals: Sequence[float]) -> Decimal:
        """Coefficient of variation of total scores, to 3 places."""
        if len(totals) <= 1:
            return Decimal("0.000")

        mean_score = statistics.mean(totals)
        if mean_score == 0:
            return Decimal("0.000")

        return quantize(Decimal(str(statistics.pstdev(totals) / mean_score)), THREE_PLACES)

    def detect_outliers(self, totals: Sequence[float]) -> List[str]:
        """Total scores deviating from the mean by more than the sigma threshold."""
        if len(totals) < 2:
            return []

        mean_score = statistics.mean(totals)
        std_dev = statistics.pstdev(totals)
        limit = float(self.thresholds.outlier_sigma) * std_dev

        return [
            format_total(score)
            for score in sorted(totals)
            if std_dev > 0 and abs(score - mean_score) > limit
        ]

    def calculate_confidence_intervals(
        self, judgments: Sequence[Judgment], rubric: Optional[Rubric] = None
    ) -> Dict[str, Tuple[Decimal, Decimal]]:
        """Observed (min, max) per criterion across judgments."""
        if rubric is not None:
            criterion_ids = list(rubric.criterion_ids)
        else:
            criterion_ids = []
            for judgment in judgments:
                for criterion in judgment.criteria_scores:
                    if criterion.criterion_id not in criterion_ids:
                        criterion_ids.append(criterion.criterion_id)

        intervals = {}
        for criterion_id in criterion_ids:
            scores = [judgment.score_for(criterion_id) for judgment in judgments]
            intervals[criterion_id] = (min(scores), max(scores))

        return intervals

    def extract_features(self, attempt: Attempt) -> FeatureExtraction:
        """Extract word count and a readability proxy from textual payloads."""
        text = attempt.text_content()
        if text is None:
            return FeatureExtraction()

        word_count = len(text.split())
        return FeatureExtraction(
            word_count=word_count,
            readability_score=self.calculate_readability(text, word_count),
        )

    @staticmethod
    def calculate_readability(text: str, word_count: Optional[int] = None) -> Decimal:
        """Flesch-like proxy: 100 - 2 * average words per sentence, within [0, 100]."""
        words = word_count if word_count is not None else len(text.split())
        segments = [s for s in SENTENCE_TERMINATORS.split(text) if s.strip()]
        sentence_count = max(1, len(segments))

        score = 100 - 2 * (Decimal(words) / Decimal(sentence_count))
        return quantize(min(Decimal("100"), max(Decimal("0"), score)), TWO_PLACES)
