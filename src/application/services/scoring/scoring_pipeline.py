"""Scoring pipeline orchestrating validation, committee fan-out and consensus."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ....domain.scoring.entities.attempt import Attempt
from ....domain.scoring.entities.rubric import Rubric
from ....domain.scoring.exceptions import AllScorersFailed
from ....domain.scoring.interfaces.scorer_adapter import ScorerAdapter
from ....domain.scoring.services.consensus_aggregator import ConsensusAggregator
from ....domain.scoring.services.payload_validator import PayloadValidator
from ....domain.scoring.services.prompt_builder import PromptBuilder
from ....domain.scoring.services.quality_controller import QualityController
from ....domain.scoring.value_objects.committee import CommitteeConfig
from ....domain.scoring.value_objects.quality_report import QualityControlReport
from ....domain.scoring.value_objects.score import Score
from ....infrastructure.performance.performance_recorder import PerformanceRecorder
from .parallel_scorer import DEFAULT_SCORER_TIMEOUT_SECONDS, ParallelScorer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringOutcome:
    """Score and quality-control report produced together by one scoring call."""

    score: Score
    qc: QualityControlReport

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score.to_dict(), "qc": self.qc.to_dict()}


class ScoringPipeline:
    """Scores one attempt with a committee of backend models."""

    def __init__(
        self,
        adapter: ScorerAdapter,
        recorder: Optional[PerformanceRecorder] = None,
        aggregator: Optional[ConsensusAggregator] = None,
        quality_controller: Optional[QualityController] = None,
        validator: Optional[PayloadValidator] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        timeout_seconds: Optional[float] = DEFAULT_SCORER_TIMEOUT_SECONDS,
    ):
        self.adapter = adapter
        self.recorder = recorder or PerformanceRecorder()
        self.aggregator = aggregator or ConsensusAggregator()
        self.quality_controller = quality_controller or QualityController()
        self.validator = validator or PayloadValidator()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parallel_scorer = ParallelScorer(adapter, timeout_seconds=timeout_seconds)

    async def score(
        self,
        attempt: Attempt,
        rubric: Rubric,
        committee: CommitteeConfig,
        timeout_seconds: Optional[float] = None,
    ) -> ScoringOutcome:
        """
        Score an attempt.

        Args:
            attempt: The attempt to score
            rubric: Rubric for the attempt's (provider, level, task)
            committee: Scorers to invoke
            timeout_seconds: Per-scorer timeout overriding the pipeline default

        Returns:
            ScoringOutcome: Consensus score with its quality-control report

        Raises:
            InvalidPayload: If the payload fails validation, before any backend call
            UnsupportedTask: If no template exists or the rubric is for another task
            AllScorersFailed: If no committee member produced a judgment
        """
        operation = f"score-attempt-{attempt.provider}-{attempt.level}-{attempt.task.value}"
        metadata = {"attempt_id": attempt.attempt_id, "committee_size": committee.size}

        async with self.recorder.measure(operation, metadata):
            return await self._score(attempt, rubric, committee, timeout_seconds)

    async def _score(
        self,
        attempt: Attempt,
        rubric: Rubric,
        committee: CommitteeConfig,
        timeout_seconds: Optional[float] = None,
    ) -> ScoringOutcome:
        start_time = time.perf_counter()

        self.validator.validate(attempt)
        prompt = self.prompt_builder.build_prompt(attempt, rubric)

        logger.info(
            f"Scoring attempt {attempt.attempt_id} ({attempt.task.value}) "
            f"with {committee.size} scorers"
        )

        fan_out = await self.parallel_scorer.score_all(
            prompt, committee, attempt, timeout_seconds
        )
        if fan_out.all_failed:
            error = AllScorersFailed(fan_out.failures)
            logger.error(f"Scoring attempt {attempt.attempt_id} failed: {error.message}")
            raise error

        score = self.aggregator.aggregate(
            fan_out.successes, committee, rubric, attempt.attempt_id
        )
        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        qc = self.quality_controller.build_report(
            fan_out.successes, attempt, committee, elapsed_ms, rubric
        )

        logger.info(
            f"Scored attempt {attempt.attempt_id}: {score.total_score}/{score.max_score} "
            f"({len(fan_out.successes)}/{committee.size} scorers, {elapsed_ms}ms)"
        )

        return ScoringOutcome(score=score, qc=qc)

    async def close(self) -> None:
        await self.adapter.close()
