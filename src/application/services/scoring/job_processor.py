"""Queue worker that scores stored attempts and records the outcome."""

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from ....domain.scoring.entities.attempt import Attempt
from ....domain.scoring.exceptions import (
    AllScorersFailed,
    BackendRejected,
    BackendUnreachable,
    ScoringDomainError,
)
from ....domain.scoring.repositories.attempt_repository import AttemptRepository, AttemptStatus
from ....domain.scoring.value_objects.committee import CommitteeConfig, ScorerConfig
from ....domain.scoring.value_objects.scoring_settings import ScoringSettings
from ....infrastructure.notifications.webhook_notifier import WebhookNotifier
from .rubric_provider import CachedCorrectorProvider, CachedRubricProvider, CachedSettingsProvider
from .scoring_pipeline import ScoringOutcome, ScoringPipeline

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAYS_SECONDS = (5, 15, 45)
RETRYABLE_MARKERS = ("timeout", "timed out", "network", "rate limit", "unavailable")
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

DEFAULT_COMMITTEE = CommitteeConfig.of(ScorerConfig.for_model("gpt-4o-mini"))


@dataclass(frozen=True)
class ScoringJob:
    """Queued request to score one stored attempt."""

    attempt_id: str
    tenant_id: Optional[str] = None
    retry_count: int = 0
    webhook_url: Optional[str] = None

    def next_retry(self) -> "ScoringJob":
        return replace(self, retry_count=self.retry_count + 1)


@dataclass
class ProcessingResult:
    """Result of processing one scoring job."""

    attempt_id: str
    success: bool
    outcome: Optional[ScoringOutcome] = None
    error: Optional[str] = None
    skipped: bool = False
    retryable: bool = False
    retry_job: Optional[ScoringJob] = None
    retry_delay_seconds: Optional[int] = None
    processing_time_ms: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)


def retry_delay_for(retry_count: int) -> int:
    """Delay before the given retry, capped at the last configured delay."""
    return RETRY_DELAYS_SECONDS[min(retry_count, len(RETRY_DELAYS_SECONDS) - 1)]


def is_retryable(error: Exception) -> bool:
    """Whether a failed scoring call is worth retrying later."""
    if not isinstance(error, AllScorersFailed):
        return False

    for failure in error.failures:
        cause = getattr(failure, "error", None)
        if isinstance(cause, BackendUnreachable):
            return True
        if isinstance(cause, BackendRejected) and cause.status_code in RETRYABLE_STATUS_CODES:
            return True

    summaries = " ".join(error.error_summaries).lower()
    return any(marker in summaries for marker in RETRYABLE_MARKERS)


class ScoringJobProcessor:
    """Loads an attempt, scores it and stores the result or failure."""

    def __init__(
        self,
        pipeline: ScoringPipeline,
        attempts: AttemptRepository,
        rubrics: CachedRubricProvider,
        settings: Optional[CachedSettingsProvider] = None,
        correctors: Optional[CachedCorrectorProvider] = None,
        notifier: Optional[WebhookNotifier] = None,
        default_committee: CommitteeConfig = DEFAULT_COMMITTEE,
        max_retries: int = MAX_RETRIES,
    ):
        self.pipeline = pipeline
        self.attempts = attempts
        self.rubrics = rubrics
        self.settings = settings
        self.correctors = correctors
        self.notifier = notifier or WebhookNotifier()
        self.default_committee = default_committee
        self.max_retries = max_retries

    async def process(self, job: ScoringJob) -> ProcessingResult:
        """Process one job. Errors are recorded on the attempt, not raised."""
        start_time = time.perf_counter()
        max_retries = self.max_retries

        try:
            attempt = await self.attempts.get_attempt(job.attempt_id)
            if attempt is None:
                logger.error(f"Attempt {job.attempt_id} not found")
                return ProcessingResult(
                    attempt_id=job.attempt_id, success=False, error="Attempt not found"
                )

            status = await self.attempts.get_status(job.attempt_id)
            if status != AttemptStatus.QUEUED:
                logger.info(
                    f"Skipping attempt {job.attempt_id} with status "
                    f"{status.value if status else 'unknown'}"
                )
                return ProcessingResult(attempt_id=job.attempt_id, success=True, skipped=True)

            await self.attempts.update_status(job.attempt_id, AttemptStatus.PROCESSING)

            settings = await self.tenant_settings(attempt, job.tenant_id)
            if settings is not None:
                max_retries = settings.retries

            outcome = await self._score(attempt, settings)
            await self.attempts.update_status(
                job.attempt_id, AttemptStatus.SCORED, outcome.to_dict()
            )
        except Exception as e:
            return await self._handle_failure(job, e, start_time, max_retries)

        webhook_sent = False
        if job.webhook_url:
            webhook_sent = await self.notifier.notify_scored(job.webhook_url, attempt, outcome.score)

        processing_time_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(f"Completed scoring job for attempt {job.attempt_id} in {processing_time_ms}ms")

        return ProcessingResult(
            attempt_id=job.attempt_id,
            success=True,
            outcome=outcome,
            processing_time_ms=processing_time_ms,
            metadata={"retry_count": job.retry_count, "webhook_sent": webhook_sent},
        )

    async def process_batch(
        self, jobs: Sequence[ScoringJob], concurrency: int = 3
    ) -> List[ProcessingResult]:
        """Process jobs in chunks of `concurrency`, preserving input order."""
        if concurrency < 1:
            raise ValueError("Concurrency must be at least 1")

        results: List[ProcessingResult] = []
        for offset in range(0, len(jobs), concurrency):
            chunk = jobs[offset : offset + concurrency]
            results.extend(await asyncio.gather(*(self.process(job) for job in chunk)))
        return results

    async def tenant_settings(
        self, attempt: Attempt, tenant_id: Optional[str] = None
    ) -> Optional[ScoringSettings]:
        if self.settings is None:
            return None
        return await self.settings.get_settings(tenant_id or attempt.tenant_id)

    async def resolve_committee(
        self, attempt: Attempt, settings: Optional[ScoringSettings] = None
    ) -> CommitteeConfig:
        """Active corrector, then attempt committee, then tenant defaults, then the built-in one."""
        if self.correctors is not None:
            corrector = await self.correctors.get_corrector(*attempt.rubric_key)
            if corrector is not None:
                logger.debug(f"Using corrector {corrector.name} for attempt {attempt.attempt_id}")
                return corrector.committee

        committee = await self.attempts.get_committee(attempt.attempt_id)
        if committee is not None:
            return committee

        if settings is not None:
            return settings.committee()

        return self.default_committee

    def start_maintenance(self) -> None:
        """Schedule cache sweeps and metric pruning for a long-running worker."""
        self.rubrics.cache.start_cleanup_task()
        self.pipeline.recorder.start_prune_task()

    async def close(self) -> None:
        await self.rubrics.cache.stop_cleanup_task()
        await self.pipeline.recorder.stop_prune_task()
        await self.notifier.close()
        await self.pipeline.close()

    async def _score(
        self, attempt: Attempt, settings: Optional[ScoringSettings]
    ) -> ScoringOutcome:
        provider, level, task = attempt.rubric_key
        rubric = await self.rubrics.get_rubric(provider, level, task)
        if rubric is None:
            raise ScoringDomainError(
                f"Rubric not found for {provider}/{level}/{task}",
                {"provider": provider, "level": level, "task": task},
            )

        committee = await self.resolve_committee(attempt, settings)
        timeout_seconds = settings.timeout_seconds if settings is not None else None
        return await self.pipeline.score(attempt, rubric, committee, timeout_seconds=timeout_seconds)

    async def _handle_failure(
        self, job: ScoringJob, error: Exception, start_time: float, max_retries: int
    ) -> ProcessingResult:
        message = getattr(error, "message", None) or str(error)
        logger.error(f"Scoring job for attempt {job.attempt_id} failed: {message}")

        retryable = is_retryable(error) and job.retry_count < max_retries

        # Retryable attempts return to the queue
        status = AttemptStatus.QUEUED if retryable else AttemptStatus.FAILED
        try:
            await self.attempts.update_status(
                job.attempt_id, status, {"error": message, "retry_count": job.retry_count}
            )
        except Exception as update_error:
            logger.error(
                f"Failed to mark attempt {job.attempt_id} as {status.value}: {update_error}"
            )

        result = ProcessingResult(
            attempt_id=job.attempt_id,
            success=False,
            error=message,
            retryable=retryable,
            processing_time_ms=int((time.perf_counter() - start_time) * 1000),
            metadata={"retry_count": job.retry_count},
        )

        if retryable:
            result.retry_job = job.next_retry()
            result.retry_delay_seconds = retry_delay_for(job.retry_count)
            logger.info(
                f"Attempt {job.attempt_id} will be retried in {result.retry_delay_seconds}s "
                f"(retry {job.retry_count + 1}/{max_retries})"
            )

        return result
