"""Tests for the scoring job processor."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.services.scoring.job_processor import (
    DEFAULT_COMMITTEE,
    ScoringJob,
    ScoringJobProcessor,
    is_retryable,
    retry_delay_for,
)
from src.application.services.scoring.parallel_scorer import ScorerFailure
from src.application.services.scoring.scoring_pipeline import ScoringOutcome
from src.domain.scoring.entities.corrector import ScoringCorrector
from src.domain.scoring.exceptions import (
    AllScorersFailed,
    BackendRejected,
    BackendUnreachable,
    InvalidPayload,
    ScorerError,
)
from src.domain.scoring.repositories.attempt_repository import AttemptStatus
from src.domain.scoring.value_objects.scoring_settings import ScoringSettings
from tests.factories import AttemptFactory, RubricFactory, make_committee


def all_failed(*errors):
    return AllScorersFailed(
        [
            ScorerFailure(index=index, model_name=f"model-{index}", error=error)
            for index, error in enumerate(errors)
        ]
    )


class TestScoringJobProcessor:
    """Test cases for ScoringJobProcessor."""

    @pytest.fixture
    def attempt(self):
        return AttemptFactory(attempt_id="attempt-1")

    @pytest.fixture
    def outcome(self):
        outcome = MagicMock(spec=ScoringOutcome)
        outcome.to_dict.return_value = {"score": {"total_score": 8.0}, "qc": {}}
        return outcome

    @pytest.fixture
    def mock_attempts(self, attempt):
        attempts = AsyncMock()
        attempts.get_attempt.return_value = attempt
        attempts.get_status.return_value = AttemptStatus.QUEUED
        attempts.get_committee.return_value = None
        return attempts

    @pytest.fixture
    def mock_rubrics(self):
        rubrics = AsyncMock()
        rubrics.get_rubric.return_value = RubricFactory()
        return rubrics

    @pytest.fixture
    def mock_settings(self):
        settings = AsyncMock()
        settings.get_settings.return_value = None
        return settings

    @pytest.fixture
    def mock_pipeline(self, outcome):
        pipeline = AsyncMock()
        pipeline.score.return_value = outcome
        return pipeline

    @pytest.fixture
    def mock_correctors(self):
        correctors = AsyncMock()
        correctors.get_corrector.return_value = None
        return correctors

    @pytest.fixture
    def mock_notifier(self):
        notifier = AsyncMock()
        notifier.notify_scored.return_value = True
        return notifier

    @pytest.fixture
    def processor(
        self,
        mock_pipeline,
        mock_attempts,
        mock_rubrics,
        mock_settings,
        mock_correctors,
        mock_notifier,
    ):
        return ScoringJobProcessor(
            mock_pipeline,
            mock_attempts,
            mock_rubrics,
            mock_settings,
            correctors=mock_correctors,
            notifier=mock_notifier,
        )

    @pytest.mark.asyncio
    async def test_successful_job(self, processor, mock_attempts, mock_pipeline, outcome, attempt):
        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert result.success
        assert result.outcome is outcome
        assert mock_attempts.update_status.await_args_list[0].args == (
            "attempt-1",
            AttemptStatus.PROCESSING,
        )
        mock_attempts.update_status.assert_awaited_with(
            "attempt-1", AttemptStatus.SCORED, outcome.to_dict.return_value
        )
        mock_pipeline.score.assert_awaited_once()
        assert mock_pipeline.score.await_args.args[0] is attempt

    @pytest.mark.asyncio
    async def test_skips_attempt_not_queued(self, processor, mock_attempts, mock_pipeline):
        mock_attempts.get_status.return_value = AttemptStatus.SCORED

        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert result.skipped
        mock_attempts.update_status.assert_not_awaited()
        mock_pipeline.score.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_attempt(self, processor, mock_attempts):
        mock_attempts.get_attempt.return_value = None

        result = await processor.process(ScoringJob(attempt_id="missing"))

        assert not result.success
        assert result.error == "Attempt not found"

    @pytest.mark.asyncio
    async def test_missing_rubric_fails_job(self, processor, mock_attempts, mock_rubrics):
        mock_rubrics.get_rubric.return_value = None

        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert not result.success
        assert "Rubric not found" in result.error
        assert not result.retryable
        assert mock_attempts.update_status.await_args.args[1] == AttemptStatus.FAILED

    @pytest.mark.asyncio
    async def test_invalid_payload_is_not_retried(self, processor, mock_pipeline, mock_attempts):
        mock_pipeline.score.side_effect = InvalidPayload("Writing text too short", task="writing")

        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert not result.retryable
        assert result.retry_job is None
        mock_attempts.update_status.assert_awaited_with(
            "attempt-1", AttemptStatus.FAILED, {"error": "Writing text too short", "retry_count": 0}
        )

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, processor, mock_pipeline, mock_attempts):
        mock_pipeline.score.side_effect = all_failed(BackendUnreachable("Request timed out"))

        result = await processor.process(ScoringJob(attempt_id="attempt-1", retry_count=1))

        assert result.retryable
        assert result.retry_job == ScoringJob(attempt_id="attempt-1", retry_count=2)
        assert result.retry_delay_seconds == 15
        assert mock_attempts.update_status.await_args.args[1] == AttemptStatus.QUEUED

    @pytest.mark.asyncio
    async def test_retries_are_limited(self, processor, mock_pipeline):
        mock_pipeline.score.side_effect = all_failed(BackendUnreachable("Request timed out"))

        result = await processor.process(ScoringJob(attempt_id="attempt-1", retry_count=3))

        assert not result.retryable
        assert result.retry_job is None

    @pytest.mark.asyncio
    async def test_failed_scored_write_is_recorded(self, processor, mock_attempts):
        async def update_status(attempt_id, status, result=None):
            if status == AttemptStatus.SCORED:
                raise ConnectionError("database connection lost")

        mock_attempts.update_status.side_effect = update_status

        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert not result.success
        assert result.error == "database connection lost"
        assert not result.retryable
        assert mock_attempts.update_status.await_args.args[1] == AttemptStatus.FAILED

    @pytest.mark.asyncio
    async def test_failed_status_write_does_not_escape(
        self, processor, mock_attempts, mock_pipeline
    ):
        mock_pipeline.score.side_effect = InvalidPayload("Writing text too short", task="writing")

        async def update_status(attempt_id, status, result=None):
            if status == AttemptStatus.FAILED:
                raise ConnectionError("database connection lost")

        mock_attempts.update_status.side_effect = update_status

        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert not result.success
        assert result.error == "Writing text too short"

    @pytest.mark.asyncio
    async def test_batch_survives_storage_outage(self, processor, mock_attempts):
        mock_attempts.update_status.side_effect = ConnectionError("database connection lost")
        jobs = [ScoringJob(attempt_id=f"attempt-{i}") for i in range(3)]

        results = await processor.process_batch(jobs, concurrency=2)

        assert len(results) == 3
        assert not any(r.success for r in results)

    @pytest.mark.asyncio
    async def test_tenant_settings_control_timeout_and_retries(
        self, processor, mock_pipeline, mock_settings
    ):
        mock_settings.get_settings.return_value = ScoringSettings(
            tenant_id="tenant-1", timeout_ms=5000, retries=0
        )
        mock_pipeline.score.side_effect = all_failed(BackendUnreachable("Request timed out"))

        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert mock_pipeline.score.await_args.kwargs["timeout_seconds"] == 5.0
        assert not result.retryable
        assert result.retry_job is None

    @pytest.mark.asyncio
    async def test_webhook_sent_after_scoring(self, processor, mock_notifier, outcome, attempt):
        outcome.score = MagicMock()

        result = await processor.process(
            ScoringJob(attempt_id="attempt-1", webhook_url="https://hooks.example.com/scored")
        )

        assert result.success
        assert result.metadata["webhook_sent"] is True
        mock_notifier.notify_scored.assert_awaited_once_with(
            "https://hooks.example.com/scored", attempt, outcome.score
        )

    @pytest.mark.asyncio
    async def test_webhook_failure_does_not_fail_job(self, processor, mock_notifier, outcome):
        outcome.score = MagicMock()
        mock_notifier.notify_scored.return_value = False

        result = await processor.process(
            ScoringJob(attempt_id="attempt-1", webhook_url="https://hooks.example.com/scored")
        )

        assert result.success
        assert result.metadata["webhook_sent"] is False

    @pytest.mark.asyncio
    async def test_no_webhook_without_url(self, processor, mock_notifier):
        result = await processor.process(ScoringJob(attempt_id="attempt-1"))

        assert result.metadata["webhook_sent"] is False
        mock_notifier.notify_scored.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_webhook_for_failed_job(self, processor, mock_notifier, mock_pipeline):
        mock_pipeline.score.side_effect = InvalidPayload("Writing text too short", task="writing")

        await processor.process(
            ScoringJob(attempt_id="attempt-1", webhook_url="https://hooks.example.com/scored")
        )

        mock_notifier.notify_scored.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_committee_resolution_order(
        self, processor, mock_attempts, mock_correctors, attempt
    ):
        corrector_committee = make_committee("corrector-model")
        attempt_committee = make_committee("attempt-model")
        tenant_committee = make_committee("tenant-model")
        tenant_settings = ScoringSettings(tenant_id="tenant-1", default_committee=tenant_committee)

        mock_correctors.get_corrector.return_value = ScoringCorrector(
            name="cambridge-b2-writing",
            provider="cambridge",
            level="B2",
            task="writing",
            committee=corrector_committee,
        )
        mock_attempts.get_committee.return_value = attempt_committee
        assert await processor.resolve_committee(attempt, tenant_settings) is corrector_committee
        mock_correctors.get_corrector.assert_awaited_with("cambridge", "B2", "writing")

        mock_correctors.get_corrector.return_value = None
        assert await processor.resolve_committee(attempt, tenant_settings) is attempt_committee

        mock_attempts.get_committee.return_value = None
        assert await processor.resolve_committee(attempt, tenant_settings) is tenant_committee

        committee = await processor.resolve_committee(attempt, None)
        assert committee is DEFAULT_COMMITTEE
        assert committee.scorers[0].model_name == "gpt-4o-mini"
        assert committee.scorers[0].seed == 42

    @pytest.mark.asyncio
    async def test_tenant_default_model_becomes_committee(self, processor, mock_attempts, attempt):
        mock_attempts.get_committee.return_value = None
        settings = ScoringSettings(tenant_id="tenant-1", default_model_name="claude-3-5-sonnet")

        committee = await processor.resolve_committee(attempt, settings)

        assert committee.size == 1
        assert committee.scorers[0].model_name == "claude-3-5-sonnet"
        assert committee.scorers[0].provider == "anthropic"

    @pytest.mark.asyncio
    async def test_close_stops_background_work(
        self, processor, mock_notifier, mock_pipeline, mock_rubrics
    ):
        await processor.close()

        mock_rubrics.cache.stop_cleanup_task.assert_awaited_once()
        mock_pipeline.recorder.stop_prune_task.assert_awaited_once()
        mock_notifier.close.assert_awaited_once()
        mock_pipeline.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_process_batch_preserves_order(self, processor, mock_attempts):
        mock_attempts.get_status.side_effect = [
            AttemptStatus.QUEUED,
            AttemptStatus.SCORED,
            AttemptStatus.QUEUED,
            AttemptStatus.QUEUED,
        ]
        jobs = [ScoringJob(attempt_id=f"attempt-{i}") for i in range(4)]

        results = await processor.process_batch(jobs, concurrency=3)

        assert [r.attempt_id for r in results] == [job.attempt_id for job in jobs]
        assert [r.skipped for r in results] == [False, True, False, False]

    @pytest.mark.asyncio
    async def test_process_batch_rejects_zero_concurrency(self, processor):
        with pytest.raises(ValueError):
            await processor.process_batch([], concurrency=0)


class TestRetryPolicy:
    """Test cases for retry decisions."""

    def test_unreachable_backends_are_retryable(self):
        assert is_retryable(all_failed(BackendUnreachable("connection refused")))

    def test_rate_limits_and_server_errors_are_retryable(self):
        assert is_retryable(all_failed(BackendRejected("API error: 429", status_code=429)))
        assert is_retryable(all_failed(BackendRejected("API error: 503", status_code=503)))

    def test_summary_markers_are_retryable(self):
        assert is_retryable(all_failed(ScorerError("Service unavailable")))
        assert is_retryable(all_failed(ScorerError("rate limit exceeded")))

    def test_permanent_failures(self):
        assert not is_retryable(all_failed(BackendRejected("API error: 401", status_code=401)))
        assert not is_retryable(InvalidPayload("bad payload"))
        assert not is_retryable(ValueError("timeout"))

    def test_retry_delays(self):
        assert [retry_delay_for(n) for n in range(4)] == [5, 15, 45, 45]
