"""Tests for the committee fan-out."""

import asyncio

import pytest

from src.application.services.scoring.parallel_scorer import ParallelScorer, ScorerFailure
from src.domain.scoring.exceptions import BackendRejected, BackendUnreachable, ScorerError
from src.domain.scoring.interfaces.scorer_adapter import ScorerAdapter
from tests.factories import AttemptFactory, make_committee, make_judgment


class StubScorerAdapter(ScorerAdapter):
    """Returns or raises a configured outcome per model."""

    def __init__(self, outcomes, delays=None):
        self.outcomes = outcomes
        self.delays = delays or {}
        self.calls = []

    async def score(self, prompt, scorer_config, attempt):
        self.calls.append(scorer_config.model_name)
        await asyncio.sleep(self.delays.get(scorer_config.model_name, 0))
        outcome = self.outcomes[scorer_config.model_name]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestParallelScorer:
    """Test cases for ParallelScorer."""

    def setup_method(self):
        """Set up test fixtures."""
        self.attempt = AttemptFactory()
        self.committee = make_committee("model-a", "model-b", "model-c")

    @pytest.mark.asyncio
    async def test_all_succeed(self):
        adapter = StubScorerAdapter(
            {name: make_judgment(name, {"content": 3}) for name in ("model-a", "model-b", "model-c")}
        )

        result = await ParallelScorer(adapter).score_all("prompt", self.committee, self.attempt)

        assert len(result.successes) == 3
        assert result.failures == []
        assert not result.all_failed

    @pytest.mark.asyncio
    async def test_failures_are_recorded_with_index(self):
        adapter = StubScorerAdapter(
            {
                "model-a": make_judgment("model-a", {"content": 3}),
                "model-b": BackendRejected("server error", model_name="model-b", status_code=500),
                "model-c": ValueError("unexpected"),
            }
        )

        result = await ParallelScorer(adapter).score_all("prompt", self.committee, self.attempt)

        assert [j.model_name for j in result.successes] == ["model-a"]
        assert [(f.index, f.model_name) for f in result.failures] == [(1, "model-b"), (2, "model-c")]
        assert isinstance(result.failures[1].error, ScorerError)
        assert result.failures[0].summary() == "model-b: server error"

    @pytest.mark.asyncio
    async def test_timeout_becomes_backend_unreachable(self):
        adapter = StubScorerAdapter(
            {
                "model-a": make_judgment("model-a", {"content": 3}),
                "model-b": make_judgment("model-b", {"content": 3}),
                "model-c": make_judgment("model-c", {"content": 3}),
            },
            delays={"model-c": 1.0},
        )

        result = await ParallelScorer(adapter, timeout_seconds=0.05).score_all(
            "prompt", self.committee, self.attempt
        )

        assert len(result.successes) == 2
        assert isinstance(result.failures[0].error, BackendUnreachable)
        assert "timed out" in result.failures[0].summary()

    @pytest.mark.asyncio
    async def test_per_call_timeout_overrides_default(self):
        adapter = StubScorerAdapter(
            {
                "model-a": make_judgment("model-a", {"content": 3}),
                "model-b": make_judgment("model-b", {"content": 3}),
                "model-c": make_judgment("model-c", {"content": 3}),
            },
            delays={"model-c": 1.0},
        )

        result = await ParallelScorer(adapter, timeout_seconds=30).score_all(
            "prompt", self.committee, self.attempt, timeout_seconds=0.05
        )

        assert len(result.successes) == 2
        assert "after 0.05s" in result.failures[0].summary()

    @pytest.mark.asyncio
    async def test_calls_run_concurrently(self):
        adapter = StubScorerAdapter(
            {name: make_judgment(name, {"content": 3}) for name in ("model-a", "model-b", "model-c")},
            delays={"model-a": 0.1, "model-b": 0.1, "model-c": 0.1},
        )

        loop = asyncio.get_running_loop()
        start = loop.time()
        await ParallelScorer(adapter).score_all("prompt", self.committee, self.attempt)

        assert loop.time() - start < 0.25
        assert sorted(adapter.calls) == ["model-a", "model-b", "model-c"]

    @pytest.mark.asyncio
    async def test_all_failed(self):
        adapter = StubScorerAdapter(
            {name: BackendUnreachable("down", model_name=name) for name in ("model-a", "model-b", "model-c")}
        )

        result = await ParallelScorer(adapter).score_all("prompt", self.committee, self.attempt)

        assert result.all_failed
        assert len(result.failures) == 3


class TestScorerFailure:
    """Test cases for ScorerFailure."""

    def test_summary_without_message_attribute(self):
        failure = ScorerFailure(index=0, model_name="gpt-4o", error=RuntimeError("boom"))

        assert failure.summary() == "gpt-4o: boom"
