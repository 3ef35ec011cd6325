"""Tests for the chat completions scorer adapter."""

import json
from decimal import Decimal
from unittest.mock import MagicMock

import httpx
import pytest

from src.domain.scoring.exceptions import (
    BackendRejected,
    BackendUnreachable,
    InvalidResponseFormat,
)
from src.domain.scoring.services.cost_estimator import CostEstimator
from src.domain.scoring.services.prompt_builder import PromptBuilder
from src.domain.scoring.value_objects.committee import ScorerConfig
from src.infrastructure.performance.config import ScorerEndpointConfig
from src.infrastructure.scorers.chat_completions_adapter import ChatCompletionsScorerAdapter
from tests.factories import AttemptFactory, chat_completion_body

VALID_JUDGMENT = {
    "total_score": 7,
    "max_score": 10,
    "criteria_scores": [
        {
            "criterion_id": "content",
            "score": 4,
            "max_score": 5,
            "band": 4,
            "evidence": ["clear position"],
            "confidence": 0.9,
        },
        {"criterion_id": "language", "score": 3.5, "max_score": 5, "confidence": 0.7},
    ],
    "overall_feedback": "A solid answer.",
    "strengths": ["structure"],
    "improvement_areas": ["range of vocabulary"],
    "confidence": 0.85,
}


def make_adapter(handler, endpoints=None):
    endpoints = endpoints or {
        "openai": ScorerEndpointConfig(
            provider="openai", base_url="https://scorer.test/v1", api_key="sk-test"
        )
    }
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatCompletionsScorerAdapter(endpoints, cost_estimator=CostEstimator(), client=client)


class TestChatCompletionsScorerAdapter:
    """Test cases for ChatCompletionsScorerAdapter."""

    def setup_method(self):
        """Set up test fixtures."""
        self.attempt = AttemptFactory()
        self.scorer = ScorerConfig(model_name="gpt-4o-mini", provider="openai", seed=42)
        self.requests = []

    def _respond_with(self, status_code=200, body=None):
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(status_code, json=body)

        return handler

    @pytest.mark.asyncio
    async def test_successful_score(self):
        adapter = make_adapter(
            self._respond_with(body=chat_completion_body(json.dumps(VALID_JUDGMENT)))
        )

        judgment = await adapter.score("Score this", self.scorer, self.attempt)

        assert judgment.model_name == "gpt-4o-mini"
        assert judgment.provider == "openai"
        assert judgment.total_score == Decimal("7.5")
        assert judgment.get_criterion("content").evidence == ("clear position",)
        assert judgment.get_criterion("language").band is None
        assert judgment.strengths == ("structure",)
        assert judgment.processing_time_ms >= 0
        assert judgment.cost == CostEstimator().estimate("gpt-4o-mini", "Score this")

    @pytest.mark.asyncio
    async def test_request_shape(self):
        adapter = make_adapter(
            self._respond_with(body=chat_completion_body(json.dumps(VALID_JUDGMENT)))
        )

        await adapter.score("Score this", self.scorer, self.attempt)

        request = self.requests[0]
        body = json.loads(request.content)
        assert str(request.url) == "https://scorer.test/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert body["model"] == "gpt-4o-mini"
        assert body["seed"] == 42
        assert body["temperature"] == 0.0
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][0]["role"] == "system"
        assert "cambridge B2 writing" in body["messages"][0]["content"]
        assert body["messages"][1] == {"role": "user", "content": "Score this"}

    @pytest.mark.asyncio
    async def test_system_prompt_comes_from_prompt_builder(self):
        builder = MagicMock(spec=PromptBuilder)
        builder.build_system_prompt.return_value = "Assess IELTS C1 speaking."
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(
                self._respond_with(body=chat_completion_body(json.dumps(VALID_JUDGMENT)))
            )
        )
        adapter = ChatCompletionsScorerAdapter(
            {
                "openai": ScorerEndpointConfig(
                    provider="openai", base_url="https://scorer.test/v1", api_key="sk-test"
                )
            },
            client=client,
            prompt_builder=builder,
        )

        await adapter.score("Score this", self.scorer, self.attempt)

        body = json.loads(self.requests[0].content)
        assert body["messages"][0]["content"] == "Assess IELTS C1 speaking."
        builder.build_system_prompt.assert_called_once_with(self.attempt)

    @pytest.mark.asyncio
    async def test_seed_omitted_when_unset(self):
        adapter = make_adapter(
            self._respond_with(body=chat_completion_body(json.dumps(VALID_JUDGMENT)))
        )

        await adapter.score(
            "Score this", ScorerConfig(model_name="gpt-4o", provider="openai"), self.attempt
        )

        assert "seed" not in json.loads(self.requests[0].content)

    @pytest.mark.asyncio
    async def test_non_success_status(self):
        adapter = make_adapter(self._respond_with(429, {"error": "rate limited"}))

        with pytest.raises(BackendRejected) as exc_info:
            await adapter.score("Score this", self.scorer, self.attempt)

        assert exc_info.value.status_code == 429
        assert exc_info.value.model_name == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = make_adapter(handler)

        with pytest.raises(BackendUnreachable):
            await adapter.score("Score this", self.scorer, self.attempt)

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        adapter = make_adapter(handler)

        with pytest.raises(BackendUnreachable) as exc_info:
            await adapter.score("Score this", self.scorer, self.attempt)

        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_content(self):
        adapter = make_adapter(self._respond_with(body={"choices": []}))

        with pytest.raises(InvalidResponseFormat):
            await adapter.score("Score this", self.scorer, self.attempt)

    @pytest.mark.asyncio
    async def test_content_is_not_json(self):
        adapter = make_adapter(self._respond_with(body=chat_completion_body("Score: 7/10")))

        with pytest.raises(InvalidResponseFormat):
            await adapter.score("Score this", self.scorer, self.attempt)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "document",
        [
            {"criteria_scores": []},
            {"criteria_scores": [{"criterion_id": "content", "score": -1}]},
            {"criteria_scores": [{"criterion_id": "content", "score": 3, "confidence": 1.5}]},
            {"criteria_scores": [{"score": 3}]},
            {"overall_feedback": "no scores at all"},
        ],
    )
    async def test_schema_violations(self, document):
        adapter = make_adapter(self._respond_with(body=chat_completion_body(json.dumps(document))))

        with pytest.raises(InvalidResponseFormat):
            await adapter.score("Score this", self.scorer, self.attempt)

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self):
        adapter = make_adapter(self._respond_with(body={}))

        with pytest.raises(BackendRejected):
            await adapter.score(
                "Score this",
                ScorerConfig(model_name="claude-3-haiku", provider="anthropic"),
                self.attempt,
            )

        assert self.requests == []

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(self._respond_with(body={})))
        adapter = ChatCompletionsScorerAdapter({}, client=client)

        await adapter.close()

        assert not client.is_closed
        await client.aclose()
