"""Scorer adapter for OpenAI-compatible chat completion backends."""

import json
import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ...domain.scoring.entities.attempt import Attempt
from ...domain.scoring.entities.judgment import Judgment
from ...domain.scoring.exceptions import (
    BackendRejected,
    BackendUnreachable,
    InvalidResponseFormat,
)
from ...domain.scoring.interfaces.scorer_adapter import ScorerAdapter
from ...domain.scoring.services.cost_estimator import CostEstimator
from ...domain.scoring.services.prompt_builder import PromptBuilder
from ...domain.scoring.value_objects.committee import ScorerConfig
from ..performance.config import ScorerClientConfig, ScorerEndpointConfig
from .response_models import ScorerResponse

logger = logging.getLogger(__name__)


class ChatCompletionsScorerAdapter(ScorerAdapter):
    """Calls `POST {base_url}/chat/completions` and parses a JSON judgment."""

    def __init__(
        self,
        endpoints: Dict[str, ScorerEndpointConfig],
        client_config: Optional[ScorerClientConfig] = None,
        cost_estimator: Optional[CostEstimator] = None,
        client: Optional[httpx.AsyncClient] = None,
        system_prompt: Optional[str] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        self.endpoints = endpoints
        self.client_config = client_config or ScorerClientConfig()
        self.cost_estimator = cost_estimator or CostEstimator()
        self.system_prompt = system_prompt
        self.prompt_builder = prompt_builder or PromptBuilder()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                self.client_config.timeout_seconds,
                connect=self.client_config.connection_timeout_seconds,
            ),
            headers={"User-Agent": self.client_config.user_agent},
        )

    async def score(self, prompt: str, scorer_config: ScorerConfig, attempt: Attempt) -> Judgment:
        """Score an attempt with the configured model."""
        model_name = scorer_config.model_name
        endpoint = self.endpoints.get(scorer_config.provider)
        if endpoint is None or not endpoint.is_configured:
            raise BackendRejected(
                f"No endpoint configured for provider {scorer_config.provider}",
                model_name=model_name,
            )

        start_time = time.perf_counter()
        body = self._build_request(prompt, scorer_config, attempt)
        response = await self._post(endpoint, body, model_name)
        content = self._extract_content(response, model_name)
        parsed = self._parse_content(content, model_name)
        processing_time_ms = int((time.perf_counter() - start_time) * 1000)

        logger.debug(
            f"Scorer {model_name} answered for attempt {attempt.attempt_id} "
            f"in {processing_time_ms}ms"
        )

        return Judgment(
            model_name=model_name,
            provider=scorer_config.provider,
            criteria_scores=tuple(criterion.to_domain() for criterion in parsed.criteria_scores),
            max_score=Decimal(str(parsed.max_score)),
            overall_feedback=parsed.overall_feedback,
            strengths=tuple(parsed.strengths),
            improvement_areas=tuple(parsed.improvement_areas),
            confidence=Decimal(str(parsed.confidence)),
            processing_time_ms=processing_time_ms,
            cost=self.cost_estimator.estimate(model_name, prompt),
            completed_at=datetime.utcnow(),
        )

    def _build_request(
        self, prompt: str, scorer_config: ScorerConfig, attempt: Attempt
    ) -> Dict[str, Any]:
        system_prompt = self.system_prompt or self.prompt_builder.build_system_prompt(attempt)
        body: Dict[str, Any] = {
            "model": scorer_config.model_name,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": scorer_config.temperature,
            "max_tokens": self.client_config.max_output_tokens,
            "response_format": {"type": "json_object"},
        }
        if scorer_config.seed is not None:
            body["seed"] = scorer_config.seed
        return body

    async def _post(
        self, endpoint: ScorerEndpointConfig, body: Dict[str, Any], model_name: str
    ) -> httpx.Response:
        url = f"{endpoint.base_url.rstrip('/')}/chat/completions"
        headers = {"Content-Type": "application/json"}
        if endpoint.api_key:
            headers["Authorization"] = f"Bearer {endpoint.api_key}"

        try:
            response = await self._client.post(url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise BackendUnreachable(
                f"Request to {endpoint.provider} timed out", model_name=model_name
            ) from e
        except httpx.TransportError as e:
            raise BackendUnreachable(
                f"Network error calling {endpoint.provider}: {str(e)}", model_name=model_name
            ) from e

        if not response.is_success:
            raise BackendRejected(
                f"{endpoint.provider} API error: {response.status_code}",
                model_name=model_name,
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        return response

    @staticmethod
    def _extract_content(response: httpx.Response, model_name: str) -> str:
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InvalidResponseFormat(
                "No content in scorer response", model_name=model_name
            ) from e

        if not isinstance(content, str) or not content.strip():
            raise InvalidResponseFormat("No content in scorer response", model_name=model_name)
        return content

    @staticmethod
    def _parse_content(content: str, model_name: str) -> ScorerResponse:
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise InvalidResponseFormat(
                f"Scorer response is not valid JSON: {e.msg}", model_name=model_name
            ) from e

        try:
            return ScorerResponse.model_validate(document)
        except PydanticValidationError as e:
            raise InvalidResponseFormat(
                f"Scorer response does not match the judgment schema: {e.error_count()} errors",
                model_name=model_name,
                details={"errors": e.errors(include_url=False)},
            ) from e

    async def close(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()
