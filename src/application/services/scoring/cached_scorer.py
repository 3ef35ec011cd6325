"""Model response caching and timing around a scorer adapter."""

import logging
import time
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from ....domain.scoring.entities.attempt import Attempt
from ....domain.scoring.entities.judgment import Judgment
from ....domain.scoring.interfaces.scorer_adapter import ScorerAdapter
from ....domain.scoring.value_objects.committee import ScorerConfig
from ....infrastructure.performance.cache_manager import ResultCache, model_response_cache_key
from ....infrastructure.performance.performance_recorder import PerformanceRecorder

logger = logging.getLogger(__name__)


class CachedScorerAdapter(ScorerAdapter):
    """Wraps an adapter so an identical (model, prompt) pair reaches the backend once per TTL."""

    def __init__(
        self,
        adapter: ScorerAdapter,
        cache: ResultCache,
        recorder: Optional[PerformanceRecorder] = None,
        ttl: Optional[int] = None,
    ):
        self.adapter = adapter
        self.cache = cache
        self.recorder = recorder
        self.ttl = ttl or cache.config.model_response_ttl

    async def score(self, prompt: str, scorer_config: ScorerConfig, attempt: Attempt) -> Judgment:
        start_time = time.perf_counter()
        cache_key = model_response_cache_key(scorer_config.model_name, prompt)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Model response cache hit for {scorer_config.model_name}")
            return replace(
                cached,
                cost=Decimal("0"),
                processing_time_ms=int((time.perf_counter() - start_time) * 1000),
            )

        if self.recorder is not None:
            async with self.recorder.measure(
                f"ai-model-{scorer_config.model_name}",
                {"provider": scorer_config.provider, "attempt_id": attempt.attempt_id},
            ):
                judgment = await self.adapter.score(prompt, scorer_config, attempt)
        else:
            judgment = await self.adapter.score(prompt, scorer_config, attempt)

        self.cache.set(cache_key, judgment, ttl=self.ttl)
        return judgment

    async def close(self) -> None:
        await self.adapter.close()

    def get_adapter_name(self) -> str:
        return f"Cached{self.adapter.get_adapter_name()}"
