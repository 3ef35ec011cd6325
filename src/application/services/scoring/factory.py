"""Default wiring of the scoring pipeline."""

import logging
from typing import Optional

import httpx

from ....domain.scoring.interfaces.scorer_adapter import ScorerAdapter
from ....domain.scoring.repositories.attempt_repository import (
    AttemptRepository,
    SettingsRepository,
)
from ....domain.scoring.repositories.rubric_repository import (
    CorrectorRepository,
    RubricRepository,
)
from ....domain.scoring.services.cost_estimator import CostEstimator
from ....domain.scoring.services.quality_controller import QualityController
from ....infrastructure.notifications.webhook_notifier import WebhookNotifier
from ....infrastructure.performance.cache_manager import ResultCache
from ....infrastructure.performance.config import ScoringEngineConfig
from ....infrastructure.performance.performance_recorder import PerformanceRecorder
from ....infrastructure.scorers.chat_completions_adapter import ChatCompletionsScorerAdapter
from .cached_scorer import CachedScorerAdapter
from .job_processor import ScoringJobProcessor
from .rubric_provider import CachedCorrectorProvider, CachedRubricProvider, CachedSettingsProvider
from .scoring_pipeline import ScoringPipeline

logger = logging.getLogger(__name__)


def create_scorer_adapter(
    config: ScoringEngineConfig,
    cache: Optional[ResultCache] = None,
    recorder: Optional[PerformanceRecorder] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ScorerAdapter:
    """Create the backend adapter, wrapped with the model response cache when enabled."""
    adapter: ScorerAdapter = ChatCompletionsScorerAdapter(
        endpoints=config.endpoints,
        client_config=config.client_config,
        cost_estimator=CostEstimator(config.model_prices, config.fallback_model_price),
        client=client,
    )

    if cache is not None and config.cache_config.enable_model_response_cache:
        adapter = CachedScorerAdapter(
            adapter, cache, recorder, ttl=config.cache_config.model_response_ttl
        )

    return adapter


def create_scoring_pipeline(
    config: Optional[ScoringEngineConfig] = None,
    cache: Optional[ResultCache] = None,
    recorder: Optional[PerformanceRecorder] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ScoringPipeline:
    """Build a pipeline with its own cache and recorder unless they are injected."""
    config = config or ScoringEngineConfig.from_env()
    cache = cache or ResultCache(config.cache_config)
    recorder = recorder or PerformanceRecorder(config.monitoring_config)

    adapter = create_scorer_adapter(config, cache, recorder, client)
    logger.debug(f"Created scoring pipeline with adapter {adapter.get_adapter_name()}")

    return ScoringPipeline(
        adapter=adapter,
        recorder=recorder,
        quality_controller=QualityController(config.quality_thresholds),
        timeout_seconds=config.client_config.timeout_seconds,
    )


def create_job_processor(
    attempts: AttemptRepository,
    rubrics: RubricRepository,
    settings: Optional[SettingsRepository] = None,
    correctors: Optional[CorrectorRepository] = None,
    config: Optional[ScoringEngineConfig] = None,
    cache: Optional[ResultCache] = None,
    recorder: Optional[PerformanceRecorder] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ScoringJobProcessor:
    """Build a job processor whose lookups and model responses share one cache."""
    config = config or ScoringEngineConfig.from_env()
    cache = cache or ResultCache(config.cache_config)
    pipeline = create_scoring_pipeline(config, cache, recorder, client)

    return ScoringJobProcessor(
        pipeline,
        attempts,
        CachedRubricProvider(rubrics, cache),
        settings=CachedSettingsProvider(settings, cache) if settings is not None else None,
        correctors=CachedCorrectorProvider(correctors, cache) if correctors is not None else None,
        notifier=WebhookNotifier(client),
    )
