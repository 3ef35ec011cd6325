"""Cached lookups of rubrics, correctors and tenant scoring settings."""

import logging
from typing import Optional

from ....domain.scoring.entities.corrector import ScoringCorrector
from ....domain.scoring.entities.rubric import Rubric
from ....domain.scoring.repositories.attempt_repository import SettingsRepository
from ....domain.scoring.repositories.rubric_repository import (
    CorrectorRepository,
    RubricRepository,
)
from ....domain.scoring.value_objects.scoring_settings import ScoringSettings
from ....infrastructure.performance.cache_manager import (
    ResultCache,
    corrector_cache_key,
    rubric_cache_key,
    tenant_settings_cache_key,
)

logger = logging.getLogger(__name__)


class CachedRubricProvider:
    """Rubric lookup with a read-through cache."""

    def __init__(self, repository: RubricRepository, cache: ResultCache):
        self.repository = repository
        self.cache = cache

    async def get_rubric(self, provider: str, level: str, task: str) -> Optional[Rubric]:
        cache_key = rubric_cache_key(provider, level, task)
        rubric = self.cache.get(cache_key)
        if rubric is not None:
            return rubric

        rubric = await self.repository.get_rubric(provider, level, task)
        if rubric is None:
            logger.warning(f"No rubric found for {provider}/{level}/{task}")
            return None

        self.cache.set(cache_key, rubric, ttl=self.cache.config.rubric_ttl)
        return rubric

    def invalidate(self, provider: str, level: str, task: str) -> bool:
        return self.cache.delete(rubric_cache_key(provider, level, task))


class CachedCorrectorProvider:
    """Active corrector lookup, cached for as long as rubrics."""

    def __init__(self, repository: CorrectorRepository, cache: ResultCache):
        self.repository = repository
        self.cache = cache

    async def get_corrector(
        self, provider: str, level: str, task: str
    ) -> Optional[ScoringCorrector]:
        cache_key = corrector_cache_key(provider, level, task)
        corrector = self.cache.get(cache_key)
        if corrector is not None:
            return corrector

        corrector = await self.repository.get_active_corrector(provider, level, task)
        if corrector is None or not corrector.active:
            return None

        self.cache.set(cache_key, corrector, ttl=self.cache.config.rubric_ttl)
        return corrector

    def invalidate(self, provider: str, level: str, task: str) -> bool:
        return self.cache.delete(corrector_cache_key(provider, level, task))


class CachedSettingsProvider:
    """Tenant settings lookup with a read-through cache."""

    def __init__(self, repository: SettingsRepository, cache: ResultCache):
        self.repository = repository
        self.cache = cache

    async def get_settings(self, tenant_id: Optional[str]) -> Optional[ScoringSettings]:
        if not tenant_id:
            return None

        cache_key = tenant_settings_cache_key(tenant_id)
        settings = self.cache.get(cache_key)
        if settings is not None:
            return settings

        settings = await self.repository.get_settings(tenant_id)
        if settings is not None:
            self.cache.set(cache_key, settings, ttl=self.cache.config.tenant_settings_ttl)
        return settings

    def invalidate(self, tenant_id: str) -> bool:
        return self.cache.delete(tenant_settings_cache_key(tenant_id))
