"""Attempt and settings repository interfaces."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

from ..entities.attempt import Attempt
from ..value_objects.committee import CommitteeConfig
from ..value_objects.scoring_settings import ScoringSettings


class AttemptStatus(Enum):
    """Lifecycle of a stored attempt."""

    QUEUED = "queued"
    PROCESSING = "processing"
    SCORED = "scored"
    FAILED = "failed"


class AttemptRepository(ABC):
    """Persistence boundary for attempts, owned by the surrounding application."""

    @abstractmethod
    async def get_attempt(self, attempt_id: str) -> Optional[Attempt]:
        pass

    @abstractmethod
    async def get_status(self, attempt_id: str) -> Optional[AttemptStatus]:
        pass

    @abstractmethod
    async def get_committee(self, attempt_id: str) -> Optional[CommitteeConfig]:
        """Committee stored with the attempt, if any."""
        pass

    @abstractmethod
    async def update_status(
        self,
        attempt_id: str,
        status: AttemptStatus,
        results: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Update status, storing score and QC documents when provided."""
        pass


class SettingsRepository(ABC):
    """Tenant scoring settings source."""

    @abstractmethod
    async def get_settings(self, tenant_id: str) -> Optional[ScoringSettings]:
        pass
