"""Repository interfaces for scoring collaborators."""

from abc import ABC, abstractmethod
from typing import Optional

from ..entities.corrector import ScoringCorrector
from ..entities.rubric import Rubric


class RubricRepository(ABC):
    """Read-only rubric source owned by the surrounding application."""

    @abstractmethod
    async def get_rubric(self, provider: str, level: str, task: str) -> Optional[Rubric]:
        """Get the active rubric for a (provider, level, task) triple."""
        pass


class CorrectorRepository(ABC):
    """Read-only corrector source owned by the surrounding application."""

    @abstractmethod
    async def get_active_corrector(
        self, provider: str, level: str, task: str
    ) -> Optional[ScoringCorrector]:
        """Get the most recent active corrector for a (provider, level, task) triple."""
        pass
