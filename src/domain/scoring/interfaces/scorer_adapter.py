"""Scorer adapter interface for committee backends."""

from abc import ABC, abstractmethod

from ..entities.attempt import Attempt
from ..entities.judgment import Judgment
from ..value_objects.committee import ScorerConfig


class ScorerAdapter(ABC):
    """Abstract interface for invoking one scoring backend."""

    @abstractmethod
    async def score(self, prompt: str, scorer_config: ScorerConfig, attempt: Attempt) -> Judgment:
        """
        Score an attempt with one backend model.

        Args:
            prompt: The rendered task prompt
            scorer_config: Committee entry describing the model to call
            attempt: The attempt being scored, read-only

        Returns:
            Judgment: Structured judgment including its wall-clock duration

        Raises:
            BackendUnreachable: If the backend cannot be reached or times out
            BackendRejected: If the backend answers with a non-success status
            InvalidResponseFormat: If the answer does not match the judgment schema
        """
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None

    def get_adapter_name(self) -> str:
        return self.__class__.__name__.replace("Adapter", "")
