"""Concurrent committee fan-out."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ....domain.scoring.entities.attempt import Attempt
from ....domain.scoring.entities.judgment import Judgment
from ....domain.scoring.exceptions import BackendUnreachable, ScorerError
from ....domain.scoring.interfaces.scorer_adapter import ScorerAdapter
from ....domain.scoring.value_objects.committee import CommitteeConfig, ScorerConfig

logger = logging.getLogger(__name__)

DEFAULT_SCORER_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class ScorerFailure:
    """One committee member that produced no judgment."""

    index: int
    model_name: str
    error: Exception

    def summary(self) -> str:
        message = getattr(self.error, "message", None) or str(self.error)
        return f"{self.model_name}: {message}"


@dataclass
class FanOutResult:
    """Successes and failures of one committee fan-out."""

    successes: List[Judgment] = field(default_factory=list)
    failures: List[ScorerFailure] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return not self.successes


class ParallelScorer:
    """Invokes every committee member concurrently and waits for all of them."""

    def __init__(
        self,
        adapter: ScorerAdapter,
        timeout_seconds: Optional[float] = DEFAULT_SCORER_TIMEOUT_SECONDS,
    ):
        self.adapter = adapter
        self.timeout_seconds = timeout_seconds

    async def score_all(
        self,
        prompt: str,
        committee: CommitteeConfig,
        attempt: Attempt,
        timeout_seconds: Optional[float] = None,
    ) -> FanOutResult:
        """Score with each committee member; per-scorer errors become failure records."""
        timeout = timeout_seconds or self.timeout_seconds
        outcomes = await asyncio.gather(
            *(self._score_one(prompt, scorer, attempt, timeout) for scorer in committee),
            return_exceptions=True,
        )

        result = FanOutResult()
        for index, (scorer, outcome) in enumerate(zip(committee, outcomes)):
            if isinstance(outcome, Exception):
                logger.warning(
                    f"Scorer {scorer.model_name} failed for attempt {attempt.attempt_id}: "
                    f"{str(outcome)}"
                )
                result.failures.append(
                    ScorerFailure(index=index, model_name=scorer.model_name, error=outcome)
                )
            elif isinstance(outcome, BaseException):
                # Cancellation is not absorbed
                raise outcome
            else:
                result.successes.append(outcome)

        logger.debug(
            f"Committee fan-out for attempt {attempt.attempt_id}: "
            f"{len(result.successes)} succeeded, {len(result.failures)} failed"
        )
        return result

    async def _score_one(
        self, prompt: str, scorer: ScorerConfig, attempt: Attempt, timeout: Optional[float]
    ) -> Judgment:
        try:
            return await asyncio.wait_for(self.adapter.score(prompt, scorer, attempt), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise BackendUnreachable(
                f"Scorer timed out after {timeout}s", model_name=scorer.model_name
            ) from e
        except ScorerError:
            raise
        except Exception as e:
            raise ScorerError(
                f"Unexpected scorer error: {str(e)}", model_name=scorer.model_name
            ) from e
