"""Scoring application services."""

from .cached_scorer import CachedScorerAdapter
from .factory import create_job_processor, create_scorer_adapter, create_scoring_pipeline
from .job_processor import ProcessingResult, ScoringJob, ScoringJobProcessor
from .parallel_scorer import FanOutResult, ParallelScorer, ScorerFailure
from .rubric_provider import CachedCorrectorProvider, CachedRubricProvider, CachedSettingsProvider
from .scoring_pipeline import ScoringOutcome, ScoringPipeline

__all__ = [
    "CachedCorrectorProvider",
    "CachedRubricProvider",
    "CachedScorerAdapter",
    "CachedSettingsProvider",
    "FanOutResult",
    "ParallelScorer",
    "ProcessingResult",
    "ScorerFailure",
    "ScoringJob",
    "ScoringJobProcessor",
    "ScoringOutcome",
    "ScoringPipeline",
    "create_job_processor",
    "create_scorer_adapter",
    "create_scoring_pipeline",
]
