"""Services for scoring domain."""

from .consensus_aggregator import ConsensusAggregator
from .cost_estimator import CostEstimator
from .payload_validator import PayloadValidator
from .prompt_builder import PromptBuilder
from .quality_controller import QualityController

__all__ = [
    "ConsensusAggregator",
    "CostEstimator",
    "PayloadValidator",
    "PromptBuilder",
    "QualityController",
]
