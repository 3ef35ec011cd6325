"""Entities for scoring domain."""

from .attempt import Attempt
from .corrector import ScoringCorrector
from .judgment import CriterionJudgment, Judgment
from .rubric import Rubric, RubricBand, RubricCriterion

__all__ = [
    "Attempt",
    "CriterionJudgment",
    "Judgment",
    "Rubric",
    "RubricBand",
    "RubricCriterion",
    "ScoringCorrector",
]
