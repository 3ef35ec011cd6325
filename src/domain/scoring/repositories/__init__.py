"""Repository interfaces for scoring domain."""

from .attempt_repository import AttemptRepository, AttemptStatus, SettingsRepository
from .rubric_repository import CorrectorRepository, RubricRepository

__all__ = [
    "AttemptRepository",
    "AttemptStatus",
    "CorrectorRepository",
    "RubricRepository",
    "SettingsRepository",
]
