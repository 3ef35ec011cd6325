"""Rubric entities."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from ..exceptions import ValidationError
from ..value_objects.task_type import TaskType


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class RubricBand:
    """Score band of a criterion."""

    score: Decimal
    descriptor: str = ""

    def __post_init__(self):
        object.__setattr__(self, "score", _to_decimal(self.score))
        if self.score < 0:
            raise ValidationError("Band score cannot be negative")


@dataclass(frozen=True)
class RubricCriterion:
    """Rubric criterion with ordered scoring bands."""

    criterion_id: str
    name: str
    bands: Tuple[RubricBand, ...]
    max_score: Optional[Decimal] = None
    description: str = ""
    weight: Decimal = Decimal("1")

    def __post_init__(self):
        """Validate criterion and derive the maximum from the top band."""
        if not self.criterion_id:
            raise ValidationError("Criterion ID is required", field_name="criterion_id")

        if not isinstance(self.bands, tuple):
            object.__setattr__(self, "bands", tuple(self.bands))

        if not self.bands:
            raise ValidationError(f"Criterion {self.criterion_id} requires at least one band")

        if self.max_score is None:
            object.__setattr__(self, "max_score", self.bands[-1].score)
        else:
            object.__setattr__(self, "max_score", _to_decimal(self.max_score))

        object.__setattr__(self, "weight", _to_decimal(self.weight))

        if self.max_score <= 0:
            raise ValidationError(f"Criterion {self.criterion_id} max score must be positive")

    def band_for(self, score: Decimal) -> Decimal:
        """Get the band reached by a score: the highest band not above it."""
        reached = [band.score for band in self.bands if band.score <= score]
        if not reached:
            return min(band.score for band in self.bands)
        return max(reached)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RubricCriterion":
        return cls(
            criterion_id=data.get("id") or data.get("criterion_id", ""),
            name=data.get("name", ""),
            description=data.get("description", ""),
            bands=tuple(
                RubricBand(score=band["score"], descriptor=band.get("descriptor", ""))
                for band in data.get("bands", [])
            ),
            max_score=data.get("max_score"),
            weight=data.get("weight", 1),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.criterion_id,
            "name": self.name,
            "description": self.description,
            "weight": float(self.weight),
            "max_score": float(self.max_score),
            "bands": [
                {"score": float(band.score), "descriptor": band.descriptor} for band in self.bands
            ],
        }


@dataclass(frozen=True)
class Rubric:
    """Versioned scoring contract for a (provider, level, task) triple."""

    provider: str
    level: str
    task: TaskType
    version: str
    criteria: Tuple[RubricCriterion, ...]
    pass_threshold: Decimal = Decimal("0")
    instructions: Optional[str] = None
    time_limit_seconds: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate rubric."""
        if not isinstance(self.task, TaskType):
            object.__setattr__(self, "task", TaskType.parse(self.task))

        if not isinstance(self.criteria, tuple):
            object.__setattr__(self, "criteria", tuple(self.criteria))

        if not self.criteria:
            raise ValidationError("Rubric requires at least one criterion")

        criterion_ids = [criterion.criterion_id for criterion in self.criteria]
        if len(set(criterion_ids)) != len(criterion_ids):
            raise ValidationError("Rubric criterion IDs must be unique")

        object.__setattr__(self, "pass_threshold", _to_decimal(self.pass_threshold))
        if self.pass_threshold < 0:
            raise ValidationError("Pass threshold cannot be negative")

    @property
    def max_score(self) -> Decimal:
        """Maximum possible total score."""
        return sum((criterion.max_score for criterion in self.criteria), Decimal("0"))

    @property
    def criterion_ids(self) -> Tuple[str, ...]:
        return tuple(criterion.criterion_id for criterion in self.criteria)

    def get_criterion(self, criterion_id: str) -> Optional[RubricCriterion]:
        for criterion in self.criteria:
            if criterion.criterion_id == criterion_id:
                return criterion
        return None

    def is_passing(self, total_score: Decimal) -> bool:
        """Check a total against the pass threshold (inclusive)."""
        return total_score >= self.pass_threshold

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rubric":
        """Create rubric from its stored JSON document."""
        body = data.get("json", data)
        total_score = body.get("total_score", {})
        pass_threshold = body.get("pass_threshold", total_score.get("pass_threshold", 0))

        return cls(
            provider=body.get("provider") or data.get("provider", ""),
            level=body.get("level") or data.get("level", ""),
            task=TaskType.parse(body.get("task") or data.get("task", "")),
            version=str(body.get("version") or data.get("version", "1")),
            criteria=tuple(RubricCriterion.from_dict(item) for item in body.get("criteria", [])),
            pass_threshold=pass_threshold or 0,
            instructions=body.get("instructions"),
            time_limit_seconds=body.get("time_limit"),
        )

    def to_prompt_dict(self) -> Dict[str, Any]:
        """Serialize rubric for embedding into scoring prompts."""
        return {
            "version": self.version,
            "provider": self.provider,
            "level": self.level,
            "task": self.task.value,
            "criteria": [criterion.to_dict() for criterion in self.criteria],
            "total_score": {
                "max": float(self.max_score),
                "pass_threshold": float(self.pass_threshold),
            },
            "instructions": self.instructions,
        }
