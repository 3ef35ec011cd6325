"""Corrector entity."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import ValidationError
from ..value_objects.committee import CommitteeConfig
from ..value_objects.task_type import TaskType


@dataclass(frozen=True)
class ScoringCorrector:
    """Committee configured for every attempt of one (provider, level, task) triple."""

    name: str
    provider: str
    level: str
    task: TaskType
    committee: CommitteeConfig
    description: Optional[str] = None
    prompt_version: str = "PROMPT_WR_v1"
    active: bool = True

    def __post_init__(self):
        """Validate corrector."""
        if not self.name:
            raise ValidationError("Corrector name is required", field_name="name")

        if not isinstance(self.task, TaskType):
            object.__setattr__(self, "task", TaskType.parse(self.task))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringCorrector":
        return cls(
            name=data.get("name", ""),
            provider=data.get("provider", ""),
            level=data.get("level", ""),
            task=TaskType.parse(data.get("task", "")),
            committee=CommitteeConfig.from_list(data.get("committee", [])),
            description=data.get("description"),
            prompt_version=data.get("prompt_version", "PROMPT_WR_v1"),
            active=bool(data.get("active", True)),
        )
