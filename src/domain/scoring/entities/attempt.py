"""Attempt entity."""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from ..exceptions import ValidationError
from ..value_objects.task_type import TaskType

TEXT_PAYLOAD_FIELDS = ("text", "output", "transcript")


@dataclass(frozen=True)
class Attempt:
    """One exam response submitted for scoring. Read-only for the engine."""

    attempt_id: str
    task: TaskType
    provider: str
    level: str
    payload: Mapping[str, Any]
    created_at: datetime = field(default_factory=datetime.utcnow)
    tenant_id: Optional[str] = None

    def __post_init__(self):
        """Validate attempt and freeze its payload."""
        if not self.attempt_id:
            raise ValidationError("Attempt ID is required", field_name="attempt_id")

        if not self.provider:
            raise ValidationError("Provider is required", field_name="provider")

        if not self.level:
            raise ValidationError("Level is required", field_name="level")

        if not isinstance(self.task, TaskType):
            object.__setattr__(self, "task", TaskType.parse(self.task))

        if not isinstance(self.payload, Mapping):
            raise ValidationError("Payload must be a mapping", field_name="payload")

        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @classmethod
    def create(
        cls,
        task: Any,
        provider: str,
        level: str,
        payload: Dict[str, Any],
        tenant_id: Optional[str] = None,
    ) -> "Attempt":
        """Create a new attempt with a generated ID."""
        return cls(
            attempt_id=str(uuid4()),
            task=TaskType.parse(task),
            provider=provider,
            level=level,
            payload=payload,
            tenant_id=tenant_id,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attempt":
        """Create attempt from its JSON representation."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))

        return cls(
            attempt_id=str(data.get("id") or data.get("attempt_id") or uuid4()),
            task=TaskType.parse(data.get("task", "")),
            provider=data.get("provider", ""),
            level=data.get("level", ""),
            payload=data.get("payload") or {},
            created_at=created_at or datetime.utcnow(),
            tenant_id=data.get("tenant_id"),
        )

    def text_content(self) -> Optional[str]:
        """Get the textual content of the payload, if any."""
        for field_name in TEXT_PAYLOAD_FIELDS:
            value = self.payload.get(field_name)
            if isinstance(value, str) and value.strip():
                return value
        return None

    @property
    def rubric_key(self) -> tuple:
        return (self.provider, self.level, self.task.value)
