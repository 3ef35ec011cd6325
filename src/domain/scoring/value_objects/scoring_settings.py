"""Tenant scoring settings value object."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import ValidationError
from .committee import CommitteeConfig, ScorerConfig


@dataclass(frozen=True)
class ScoringSettings:
    """Per-tenant scoring defaults."""

    tenant_id: str
    default_model_name: str = "gpt-4o-mini"
    default_committee: Optional[CommitteeConfig] = None
    timeout_ms: int = 60000
    retries: int = 2

    def __post_init__(self):
        """Validate settings."""
        if not self.tenant_id:
            raise ValidationError("Tenant ID is required", field_name="tenant_id")

        if not self.default_model_name:
            raise ValidationError("Default model is required", field_name="default_model_name")

        if not (1000 <= self.timeout_ms <= 300000):
            raise ValidationError("Timeout must be between 1s and 5min", field_name="timeout_ms")

        if not (0 <= self.retries <= 5):
            raise ValidationError("Retries must be between 0 and 5", field_name="retries")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    def committee(self) -> CommitteeConfig:
        """Tenant default committee, or a single scorer running the default model."""
        if self.default_committee is not None:
            return self.default_committee
        return CommitteeConfig.of(ScorerConfig.for_model(self.default_model_name))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringSettings":
        defaults = data.get("defaults", {})
        committee = defaults.get("committee")
        return cls(
            tenant_id=data.get("tenant_id", ""),
            default_model_name=defaults.get("model_name", "gpt-4o-mini"),
            default_committee=CommitteeConfig.from_list(committee) if committee else None,
            timeout_ms=int(defaults.get("timeout", 60000)),
            retries=int(defaults.get("retries", 2)),
        )
