"""Committee configuration value objects."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..exceptions import ValidationError

MODEL_PROVIDER_PREFIXES = (("deepseek", "deepseek"), ("claude", "anthropic"))
DEFAULT_MODEL_PROVIDER = "openai"
DEFAULT_SEED = 42


def provider_for_model(model_name: str) -> str:
    """Backend provider serving a model, by name prefix."""
    normalized = model_name.strip().lower()
    for prefix, provider in MODEL_PROVIDER_PREFIXES:
        if normalized.startswith(prefix):
            return provider
    return DEFAULT_MODEL_PROVIDER


@dataclass(frozen=True)
class ScorerConfig:
    """One scorer entry in a committee."""

    model_name: str
    provider: str
    temperature: float = 0.0
    seed: Optional[int] = None
    weight: float = 1.0

    def __post_init__(self):
        """Validate scorer configuration."""
        if not self.model_name:
            raise ValidationError("Model name is required", field_name="model_name")

        if not self.provider:
            raise ValidationError("Provider is required", field_name="provider")

        if not (0.0 <= self.temperature <= 2.0):
            raise ValidationError(
                "Temperature must be between 0.0 and 2.0", field_name="temperature"
            )

        if self.weight < 0:
            raise ValidationError("Weight cannot be negative", field_name="weight")

        if self.seed is not None and self.seed < 0:
            raise ValidationError("Seed cannot be negative", field_name="seed")

    @classmethod
    def for_model(cls, model_name: str) -> "ScorerConfig":
        """Deterministic single scorer for a model name."""
        return cls(
            model_name=model_name,
            provider=provider_for_model(model_name),
            temperature=0.0,
            seed=DEFAULT_SEED,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScorerConfig":
        """Create scorer config from a mapping using the committee JSON keys."""
        return cls(
            model_name=data.get("name") or data.get("model_name", ""),
            provider=data.get("provider", ""),
            temperature=float(data.get("temperature", 0.0)),
            seed=data.get("seed"),
            weight=float(data.get("weight", 1.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.model_name,
            "provider": self.provider,
            "temperature": self.temperature,
            "seed": self.seed,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class CommitteeConfig:
    """Ordered set of scorers used for one scoring call."""

    scorers: Tuple[ScorerConfig, ...]

    def __post_init__(self):
        """Validate committee."""
        if not isinstance(self.scorers, tuple):
            object.__setattr__(self, "scorers", tuple(self.scorers))

        if not self.scorers:
            raise ValidationError("Committee requires at least one scorer")

    @classmethod
    def of(cls, *scorers: ScorerConfig) -> "CommitteeConfig":
        """Create committee from scorer configs."""
        return cls(tuple(scorers))

    @classmethod
    def from_list(cls, items: Iterable[Dict[str, Any]]) -> "CommitteeConfig":
        """Create committee from a list of scorer mappings."""
        return cls(tuple(ScorerConfig.from_dict(item) for item in items))

    @property
    def size(self) -> int:
        """Expected number of judgments."""
        return len(self.scorers)

    def weight_for(self, model_name: str) -> float:
        """Get the relative weight of a model, defaulting to 1."""
        # Judgments carry only the model name, so repeated models share the first weight
        for scorer in self.scorers:
            if scorer.model_name == model_name:
                return scorer.weight
        return 1.0

    def __iter__(self) -> Iterator[ScorerConfig]:
        return iter(self.scorers)

    def __len__(self) -> int:
        return len(self.scorers)

    def to_list(self) -> List[Dict[str, Any]]:
        return [scorer.to_dict() for scorer in self.scorers]
