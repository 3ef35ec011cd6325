"""Configuration management for the scoring committee engine."""

import json
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from ...domain.scoring.value_objects.quality_report import QualityThresholds
from .cache_manager import CacheConfig
from .performance_recorder import MonitoringConfig


@dataclass
class ScorerEndpointConfig:
    """Connection settings for one scoring backend provider."""

    provider: str
    base_url: str
    api_key: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)


DEFAULT_ENDPOINTS = {
    "openai": ("https://api.openai.com/v1", "OPENAI_API_KEY"),
    "deepseek": ("https://api.deepseek.com/v1", "DEEPSEEK_API_KEY"),
    "anthropic": ("https://api.anthropic.com/v1", "ANTHROPIC_API_KEY"),
}


def _default_endpoints() -> Dict[str, ScorerEndpointConfig]:
    return {
        provider: ScorerEndpointConfig(provider=provider, base_url=base_url)
        for provider, (base_url, _) in DEFAULT_ENDPOINTS.items()
    }


@dataclass
class ScorerClientConfig:
    """HTTP client settings shared by scorer adapters."""

    timeout_seconds: float = 45.0
    connection_timeout_seconds: float = 10.0
    max_output_tokens: int = 2000
    user_agent: str = "scoring-committee-engine/1.0"


@dataclass
class ScoringEngineConfig:
    """Complete engine configuration."""

    endpoints: Dict[str, ScorerEndpointConfig] = field(default_factory=_default_endpoints)
    client_config: ScorerClientConfig = field(default_factory=ScorerClientConfig)
    cache_config: CacheConfig = field(default_factory=CacheConfig)
    monitoring_config: MonitoringConfig = field(default_factory=MonitoringConfig)
    quality_thresholds: QualityThresholds = field(default_factory=QualityThresholds)
    model_prices: Dict[str, Decimal] = field(default_factory=dict)
    fallback_model_price: Decimal = Decimal("0.0001")
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "ScoringEngineConfig":
        """Create configuration from environment variables."""
        endpoints = {
            provider: ScorerEndpointConfig(
                provider=provider,
                base_url=os.getenv(f"{provider.upper()}_BASE_URL", base_url),
                api_key=os.getenv(api_key_env),
            )
            for provider, (base_url, api_key_env) in DEFAULT_ENDPOINTS.items()
        }

        client_config = ScorerClientConfig(
            timeout_seconds=float(os.getenv("SCORER_TIMEOUT_SECONDS", "45")),
            connection_timeout_seconds=float(os.getenv("SCORER_CONNECT_TIMEOUT_SECONDS", "10")),
            max_output_tokens=int(os.getenv("SCORER_MAX_OUTPUT_TOKENS", "2000")),
        )

        cache_config = CacheConfig(
            max_size=int(os.getenv("SCORING_CACHE_SIZE", "10000")),
            cleanup_interval_seconds=int(os.getenv("SCORING_CACHE_CLEANUP_INTERVAL", "300")),
            rubric_ttl=int(os.getenv("RUBRIC_CACHE_TTL", "3600")),
            tenant_settings_ttl=int(os.getenv("SETTINGS_CACHE_TTL", "1800")),
            model_response_ttl=int(os.getenv("MODEL_RESPONSE_CACHE_TTL", "86400")),
            enable_model_response_cache=os.getenv("MODEL_RESPONSE_CACHE", "true").lower()
            == "true",
        )

        monitoring_config = MonitoringConfig(
            max_metrics=int(os.getenv("PERFORMANCE_MAX_METRICS", "10000")),
            enable_prometheus=os.getenv("ENABLE_PROMETHEUS", "true").lower() == "true",
            alert_p95_ms=float(os.getenv("ALERT_P95_MS", "10000")),
            alert_avg_ms=float(os.getenv("ALERT_AVG_MS", "5000")),
            prune_interval_seconds=int(os.getenv("PERFORMANCE_PRUNE_INTERVAL", "3600")),
        )

        quality_thresholds = QualityThresholds(
            high_disagreement=Decimal(os.getenv("QC_HIGH_DISAGREEMENT", "0.2")),
            unanimity=Decimal(os.getenv("QC_UNANIMITY", "0.1")),
            outlier_sigma=Decimal(os.getenv("QC_OUTLIER_SIGMA", "2.0")),
            slow_processing_ms=int(os.getenv("QC_SLOW_PROCESSING_MS", "30000")),
        )

        prices = json.loads(os.getenv("SCORING_MODEL_PRICES", "{}"))

        return cls(
            endpoints=endpoints,
            client_config=client_config,
            cache_config=cache_config,
            monitoring_config=monitoring_config,
            quality_thresholds=quality_thresholds,
            model_prices={model: Decimal(str(price)) for model, price in prices.items()},
            fallback_model_price=Decimal(os.getenv("SCORING_FALLBACK_PRICE", "0.0001")),
            environment=os.getenv("ENVIRONMENT", "development"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, without secrets."""
        return {
            "environment": self.environment,
            "endpoints": {
                provider: {
                    "base_url": endpoint.base_url,
                    "api_key_configured": bool(endpoint.api_key),
                }
                for provider, endpoint in self.endpoints.items()
            },
            "client": {
                "timeout_seconds": self.client_config.timeout_seconds,
                "max_output_tokens": self.client_config.max_output_tokens,
            },
            "cache": {
                "max_size": self.cache_config.max_size,
                "rubric_ttl": self.cache_config.rubric_ttl,
                "tenant_settings_ttl": self.cache_config.tenant_settings_ttl,
                "model_response_ttl": self.cache_config.model_response_ttl,
                "model_response_cache_enabled": self.cache_config.enable_model_response_cache,
            },
            "monitoring": {
                "max_metrics": self.monitoring_config.max_metrics,
                "prometheus_enabled": self.monitoring_config.enable_prometheus,
                "alert_p95_ms": self.monitoring_config.alert_p95_ms,
                "alert_avg_ms": self.monitoring_config.alert_avg_ms,
            },
            "quality_thresholds": {
                "high_disagreement": float(self.quality_thresholds.high_disagreement),
                "unanimity": float(self.quality_thresholds.unanimity),
                "outlier_sigma": float(self.quality_thresholds.outlier_sigma),
                "slow_processing_ms": self.quality_thresholds.slow_processing_ms,
            },
            "model_prices": {model: float(price) for model, price in self.model_prices.items()},
        }
