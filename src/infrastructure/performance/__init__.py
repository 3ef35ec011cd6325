"""Caching, telemetry and configuration infrastructure."""

from .cache_manager import CacheConfig, CacheMetrics, CacheTTL, ResultCache
from .config import ScorerClientConfig, ScorerEndpointConfig, ScoringEngineConfig
from .performance_recorder import (
    MonitoringConfig,
    PerformanceMetric,
    PerformanceRecorder,
    PerformanceStats,
)

__all__ = [
    "CacheConfig",
    "CacheMetrics",
    "CacheTTL",
    "MonitoringConfig",
    "PerformanceMetric",
    "PerformanceRecorder",
    "PerformanceStats",
    "ResultCache",
    "ScorerClientConfig",
    "ScorerEndpointConfig",
    "ScoringEngineConfig",
]
