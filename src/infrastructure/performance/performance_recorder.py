"""Performance recording and percentile statistics for the scoring engine."""

import asyncio
import csv
import io
import json
import logging
import math
import threading
import time
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from functools import wraps
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional

from prometheus_client import CollectorRegistry, Histogram, generate_latest

logger = logging.getLogger(__name__)

DEFAULT_MAX_METRICS = 10000
DAY_MS = 24 * 60 * 60 * 1000


@dataclass
class MonitoringConfig:
    """Recorder and alerting configuration."""

    max_metrics: int = DEFAULT_MAX_METRICS
    enable_prometheus: bool = True
    alert_p95_ms: float = 10000.0
    alert_avg_ms: float = 5000.0
    slow_operation_ms: float = 30000.0
    retention_ms: int = DAY_MS
    prune_interval_seconds: int = 60 * 60


@dataclass(frozen=True)
class PerformanceMetric:
    """One recorded duration measurement."""

    name: str
    duration: float  # milliseconds
    timestamp: float  # epoch milliseconds
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PerformanceStats:
    """Percentile statistics for one operation."""

    count: int
    total: float
    avg: float
    min: float
    max: float
    p50: float
    p95: float
    p99: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def percentile(sorted_values: List[float], fraction: float) -> float:
    """Value at floor(count * fraction) of an ascending list."""
    index = min(len(sorted_values) - 1, int(math.floor(len(sorted_values) * fraction)))
    return sorted_values[index]


class PerformanceRecorder:
    """Records named durations in a bounded ring and reports percentile statistics."""

    def __init__(
        self,
        config: Optional[MonitoringConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or MonitoringConfig()
        self._clock = clock
        self._metrics: deque = deque(maxlen=self.config.max_metrics)
        self._timers: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._prune_task: Optional[asyncio.Task] = None

        self.registry: Optional[CollectorRegistry] = None
        if self.config.enable_prometheus:
            self._setup_prometheus_metrics()

    def _setup_prometheus_metrics(self) -> None:
        """Setup Prometheus metrics on a registry owned by this recorder."""
        self.registry = CollectorRegistry()
        self.prom_operation_duration = Histogram(
            "scoring_operation_duration_seconds",
            "Scoring engine operation duration",
            ["operation"],
            registry=self.registry,
        )

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def start_timer(self, operation_id: str) -> None:
        """Start timing an operation."""
        with self._lock:
            self._timers[operation_id] = time.perf_counter()

    def end_timer(
        self, operation_id: str, name: str, metadata: Optional[Dict[str, Any]] = None
    ) -> float:
        """End timing, record the metric and return its duration in milliseconds."""
        with self._lock:
            start = self._timers.pop(operation_id, None)

        if start is None:
            logger.warning(f"No start timer found for operation: {operation_id}")
            return 0.0

        duration = (time.perf_counter() - start) * 1000
        self.record(name, duration, metadata)
        return duration

    def record(self, name: str, duration: float, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record a duration in milliseconds."""
        metric = PerformanceMetric(
            name=name, duration=float(duration), timestamp=self._now_ms(), metadata=metadata or {}
        )
        with self._lock:
            self._metrics.append(metric)

        if duration > self.config.slow_operation_ms:
            logger.warning(f"Slow operation detected: {name} took {duration:.0f}ms")

        if self.registry is not None:
            self.prom_operation_duration.labels(operation=name).observe(duration / 1000)

    def stats(self, name: str, window_ms: Optional[float] = None) -> Optional[PerformanceStats]:
        """Statistics for an operation over the retained measurements in the window."""
        cutoff = self._now_ms() - window_ms if window_ms else 0
        with self._lock:
            durations = sorted(
                m.duration for m in self._metrics if m.name == name and m.timestamp >= cutoff
            )

        if not durations:
            return None

        count = len(durations)
        total = sum(durations)
        return PerformanceStats(
            count=count,
            total=total,
            avg=total / count,
            min=durations[0],
            max=durations[-1],
            p50=percentile(durations, 0.5),
            p95=percentile(durations, 0.95),
            p99=percentile(durations, 0.99),
        )

    def operation_names(self) -> List[str]:
        """Operation names in order of first appearance."""
        with self._lock:
            return list(dict.fromkeys(m.name for m in self._metrics))

    def recent_metrics(self, name: Optional[str] = None, limit: int = 100) -> List[PerformanceMetric]:
        with self._lock:
            metrics = [m for m in self._metrics if name is None or m.name == name]
        return metrics[-limit:] if limit else []

    def generate_report(self, window_ms: float = DAY_MS) -> Dict[str, PerformanceStats]:
        report = {}
        for name in self.operation_names():
            stats = self.stats(name, window_ms)
            if stats is not None:
                report[name] = stats
        return report

    def get_dashboard_data(self, window_ms: float = DAY_MS) -> Dict[str, Any]:
        """Summary, per-operation statistics and alerts for the monitoring surface."""
        report = self.generate_report(window_ms)
        operations = list(report.keys())

        slowest_operation = None
        if operations:
            slowest_operation = max(operations, key=lambda op: report[op].p95)

        return {
            "summary": {
                "total_operations": len(operations),
                "total_calls": sum(stats.count for stats in report.values()),
                "avg_duration": (
                    sum(stats.avg for stats in report.values()) / len(operations)
                    if operations
                    else 0.0
                ),
                "slowest_operation": slowest_operation,
            },
            "operations": {name: stats.to_dict() for name, stats in report.items()},
            "alerts": [
                name
                for name, stats in report.items()
                if stats.p95 > self.config.alert_p95_ms or stats.avg > self.config.alert_avg_ms
            ],
        }

    def export_metrics(self, export_format: str = "json", limit: int = 1000) -> str:
        """Export recent measurements as JSON or CSV."""
        metrics = self.recent_metrics(limit=limit)

        if export_format == "csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(["name", "duration", "timestamp", "metadata"])
            for m in metrics:
                writer.writerow([m.name, m.duration, m.timestamp, json.dumps(m.metadata, default=str)])
            return buffer.getvalue()

        if export_format != "json":
            raise ValueError(f"Unsupported export format: {export_format}")

        return json.dumps([asdict(m) for m in metrics], indent=2, default=str)

    def export_prometheus(self) -> bytes:
        """Prometheus exposition of this recorder's registry."""
        if self.registry is None:
            return b""
        return generate_latest(self.registry)

    def prune_older_than(self, age_ms: Optional[float] = None) -> int:
        """Drop measurements older than the retention age; returns how many were dropped."""
        cutoff = self._now_ms() - (age_ms if age_ms is not None else self.config.retention_ms)
        with self._lock:
            kept = [m for m in self._metrics if m.timestamp >= cutoff]
            removed = len(self._metrics) - len(kept)
            self._metrics.clear()
            self._metrics.extend(kept)
        return removed

    def start_prune_task(self, interval_seconds: Optional[float] = None) -> asyncio.Task:
        """Start a background task calling prune_older_than() periodically."""
        if self._prune_task is not None and not self._prune_task.done():
            return self._prune_task

        interval = interval_seconds or self.config.prune_interval_seconds

        async def prune():
            while True:
                await asyncio.sleep(interval)
                removed = self.prune_older_than()
                if removed:
                    logger.debug(f"Pruned {removed} old performance metrics")

        self._prune_task = asyncio.create_task(prune())
        logger.info(f"Started performance metric pruning every {interval}s")
        return self._prune_task

    async def stop_prune_task(self) -> None:
        """Stop the background pruning."""
        if self._prune_task is None:
            return

        self._prune_task.cancel()
        try:
            await self._prune_task
        except asyncio.CancelledError:
            pass
        self._prune_task = None

    def clear(self) -> None:
        """Clear all metrics and pending timers."""
        with self._lock:
            self._metrics.clear()
            self._timers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    @asynccontextmanager
    async def measure(
        self, name: str, metadata: Optional[Dict[str, Any]] = None
    ) -> AsyncGenerator[None, None]:
        """Context manager recording the duration and outcome of a block."""
        start = time.perf_counter()
        metadata = dict(metadata or {})

        try:
            yield
        except Exception as e:
            metadata.update({"success": False, "error": str(e)})
            self.record(name, (time.perf_counter() - start) * 1000, metadata)
            raise

        metadata["success"] = True
        self.record(name, (time.perf_counter() - start) * 1000, metadata)


def measure_execution_time(recorder: PerformanceRecorder, operation_name: str):
    """Decorator recording each call's duration under operation_name."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            async with recorder.measure(operation_name, {"args": len(args)}):
                return await func(*args, **kwargs)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start = time.perf_counter()
            success = True
            try:
                return func(*args, **kwargs)
            except Exception:
                success = False
                raise
            finally:
                recorder.record(
                    operation_name,
                    (time.perf_counter() - start) * 1000,
                    {"success": success, "args": len(args)},
                )

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

    return decorator
