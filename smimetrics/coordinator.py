"""History tracking, trend analysis, health checks and baselines for cluster metrics."""

from __future__ import annotations

import enum
import math
import threading
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field

from smimetrics.aggregator import (
    GpuClusterMetrics,
    HostMetrics,
    MemoryClusterMetrics,
    aggregate_by_host,
    aggregate_gpu_metrics,
    aggregate_memory_metrics,
)
from smimetrics.types import CpuInfo, GpuInfo, MemoryInfo

_TREND_WINDOW = 10
_TREND_SLOPE_THRESHOLD = 0.5
_BASELINE_MIN_POINTS = 10
_MAX_CONFIDENCE = 0.95
_CONFIDENCE_REQUIRED_POINTS = 100.0


@dataclass
class MetricsState:
    """Current device snapshots and the histories derived from them."""

    gpu_info: list[GpuInfo] = field(default_factory=list)
    cpu_info: list[CpuInfo] = field(default_factory=list)
    memory_info: list[MemoryInfo] = field(default_factory=list)
    utilization_history: deque[float] = field(default_factory=deque)
    memory_history: deque[float] = field(default_factory=deque)
    temperature_history: deque[float] = field(default_factory=deque)
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )


class Trend(enum.Enum):
    """Direction of recent values."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    INSUFFICIENT = "insufficient"


@dataclass(frozen=True)
class TrendAnalysis:
    """Trends of the tracked histories."""

    utilization_trend: Trend
    memory_trend: Trend
    temperature_trend: Trend
    data_points: int


class HealthStatus(enum.Enum):
    """Overall state of the cluster."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    NO_DATA = "no_data"


@dataclass(frozen=True)
class ClusterHealth:
    """Cluster state together with the issues that caused it."""

    status: HealthStatus
    issues: tuple[str, ...] = ()


@dataclass(frozen=True)
class Baseline:
    """Summary statistics of a history."""

    mean: float
    std_dev: float
    min: float
    max: float


@dataclass(frozen=True)
class PerformanceBaselines:
    """Baselines of the tracked histories; ``None`` where data is insufficient."""

    utilization_baseline: Baseline | None
    memory_baseline: Baseline | None
    temperature_baseline: Baseline | None
    confidence: float


def calculate_trend(history: Sequence[float]) -> Trend:
    """Classify the slope of a least-squares line over the last ten values."""
    if len(history) < 2:
        return Trend.INSUFFICIENT

    recent = list(history)[-_TREND_WINDOW:]
    n = float(len(recent))
    sum_x = float(sum(range(len(recent))))
    sum_y = sum(recent)
    sum_xy = sum(i * y for i, y in enumerate(recent))
    sum_x2 = float(sum(i * i for i in range(len(recent))))

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)

    if slope > _TREND_SLOPE_THRESHOLD:
        return Trend.INCREASING
    if slope < -_TREND_SLOPE_THRESHOLD:
        return Trend.DECREASING
    return Trend.STABLE


def calculate_baseline(history: Sequence[float]) -> Baseline | None:
    """Mean, population deviation and range; ``None`` below ten values."""
    if len(history) < _BASELINE_MIN_POINTS:
        return None

    values = list(history)
    mean = sum(values) / len(values)
    variance = sum((x - mean) ** 2 for x in values) / len(values)
    return Baseline(
        mean=mean,
        std_dev=math.sqrt(variance),
        min=min(values),
        max=max(values),
    )


def calculate_confidence(data_points: int) -> float:
    """Confidence grows with the number of points and levels off at 95%."""
    return min(data_points / _CONFIDENCE_REQUIRED_POINTS, 1.0) * _MAX_CONFIDENCE


def _critical_issues(
    gpu: GpuClusterMetrics, memory: MemoryClusterMetrics
) -> list[str]:
    issues = []
    if gpu.avg_utilization > 95.0:
        issues.append("GPU utilization critically high (>95%)")
    if gpu.avg_temperature > 90.0:
        issues.append("GPU temperature critically high (>90°C)")
    if memory.avg_utilization > 95.0:
        issues.append("Memory utilization critically high (>95%)")
    return issues


def _warning_issues(gpu: GpuClusterMetrics, memory: MemoryClusterMetrics) -> list[str]:
    issues = []
    if gpu.avg_utilization > 85.0:
        issues.append("GPU utilization high (>85%)")
    if gpu.avg_temperature > 80.0:
        issues.append("GPU temperature high (>80°C)")
    if memory.avg_utilization > 85.0:
        issues.append("Memory utilization high (>85%)")
    if gpu.temp_std_dev > 10.0:
        issues.append("High temperature variance across GPUs")
    return issues


class MetricsCoordinator:
    """Aggregates a shared state, keeps its histories and derives analyses."""

    def __init__(self, state: MetricsState, history_max_entries: int) -> None:
        if history_max_entries < 0:
            raise ValueError("history_max_entries must not be negative")
        self._state = state
        self._history_max_entries = history_max_entries

    @property
    def state(self) -> MetricsState:
        return self._state

    def _trim(self, history: deque[float]) -> None:
        while len(history) > self._history_max_entries:
            history.popleft()

    def update_cluster_metrics(self) -> None:
        """Append the current cluster averages to the histories and trim them."""
        state = self._state
        with state.lock:
            gpu = aggregate_gpu_metrics(state.gpu_info)
            memory = aggregate_memory_metrics(state.memory_info)

            state.utilization_history.append(gpu.avg_utilization)
            state.memory_history.append(memory.avg_utilization)
            state.temperature_history.append(gpu.avg_temperature)

            self._trim(state.utilization_history)
            self._trim(state.memory_history)
            self._trim(state.temperature_history)

    def update_host_metrics(self) -> dict[str, HostMetrics]:
        """Aggregate the current snapshots per hostname."""
        state = self._state
        with state.lock:
            return aggregate_by_host(state.gpu_info, state.cpu_info, state.memory_info)

    def get_trend_analysis(self) -> TrendAnalysis:
        """Trends of the utilization, memory and temperature histories."""
        state = self._state
        with state.lock:
            return TrendAnalysis(
                utilization_trend=calculate_trend(state.utilization_history),
                memory_trend=calculate_trend(state.memory_history),
                temperature_trend=calculate_trend(state.temperature_history),
                data_points=len(state.utilization_history),
            )

    def get_cluster_health(self) -> ClusterHealth:
        """Judge the current snapshots against fixed thresholds."""
        state = self._state
        with state.lock:
            if not state.gpu_info:
                return ClusterHealth(HealthStatus.NO_DATA)
            gpu = aggregate_gpu_metrics(state.gpu_info)
            memory = aggregate_memory_metrics(state.memory_info)

        critical = _critical_issues(gpu, memory)
        if critical:
            return ClusterHealth(HealthStatus.CRITICAL, tuple(critical))
        warnings = _warning_issues(gpu, memory)
        if warnings:
            return ClusterHealth(HealthStatus.WARNING, tuple(warnings))
        return ClusterHealth(HealthStatus.HEALTHY)

    def calculate_baselines(self) -> PerformanceBaselines:
        """Baselines of every history, with a confidence from their length."""
        state = self._state
        with state.lock:
            return PerformanceBaselines(
                utilization_baseline=calculate_baseline(state.utilization_history),
                memory_baseline=calculate_baseline(state.memory_history),
                temperature_baseline=calculate_baseline(state.temperature_history),
                confidence=calculate_confidence(len(state.utilization_history)),
            )