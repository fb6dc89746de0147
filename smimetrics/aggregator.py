"""Cluster-wide and per-host aggregation of device metrics."""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from smimetrics.types import CpuInfo, GpuInfo, MemoryInfo

_GIB = 1024.0 * 1024.0 * 1024.0


@dataclass
class GpuClusterMetrics:
    """Aggregated accelerator figures."""

    total_gpus: int = 0
    total_memory_gb: float = 0.0
    used_memory_gb: float = 0.0
    total_power_watts: float = 0.0
    avg_utilization: float = 0.0
    avg_temperature: float = 0.0
    temp_std_dev: float = 0.0
    avg_power: float = 0.0


@dataclass
class CpuClusterMetrics:
    """Aggregated CPU figures."""

    total_cores: int = 0
    avg_utilization: float = 0.0
    total_power_watts: float = 0.0
    avg_temperature: float = 0.0


@dataclass
class MemoryClusterMetrics:
    """Aggregated memory figures."""

    total_gb: float = 0.0
    used_gb: float = 0.0
    available_gb: float = 0.0
    avg_utilization: float = 0.0


@dataclass
class HostMetrics:
    """All aggregated figures of a single host."""

    hostname: str
    gpu_metrics: GpuClusterMetrics = field(default_factory=GpuClusterMetrics)
    cpu_metrics: CpuClusterMetrics = field(default_factory=CpuClusterMetrics)
    memory_metrics: MemoryClusterMetrics = field(default_factory=MemoryClusterMetrics)


def aggregate_gpu_metrics(gpu_info: Sequence[GpuInfo]) -> GpuClusterMetrics:
    """Sum and average accelerator figures; the temperature spread is a sample deviation."""
    if not gpu_info:
        return GpuClusterMetrics()

    count = len(gpu_info)
    total_power = sum(gpu.power_consumption for gpu in gpu_info)
    avg_temperature = sum(float(gpu.temperature) for gpu in gpu_info) / count
    squares = sum((gpu.temperature - avg_temperature) ** 2 for gpu in gpu_info)
    # A single device gives 0/0, an undefined sample deviation.
    variance = squares / (count - 1) if count > 1 else math.nan

    return GpuClusterMetrics(
        total_gpus=count,
        total_memory_gb=sum(gpu.total_memory / _GIB for gpu in gpu_info),
        used_memory_gb=sum(gpu.used_memory / _GIB for gpu in gpu_info),
        total_power_watts=total_power,
        avg_utilization=sum(gpu.utilization for gpu in gpu_info) / count,
        avg_temperature=avg_temperature,
        temp_std_dev=math.sqrt(variance),
        avg_power=total_power / count,
    )


def aggregate_cpu_metrics(cpu_info: Sequence[CpuInfo]) -> CpuClusterMetrics:
    """Sum and average CPU figures.

    Apple Silicon hosts count performance plus efficiency cores. The average
    temperature divides by the number of hosts, reporting or not.
    """
    if not cpu_info:
        return CpuClusterMetrics()

    count = len(cpu_info)

    def cores(cpu: CpuInfo) -> int:
        apple = cpu.apple_silicon_info
        if apple is not None:
            return apple.p_core_count + apple.e_core_count
        return cpu.total_cores

    return CpuClusterMetrics(
        total_cores=sum(cores(cpu) for cpu in cpu_info),
        avg_utilization=sum(cpu.utilization for cpu in cpu_info) / count,
        total_power_watts=sum(
            cpu.power_consumption
            for cpu in cpu_info
            if cpu.power_consumption is not None
        ),
        avg_temperature=sum(
            float(cpu.temperature) for cpu in cpu_info if cpu.temperature is not None
        )
        / count,
    )


def aggregate_memory_metrics(memory_info: Sequence[MemoryInfo]) -> MemoryClusterMetrics:
    """Sum memory sizes in GiB and average the utilization."""
    if not memory_info:
        return MemoryClusterMetrics()

    return MemoryClusterMetrics(
        total_gb=sum(mem.total_bytes for mem in memory_info) / _GIB,
        used_gb=sum(mem.used_bytes for mem in memory_info) / _GIB,
        available_gb=sum(mem.available_bytes for mem in memory_info) / _GIB,
        avg_utilization=sum(mem.utilization for mem in memory_info) / len(memory_info),
    )


class _HasHostname(Protocol):
    hostname: str


_T = TypeVar("_T", bound=_HasHostname)


def _group_by_hostname(items: Iterable[_T]) -> dict[str, list[_T]]:
    grouped: defaultdict[str, list[_T]] = defaultdict(list)
    for item in items:
        grouped[item.hostname].append(item)
    return dict(grouped)


def aggregate_by_host(
    gpu_info: Sequence[GpuInfo],
    cpu_info: Sequence[CpuInfo],
    memory_info: Sequence[MemoryInfo],
) -> dict[str, HostMetrics]:
    """Aggregate every kind of metric separately for each hostname seen."""
    gpu_by_host = _group_by_hostname(gpu_info)
    cpu_by_host = _group_by_hostname(cpu_info)
    memory_by_host = _group_by_hostname(memory_info)

    hostnames = dict.fromkeys([*gpu_by_host, *cpu_by_host, *memory_by_host])

    return {
        hostname: HostMetrics(
            hostname=hostname,
            gpu_metrics=aggregate_gpu_metrics(gpu_by_host.get(hostname, [])),
            cpu_metrics=aggregate_cpu_metrics(cpu_by_host.get(hostname, [])),
            memory_metrics=aggregate_memory_metrics(memory_by_host.get(hostname, [])),
        )
        for hostname in hostnames
    }