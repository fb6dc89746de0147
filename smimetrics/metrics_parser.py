"""Parsing of exporter text into device, host and storage records."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from smimetrics.metric_handlers import (
    parse_labels,
    process_cpu_metric,
    process_gpu_metric,
    process_memory_metric,
    process_storage_metric,
)
from smimetrics.types import CpuInfo, GpuInfo, MemoryInfo, StorageInfo

_FLOAT_TEXT = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)


@dataclass
class ParsedMetrics:
    """Records built from one exporter response; unpacks as four lists."""

    gpu_info: list[GpuInfo] = field(default_factory=list)
    cpu_info: list[CpuInfo] = field(default_factory=list)
    memory_info: list[MemoryInfo] = field(default_factory=list)
    storage_info: list[StorageInfo] = field(default_factory=list)

    def __iter__(self) -> Iterator[list]:
        yield self.gpu_info
        yield self.cpu_info
        yield self.memory_info
        yield self.storage_info


def _parse_value(text: str) -> float:
    """Parse a sample value; anything that is not a plain float becomes 0.0."""
    if not _FLOAT_TEXT.fullmatch(text):
        return 0.0
    return float(text)


def parse_metrics(text: str, host: str, pattern: re.Pattern[str] | str) -> ParsedMetrics:
    """Parse exporter lines with ``pattern`` into records for ``host``.

    The pattern must capture the metric name, the label text and the value,
    in that order. Lines it does not match are skipped. The first
    ``instance`` label seen is stored as ``instance_name`` in the detail of
    every accelerator.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    gpu_map: dict[str, GpuInfo] = {}
    cpu_map: dict[str, CpuInfo] = {}
    memory_map: dict[str, MemoryInfo] = {}
    storage_map: dict[str, StorageInfo] = {}
    instance_name: str | None = None

    for raw_line in text.split("\n"):
        match = regex.search(raw_line.strip())
        if match is None:
            continue
        metric_name = match.group(1)
        labels = parse_labels(match.group(2))
        value = _parse_value(match.group(3))

        if instance_name is None and "instance" in labels:
            instance_name = labels["instance"]

        if (
            metric_name.startswith(("gpu_", "npu_"))
            or metric_name == "ane_utilization"
        ):
            process_gpu_metric(gpu_map, metric_name, labels, value, host)
        elif metric_name.startswith("cpu_"):
            process_cpu_metric(cpu_map, metric_name, labels, value, host)
        elif metric_name.startswith("memory_"):
            process_memory_metric(memory_map, metric_name, labels, value, host)
        elif metric_name.startswith(("storage_", "disk_")):
            process_storage_metric(storage_map, metric_name, labels, value, host)

    if instance_name is not None:
        for gpu in gpu_map.values():
            gpu.detail["instance_name"] = instance_name

    return ParsedMetrics(
        gpu_info=list(gpu_map.values()),
        cpu_info=list(cpu_map.values()),
        memory_info=list(memory_map.values()),
        storage_info=list(storage_map.values()),
    )