"""Label parsing and per-metric updates of device records built from exporter text."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, MutableMapping
from datetime import datetime
from decimal import Decimal

from smimetrics.types import (
    AppleSiliconCpuInfo,
    CpuInfo,
    CpuPlatformType,
    GpuInfo,
    MemoryInfo,
    StorageInfo,
)

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1
_UNSIGNED_TEXT = re.compile(r"\+?[0-9]+")

# Labels of the gpu_info metric that are copied into the device detail.
_GPU_INFO_DETAIL_LABELS = (
    "cuda_version",
    "driver_version",
    "architecture",
    "compute_capability",
    "firmware",
    "serial_number",
    "pci_address",
    "pci_device",
)


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _to_unsigned(value: float, maximum: int) -> int:
    """Truncate toward zero and saturate into ``0..=maximum``; NaN becomes 0."""
    if math.isnan(value) or value <= 0:
        return 0
    if math.isinf(value) or value >= maximum:
        return maximum
    return int(value)


def _to_u32(value: float) -> int:
    return _to_unsigned(value, _U32_MAX)


def _to_u64(value: float) -> int:
    return _to_unsigned(value, _U64_MAX)


def _parse_u32(text: str) -> int | None:
    if not _UNSIGNED_TEXT.fullmatch(text):
        return None
    number = int(text)
    return number if number <= _U32_MAX else None


def _format_float(value: float) -> str:
    """Render a float the shortest exact way, never in exponent notation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer():
        return str(int(value))
    return format(Decimal(repr(value)), "f")


def _instance_or_host(labels: Mapping[str, str], host: str) -> str:
    return labels.get("instance", host)


def parse_labels(labels_str: str) -> dict[str, str]:
    """Parse ``key="value", ...`` into a dict, skipping malformed pairs."""
    labels: dict[str, str] = {}
    for label in labels_str.split(","):
        parts = label.split("=")
        if len(parts) == 2:
            key, raw_value = parts
            labels[key.strip()] = raw_value.replace('"', "")
    return labels


def process_gpu_metric(
    gpu_map: MutableMapping[str, GpuInfo],
    metric_name: str,
    labels: Mapping[str, str],
    value: float,
    host: str,
) -> GpuInfo | None:
    """Apply one accelerator metric, keyed by UUID.

    Metrics without both a ``gpu`` and a ``uuid`` label are ignored and
    ``None`` is returned; otherwise the updated record is returned.
    """
    gpu_name = labels.get("gpu", "")
    gpu_uuid = labels.get("uuid", "")
    if not gpu_name or not gpu_uuid:
        return None

    gpu = gpu_map.get(gpu_uuid)
    if gpu is None:
        gpu = GpuInfo(
            uuid=gpu_uuid,
            time=_now(),
            name=gpu_name,
            device_type="GPU",
            host_id=host,
            hostname=_instance_or_host(labels, host),
            instance=_instance_or_host(labels, host),
            detail={"index": labels.get("index", "")},
        )
        gpu_map[gpu_uuid] = gpu

    match metric_name:
        case "gpu_utilization":
            gpu.utilization = value
        case "gpu_memory_used_bytes":
            gpu.used_memory = _to_u64(value)
        case "gpu_memory_total_bytes":
            gpu.total_memory = _to_u64(value)
        case "gpu_temperature_celsius":
            gpu.temperature = _to_u32(value)
        case "gpu_power_consumption_watts":
            gpu.power_consumption = value
        case "gpu_frequency_mhz":
            gpu.frequency = _to_u32(value)
        case "ane_utilization":
            gpu.ane_utilization = value
        case "gpu_power_limit_max_watts":
            gpu.detail["power_limit_max"] = _format_float(value)
        case "gpu_info":
            if "type" in labels:
                gpu.device_type = labels["type"]
            for key in _GPU_INFO_DETAIL_LABELS:
                if key in labels:
                    gpu.detail[key] = labels[key]
        case "npu_firmware_info":
            if "firmware" in labels:
                gpu.detail["firmware"] = labels["firmware"]
    return gpu


def _platform_for_model(cpu_model: str) -> CpuPlatformType:
    if "Apple" in cpu_model:
        return CpuPlatformType.APPLE_SILICON
    if "Intel" in cpu_model:
        return CpuPlatformType.INTEL
    if "AMD" in cpu_model:
        return CpuPlatformType.AMD
    return CpuPlatformType.other("Unknown")


def _apple_info(cpu: CpuInfo) -> AppleSiliconCpuInfo:
    if cpu.apple_silicon_info is None:
        cpu.apple_silicon_info = AppleSiliconCpuInfo()
    return cpu.apple_silicon_info


def process_cpu_metric(
    cpu_map: MutableMapping[str, CpuInfo],
    metric_name: str,
    labels: Mapping[str, str],
    value: float,
    host: str,
) -> CpuInfo:
    """Apply one CPU metric, keyed by ``host:index``; return the updated record."""
    cpu_model = labels.get("cpu_model", "")
    key = f"{host}:{labels.get('index', '0')}"

    cpu = cpu_map.get(key)
    if cpu is None:
        cpu = CpuInfo(
            host_id=host,
            hostname=_instance_or_host(labels, host),
            instance=_instance_or_host(labels, host),
            cpu_model=cpu_model,
            architecture="",
            platform_type=_platform_for_model(cpu_model),
            socket_count=1,
            time=_now(),
        )
        cpu_map[key] = cpu

    match metric_name:
        case "cpu_utilization":
            cpu.utilization = value
        case "cpu_socket_count":
            cpu.socket_count = _to_u32(value)
        case "cpu_core_count":
            cpu.total_cores = _to_u32(value)
        case "cpu_thread_count":
            cpu.total_threads = _to_u32(value)
        case "cpu_frequency_mhz":
            cpu.base_frequency_mhz = _to_u32(value)
            cpu.max_frequency_mhz = _to_u32(value)
        case "cpu_temperature_celsius":
            cpu.temperature = _to_u32(value)
        case "cpu_power_consumption_watts":
            cpu.power_consumption = value
        case "cpu_p_core_count":
            _apple_info(cpu).p_core_count = _to_u32(value)
        case "cpu_e_core_count":
            _apple_info(cpu).e_core_count = _to_u32(value)
        case "cpu_p_core_utilization":
            _apple_info(cpu).p_core_utilization = value
        case "cpu_e_core_utilization":
            _apple_info(cpu).e_core_utilization = value
    return cpu


def process_memory_metric(
    memory_map: MutableMapping[str, MemoryInfo],
    metric_name: str,
    labels: Mapping[str, str],
    value: float,
    host: str,
) -> MemoryInfo:
    """Apply one memory metric, keyed by ``host:index``; return the updated record."""
    key = f"{host}:{labels.get('index', '0')}"

    memory = memory_map.get(key)
    if memory is None:
        memory = MemoryInfo(
            host_id=host,
            hostname=_instance_or_host(labels, host),
            instance=_instance_or_host(labels, host),
            time=_now(),
        )
        memory_map[key] = memory

    match metric_name:
        case "memory_total_bytes":
            memory.total_bytes = _to_u64(value)
        case "memory_used_bytes":
            memory.used_bytes = _to_u64(value)
        case "memory_available_bytes":
            memory.available_bytes = _to_u64(value)
        case "memory_buffers_bytes":
            memory.buffers_bytes = _to_u64(value)
        case "memory_cached_bytes":
            memory.cached_bytes = _to_u64(value)
        case "memory_utilization":
            memory.utilization = value
    return memory


def process_storage_metric(
    storage_map: MutableMapping[str, StorageInfo],
    metric_name: str,
    labels: Mapping[str, str],
    value: float,
    host: str,
) -> StorageInfo | None:
    """Apply one disk metric, keyed by ``host:mount_point``.

    Metrics without a ``mount_point`` label are ignored and ``None`` is
    returned; otherwise the updated record is returned.
    """
    mount_point = labels.get("mount_point", "")
    if not mount_point:
        return None

    key = f"{host}:{mount_point}"
    storage = storage_map.get(key)
    if storage is None:
        storage = StorageInfo(
            mount_point=mount_point,
            host_id=host,
            hostname=_instance_or_host(labels, host),
            index=_parse_u32(labels.get("index", "0")) or 0,
        )
        storage_map[key] = storage

    match metric_name:
        case "disk_total_bytes":
            storage.total_bytes = _to_u64(value)
        case "disk_available_bytes":
            storage.available_bytes = _to_u64(value)
    return storage