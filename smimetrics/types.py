"""Device, host and storage records shared by collectors and aggregators."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar


class CpuPlatform(enum.Enum):
    """Broad CPU vendor or platform families."""

    INTEL = "Intel"
    AMD = "Amd"
    APPLE_SILICON = "AppleSilicon"
    ARM = "Arm"
    OTHER = "Other"


@dataclass(frozen=True)
class CpuPlatformType:
    """A CPU platform; the ``OTHER`` platform carries a free-form name."""

    platform: CpuPlatform
    name: str | None = None

    INTEL: ClassVar[CpuPlatformType]
    AMD: ClassVar[CpuPlatformType]
    APPLE_SILICON: ClassVar[CpuPlatformType]
    ARM: ClassVar[CpuPlatformType]

    def __post_init__(self) -> None:
        if self.platform is CpuPlatform.OTHER and self.name is None:
            raise ValueError("an OTHER platform needs a name")
        if self.platform is not CpuPlatform.OTHER and self.name is not None:
            raise ValueError(f"platform {self.platform.value} takes no name")

    @classmethod
    def other(cls, name: str) -> CpuPlatformType:
        """Build an unknown or unlisted platform with the given name."""
        return cls(CpuPlatform.OTHER, name)

    def __str__(self) -> str:
        if self.platform is CpuPlatform.OTHER:
            return f"Other({self.name})"
        return self.platform.value


CpuPlatformType.INTEL = CpuPlatformType(CpuPlatform.INTEL)
CpuPlatformType.AMD = CpuPlatformType(CpuPlatform.AMD)
CpuPlatformType.APPLE_SILICON = CpuPlatformType(CpuPlatform.APPLE_SILICON)
CpuPlatformType.ARM = CpuPlatformType(CpuPlatform.ARM)


def _unknown_platform() -> CpuPlatformType:
    return CpuPlatformType.other("Unknown")


@dataclass
class GpuInfo:
    """A snapshot of one accelerator (GPU, NPU and the like)."""

    uuid: str = ""
    time: str = ""
    name: str = ""
    device_type: str = "GPU"
    host_id: str = ""
    hostname: str = ""
    instance: str = ""
    utilization: float = 0.0
    ane_utilization: float = 0.0
    dla_utilization: float | None = None
    temperature: int = 0
    used_memory: int = 0
    total_memory: int = 0
    frequency: int = 0
    power_consumption: float = 0.0
    detail: dict[str, str] = field(default_factory=dict)


@dataclass
class ProcessInfo:
    """A process on a host, together with its accelerator usage."""

    device_id: int = 0
    device_uuid: str = ""
    pid: int = 0
    process_name: str = ""
    used_memory: int = 0
    cpu_percent: float = 0.0
    memory_percent: float = 0.0
    memory_rss: int = 0
    memory_vms: int = 0
    user: str = ""
    state: str = ""
    start_time: str = ""
    cpu_time: int = 0
    command: str = ""
    ppid: int = 0
    threads: int = 0
    uses_gpu: bool = False
    priority: int = 0
    nice_value: int = 0
    gpu_utilization: float = 0.0


@dataclass
class CpuSocketInfo:
    """Per-socket CPU figures."""

    socket_id: int = 0
    utilization: float = 0.0
    cores: int = 0
    threads: int = 0
    temperature: int | None = None
    frequency_mhz: int = 0


@dataclass
class AppleSiliconCpuInfo:
    """Figures specific to Apple Silicon processors."""

    p_core_count: int = 0
    e_core_count: int = 0
    gpu_core_count: int = 0
    p_core_utilization: float = 0.0
    e_core_utilization: float = 0.0
    ane_ops_per_second: float | None = None
    p_cluster_frequency_mhz: int | None = None
    e_cluster_frequency_mhz: int | None = None


@dataclass
class CpuInfo:
    """A snapshot of the CPUs of one host."""

    host_id: str = ""
    hostname: str = ""
    instance: str = ""
    cpu_model: str = ""
    architecture: str = ""
    platform_type: CpuPlatformType = field(default_factory=_unknown_platform)
    socket_count: int = 0
    total_cores: int = 0
    total_threads: int = 0
    base_frequency_mhz: int = 0
    max_frequency_mhz: int = 0
    cache_size_mb: int = 0
    utilization: float = 0.0
    temperature: int | None = None
    power_consumption: float | None = None
    per_socket_info: list[CpuSocketInfo] = field(default_factory=list)
    apple_silicon_info: AppleSiliconCpuInfo | None = None
    time: str = ""


@dataclass
class MemoryInfo:
    """A snapshot of system memory on one host."""

    host_id: str = ""
    hostname: str = ""
    instance: str = ""
    total_bytes: int = 0
    used_bytes: int = 0
    available_bytes: int = 0
    free_bytes: int = 0
    buffers_bytes: int = 0
    cached_bytes: int = 0
    swap_total_bytes: int = 0
    swap_used_bytes: int = 0
    swap_free_bytes: int = 0
    utilization: float = 0.0
    time: str = ""


@dataclass
class StorageInfo:
    """Capacity of one mounted filesystem on a host."""

    mount_point: str = ""
    total_bytes: int = 0
    available_bytes: int = 0
    host_id: str = ""
    hostname: str = ""
    index: int = 0


class GpuReader(ABC):
    """Source of accelerator and process snapshots."""

    @abstractmethod
    def get_gpu_info(self) -> list[GpuInfo]:
        """Return the current state of every accelerator."""

    @abstractmethod
    def get_process_info(self) -> list[ProcessInfo]:
        """Return the processes of the host with their accelerator usage."""


class CpuReader(ABC):
    """Source of CPU snapshots."""

    @abstractmethod
    def get_cpu_info(self) -> list[CpuInfo]:
        """Return the current CPU state."""


class MemoryReader(ABC):
    """Source of memory snapshots."""

    @abstractmethod
    def get_memory_info(self) -> list[MemoryInfo]:
        """Return the current memory state."""