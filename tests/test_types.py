from dataclasses import asdict, replace

import pytest

from smimetrics.types import (
    AppleSiliconCpuInfo,
    CpuInfo,
    CpuPlatform,
    CpuPlatformType,
    CpuReader,
    CpuSocketInfo,
    GpuInfo,
    GpuReader,
    MemoryInfo,
    MemoryReader,
    ProcessInfo,
    StorageInfo,
)


def test_other_platform_carries_name():
    platform = CpuPlatformType.other("RISC-V")
    assert platform.platform is CpuPlatform.OTHER
    assert platform.name == "RISC-V"


def test_other_platforms_compare_by_name():
    assert CpuPlatformType.other("Unknown") == CpuPlatformType.other("Unknown")
    assert CpuPlatformType.other("Unknown") != CpuPlatformType.other("Mystery")
    assert CpuPlatformType.other("Intel") != CpuPlatformType.INTEL


def test_named_platforms_are_distinct():
    named = {
        CpuPlatformType.INTEL,
        CpuPlatformType.AMD,
        CpuPlatformType.APPLE_SILICON,
        CpuPlatformType.ARM,
    }
    assert len(named) == 4
    assert CpuPlatformType.INTEL == CpuPlatformType(CpuPlatform.INTEL)


def test_other_without_name_is_rejected():
    with pytest.raises(ValueError):
        CpuPlatformType(CpuPlatform.OTHER)


def test_named_platform_with_name_is_rejected():
    with pytest.raises(ValueError):
        CpuPlatformType(CpuPlatform.AMD, "Zen")


def test_gpu_detail_maps_are_independent():
    first = GpuInfo(uuid="GPU-1")
    second = GpuInfo(uuid="GPU-2")
    first.detail["index"] = "0"
    assert second.detail == {}


def test_gpu_info_round_trips_through_dict():
    gpu = GpuInfo(
        uuid="GPU-12345",
        name="NVIDIA H200 141GB HBM3",
        hostname="node-0058",
        utilization=25.5,
        used_memory=8589934592,
        total_memory=34359738368,
        detail={"index": "0"},
    )
    assert GpuInfo(**asdict(gpu)) == gpu


def test_cpu_info_round_trips_through_dict_with_nested_records():
    cpu = CpuInfo(
        hostname="node-0058",
        cpu_model="Apple M2 Max",
        platform_type=CpuPlatformType.APPLE_SILICON,
        per_socket_info=[CpuSocketInfo(socket_id=0, cores=12)],
        apple_silicon_info=AppleSiliconCpuInfo(p_core_count=8, e_core_count=4),
    )
    data = asdict(cpu)
    rebuilt = CpuInfo(
        **{
            **data,
            "platform_type": CpuPlatformType(**data["platform_type"]),
            "per_socket_info": [CpuSocketInfo(**s) for s in data["per_socket_info"]],
            "apple_silicon_info": AppleSiliconCpuInfo(**data["apple_silicon_info"]),
        }
    )
    assert rebuilt == cpu


def test_replace_keeps_other_fields():
    memory = MemoryInfo(hostname="node-0058", total_bytes=137438953472)
    updated = replace(memory, used_bytes=68719476736)
    assert updated.total_bytes == memory.total_bytes
    assert updated.hostname == memory.hostname
    assert updated.used_bytes == 68719476736


def test_storage_and_process_records_hold_values():
    storage = StorageInfo(mount_point="/home", total_bytes=1099511627776, index=1)
    process = ProcessInfo(pid=42, uses_gpu=True, device_uuid="GPU-12345")
    assert (storage.mount_point, storage.index) == ("/home", 1)
    assert process.uses_gpu and process.pid == 42


@pytest.mark.parametrize("reader", [GpuReader, CpuReader, MemoryReader])
def test_readers_are_abstract(reader):
    with pytest.raises(TypeError):
        reader()


def test_concrete_readers_return_their_records():
    gpus = [GpuInfo(uuid="GPU-1")]
    processes = [ProcessInfo(pid=7)]
    cpus = [CpuInfo(hostname="a")]
    memories = [MemoryInfo(hostname="a")]

    class FixedGpu(GpuReader):
        def get_gpu_info(self):
            return gpus

        def get_process_info(self):
            return processes

    class FixedCpu(CpuReader):
        def get_cpu_info(self):
            return cpus

    class FixedMemory(MemoryReader):
        def get_memory_info(self):
            return memories

    gpu_reader = FixedGpu()
    assert gpu_reader.get_gpu_info() == [GpuInfo(uuid="GPU-1")]
    assert gpu_reader.get_process_info() == [ProcessInfo(pid=7)]
    assert FixedCpu().get_cpu_info() == [CpuInfo(hostname="a")]
    assert FixedMemory().get_memory_info() == [MemoryInfo(hostname="a")]


def test_incomplete_reader_subclass_cannot_be_built():
    record = GpuInfo(uuid="GPU-9")

    class HalfGpu(GpuReader):
        def get_gpu_info(self):
            return [record]

    class FullGpu(HalfGpu):
        def get_process_info(self):
            return []

    with pytest.raises(TypeError):
        HalfGpu()
    assert FullGpu().get_gpu_info() == [GpuInfo(uuid="GPU-9")]