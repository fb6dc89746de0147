# smimetrics

Tools for working with accelerator and host metrics gathered from a fleet of
machines. The package reads the Prometheus-style text that metric exporters
serve, turns it into typed records for GPUs and NPUs, CPUs, memory and
storage, and rolls those records up into cluster-wide and per-host
statistics, trends, baselines and health checks.

No third-party libraries are needed at run time.

## Installation

```
pip install smimetrics
```

## Records

`smimetrics.types` holds plain dataclasses: `GpuInfo`, `ProcessInfo`,
`CpuInfo`, `CpuSocketInfo`, `AppleSiliconCpuInfo`, `MemoryInfo` and
`StorageInfo`. A CPU's platform is a `CpuPlatformType`. It has the shared
values `CpuPlatformType.INTEL`, `AMD`, `APPLE_SILICON` and `ARM`, and
`CpuPlatformType.other(name)` for anything else. Its `platform` member is a
`CpuPlatform` enum.

`GpuReader`, `CpuReader` and `MemoryReader` are abstract base classes for
code that collects these records. `GpuReader` has `get_gpu_info` and
`get_process_info`, `CpuReader` has `get_cpu_info`, and `MemoryReader` has
`get_memory_info`.

## Parsing exporter output

```python
import re
from smimetrics.metrics_parser import parse_metrics

pattern = re.compile(r"^all_smi_([^\{]+)\{([^}]+)\} ([\d\.]+)$")

text = '''
all_smi_gpu_utilization{gpu="Example GPU", instance="node-01", uuid="GPU-0000", index="0"} 25.5
all_smi_cpu_utilization{cpu_model="Intel Xeon", instance="node-01", index="0"} 45.2
all_smi_memory_total_bytes{instance="node-01", index="0"} 68719476736
all_smi_disk_total_bytes{instance="node-01", mount_point="/", index="0"} 2199023255552
'''

parsed = parse_metrics(text, "10.0.0.1:9090", pattern)
for gpu in parsed.gpu_info:
    print(gpu.name, gpu.utilization, gpu.hostname)

gpus, cpus, memory, storage = parsed  # ParsedMetrics unpacks as four lists
```

`parse_metrics(text, host, pattern)` takes a compiled pattern or a pattern
string. The pattern must capture three groups, in this order:

1. the metric name;
2. the label text;
3. the value.

The function returns a `ParsedMetrics` with the lists `gpu_info`,
`cpu_info`, `memory_info` and `storage_info`.

Which records a metric feeds depends on its name:

- `gpu_`, `npu_` or `ane_utilization` go to accelerators, keyed by `uuid`;
- `cpu_` goes to CPUs, keyed by `host:index`;
- `memory_` goes to memory, keyed by `host:index`;
- `disk_` or `storage_` goes to storage, keyed by `host:mount_point`.

Some lines are skipped:

- lines the pattern does not match;
- accelerator lines without both a `gpu` and a `uuid` label;
- disk lines without a `mount_point` label.

A value that is not a number counts as `0.0`. The `instance` label, where
present, becomes the record's `hostname` and `instance`; otherwise the
`host` argument is used. The first `instance` label seen is also stored as
`detail["instance_name"]` on every accelerator.

The building blocks are public in `smimetrics.metric_handlers`:

- `parse_labels(labels_str)`;
- `process_gpu_metric`, `process_cpu_metric`, `process_memory_metric` and
  `process_storage_metric`.

Each `process_*` function takes `(record_map, metric_name, labels, value, host)`.
It updates or creates one record in the map and returns it. The GPU and
storage functions return `None` for a metric they ignore.

## Aggregating

```python
from smimetrics.aggregator import aggregate_gpu_metrics, aggregate_by_host

summary = aggregate_gpu_metrics(parsed.gpu_info)
print(summary.total_gpus, summary.avg_utilization, summary.total_memory_gb)

per_host = aggregate_by_host(parsed.gpu_info, parsed.cpu_info, parsed.memory_info)
```

`aggregate_gpu_metrics`, `aggregate_cpu_metrics` and
`aggregate_memory_metrics` return `GpuClusterMetrics`, `CpuClusterMetrics`
and `MemoryClusterMetrics`. Empty input gives all-zero results. Memory
sizes are in GiB.

A few figures need care:

- The GPU temperature spread (`temp_std_dev`) is a sample standard
  deviation, so it is NaN for a single device.
- Apple Silicon CPUs count performance plus efficiency cores.
- The average CPU temperature divides by the number of CPU records, whether
  or not each one reports a temperature.

`aggregate_by_host` returns a dict of `HostMetrics` keyed by hostname.

## Trends, baselines and health

`smimetrics.coordinator` provides three plain functions over a history:

- `calculate_trend(history)` returns `Trend.INCREASING`, `DECREASING`,
  `STABLE` or `INSUFFICIENT`. It fits a least-squares line over the last
  ten values and compares the slope against ±0.5. Fewer than two values
  give `INSUFFICIENT`.
- `calculate_baseline(history)` returns a `Baseline` with the mean,
  population standard deviation, minimum and maximum. It returns `None`
  below ten values.
- `calculate_confidence(data_points)` returns the share of 100 points
  reached, scaled to at most 0.95.

`MetricsCoordinator(state, history_max_entries)` works on a shared
`MetricsState` and guards it with the state's lock. Its methods:

- `update_cluster_metrics` appends the current average GPU utilisation,
  memory utilisation and GPU temperature to the histories, then trims each
  to `history_max_entries`.
- `update_host_metrics` returns per-host aggregates.
- `get_trend_analysis` returns a `TrendAnalysis`.
- `calculate_baselines` returns a `PerformanceBaselines`.
- `get_cluster_health` returns a `ClusterHealth` with a `HealthStatus` and
  a tuple of issues.

Health is judged in this order:

1. **No data**: there are no GPU records.
2. **Critical**: GPU utilisation, GPU temperature or memory utilisation is
   above 95 %, 90 °C or 95 %.
3. **Warning**: any of them is above 85 %, 80 °C or 85 %, or the GPU
   temperature spread is above 10.
4. **Healthy**: none of the above.

```python
from smimetrics.coordinator import MetricsCoordinator, MetricsState

state = MetricsState(
    gpu_info=parsed.gpu_info,
    cpu_info=parsed.cpu_info,
    memory_info=parsed.memory_info,
)
coordinator = MetricsCoordinator(state, 1000)
coordinator.update_cluster_metrics()
print(coordinator.get_cluster_health())
```

## What this package does not do

This is a library with no command-line program, server or terminal display.

- It does not fetch metrics over the network. Obtaining the exporter text
  is left to the caller.
- It does not read GPUs, NPUs, CPUs, memory or processes on the local
  machine. The reader classes are interfaces only, with no implementations
  included.

## Running the tests

```
pip install "smimetrics[test]"
pytest
```