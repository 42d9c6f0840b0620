"""Cluster resource metrics collector (/metrics.json)"""
import re
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .base import StatCollector, zero_if_null
from metrics.models import LabeledValue, MetricDescriptor, MetricType, scalar, vector


SUBSYSTEM = "cluster_metrics"

CPU_CORE_FIELD = re.compile(r"^system_cpu(\d+)_active_percentage$")


class ClusterMetricsResponse(BaseModel):
    """Body of /metrics.json; every number arrives as a quoted string"""
    model_config = ConfigDict(extra="ignore")

    system_cpu_active_percentage: float = 0.0
    system_disk_total_bytes: int = 0
    system_disk_used_bytes: int = 0
    system_memory_total_bytes: int = 0
    system_memory_used_bytes: int = 0
    system_network_received_bytes: int = 0
    system_network_sent_bytes: int = 0
    typesense_memory_active_bytes: int = 0
    typesense_memory_allocated_bytes: int = 0
    typesense_memory_fragmentation_ratio: float = 0.0
    typesense_memory_mapped_bytes: int = 0
    typesense_memory_metadata_bytes: int = 0
    typesense_memory_resident_bytes: int = 0
    typesense_memory_retained_bytes: int = 0

    # system_cpu<N>_active_percentage, keyed by N
    system_cpu_cores: Dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def collect_cpu_cores(cls, data):
        """Gather the per-core CPU fields, whose count depends on the host"""
        if isinstance(data, dict):
            cores = {}
            for key, value in data.items():
                match = CPU_CORE_FIELD.match(key)
                if match:
                    cores[match.group(1)] = zero_if_null(value)
            data = {**data, "system_cpu_cores": cores}
        return data

    @field_validator("*", mode="before")
    @classmethod
    def null_is_zero(cls, v):
        return zero_if_null(v)


def cpu_core_values(resp: ClusterMetricsResponse) -> List[LabeledValue]:
    return [
        LabeledValue(labels=(core,), value=value)
        for core, value in sorted(resp.system_cpu_cores.items(), key=lambda item: int(item[0]))
    ]


CLUSTER_METRICS: List[MetricDescriptor] = [
    scalar(SUBSYSTEM, "memory_active_bytes",
           "Bytes in active pages allocated by Typesense.",
           lambda resp: resp.typesense_memory_active_bytes),
    scalar(SUBSYSTEM, "memory_allocated_bytes",
           "Bytes allocated by Typesense.",
           lambda resp: resp.typesense_memory_allocated_bytes),
    scalar(SUBSYSTEM, "memory_fragmentation_ratio",
           "Typesense memory fragmentation ratio.",
           lambda resp: resp.typesense_memory_fragmentation_ratio),
    scalar(SUBSYSTEM, "memory_mapped_bytes",
           "Bytes in extents mapped by the Typesense allocator.",
           lambda resp: resp.typesense_memory_mapped_bytes),
    scalar(SUBSYSTEM, "memory_metadata_bytes",
           "Bytes dedicated to Typesense allocator metadata.",
           lambda resp: resp.typesense_memory_metadata_bytes),
    scalar(SUBSYSTEM, "memory_resident_bytes",
           "Bytes in physically resident data pages mapped by Typesense.",
           lambda resp: resp.typesense_memory_resident_bytes),
    scalar(SUBSYSTEM, "memory_retained_bytes",
           "Bytes in virtual memory mappings retained by the Typesense allocator.",
           lambda resp: resp.typesense_memory_retained_bytes),
    scalar(SUBSYSTEM, "system_cpu_active_percentage",
           "Active CPU percentage across all cores.",
           lambda resp: resp.system_cpu_active_percentage),
    vector(SUBSYSTEM, "system_cpu_core_active_percentage",
           "Active CPU percentage per core.",
           ("cpu",), cpu_core_values),
    scalar(SUBSYSTEM, "system_disk_total_bytes",
           "Total disk size in bytes.",
           lambda resp: resp.system_disk_total_bytes),
    scalar(SUBSYSTEM, "system_disk_used_bytes",
           "Used disk space in bytes.",
           lambda resp: resp.system_disk_used_bytes),
    scalar(SUBSYSTEM, "system_memory_total_bytes",
           "Total system memory in bytes.",
           lambda resp: resp.system_memory_total_bytes),
    scalar(SUBSYSTEM, "system_memory_used_bytes",
           "Used system memory in bytes.",
           lambda resp: resp.system_memory_used_bytes),
    scalar(SUBSYSTEM, "system_network_received_bytes",
           "Bytes received over the network.",
           lambda resp: resp.system_network_received_bytes,
           metric_type=MetricType.COUNTER),
    scalar(SUBSYSTEM, "system_network_sent_bytes",
           "Bytes sent over the network.",
           lambda resp: resp.system_network_sent_bytes,
           metric_type=MetricType.COUNTER),
]


class ClusterMetricsCollector(StatCollector):
    """Collect memory, CPU, disk and network usage from /metrics.json"""

    endpoint_path = "/metrics.json"
    subsystem = SUBSYSTEM
    description = "cluster metrics"
    response_model = ClusterMetricsResponse

    @property
    def descriptors(self) -> List[MetricDescriptor]:
        return CLUSTER_METRICS
