"""API usage statistics collector (/stats.json)"""
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .base import StatCollector, zero_if_null
from .exceptions import ParseError
from metrics.models import LabeledValue, MetricDescriptor, scalar, vector


SUBSYSTEM = "api_stats"


class APIStatsResponse(BaseModel):
    """Body of /stats.json"""
    model_config = ConfigDict(extra="ignore")

    delete_latency_ms: float = 0.0
    delete_requests_per_second: float = 0.0
    import_latency_ms: float = 0.0
    import_requests_per_second: float = 0.0
    latency_ms: Dict[str, float] = Field(default_factory=dict)
    overloaded_requests_per_second: float = 0.0
    pending_write_batches: float = 0.0
    requests_per_second: Dict[str, float] = Field(default_factory=dict)
    search_latency_ms: float = 0.0
    search_requests_per_second: float = 0.0
    total_requests_per_second: float = 0.0
    write_latency_ms: float = 0.0
    write_requests_per_second: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def null_is_zero(cls, v, info: ValidationInfo):
        if info.field_name in ("latency_ms", "requests_per_second"):
            if v is None:
                return {}
            if isinstance(v, dict):
                return {key: zero_if_null(value) for key, value in v.items()}
            return v
        return zero_if_null(v)


def split_stat_key(key: str) -> Tuple[str, str]:
    """Split a ``"METHOD /endpoint"`` key into its method and endpoint.

    The upstream joins the two with a single space. Anything else is rejected
    rather than guessed at.
    """
    parts = key.split(" ")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ParseError(f"malformed stat key {key!r}, expected 'METHOD /endpoint'")
    return parts[0], parts[1]


def per_endpoint(stats: Dict[str, float], scale: float = 1.0) -> List[LabeledValue]:
    """One labeled value per ``"METHOD /endpoint"`` entry"""
    values = []
    for key, value in stats.items():
        method, endpoint = split_stat_key(key)
        values.append(LabeledValue(labels=(method, endpoint), value=value / scale))
    return values


def ms_to_seconds(value: float) -> float:
    return value / 1000.0


API_METRICS: List[MetricDescriptor] = [
    scalar(SUBSYSTEM, "delete_latency_seconds",
           "Average latency of delete requests in seconds.",
           lambda resp: ms_to_seconds(resp.delete_latency_ms)),
    scalar(SUBSYSTEM, "delete_requests_per_second",
           "Delete requests per second.",
           lambda resp: resp.delete_requests_per_second),
    scalar(SUBSYSTEM, "import_latency_seconds",
           "Average latency of import requests in seconds.",
           lambda resp: ms_to_seconds(resp.import_latency_ms)),
    scalar(SUBSYSTEM, "import_requests_per_second",
           "Import requests per second.",
           lambda resp: resp.import_requests_per_second),
    scalar(SUBSYSTEM, "overloaded_requests_per_second",
           "Requests per second rejected because the node was overloaded.",
           lambda resp: resp.overloaded_requests_per_second),
    scalar(SUBSYSTEM, "pending_write_batches",
           "Write batches waiting to be applied.",
           lambda resp: resp.pending_write_batches),
    scalar(SUBSYSTEM, "search_latency_seconds",
           "Average latency of search requests in seconds.",
           lambda resp: ms_to_seconds(resp.search_latency_ms)),
    scalar(SUBSYSTEM, "search_requests_per_second",
           "Search requests per second.",
           lambda resp: resp.search_requests_per_second),
    scalar(SUBSYSTEM, "total_requests_per_second",
           "Total requests per second.",
           lambda resp: resp.total_requests_per_second),
    scalar(SUBSYSTEM, "write_latency_seconds",
           "Average latency of write requests in seconds.",
           lambda resp: ms_to_seconds(resp.write_latency_ms)),
    scalar(SUBSYSTEM, "write_requests_per_second",
           "Write requests per second.",
           lambda resp: resp.write_requests_per_second),
]

API_STATS: List[MetricDescriptor] = [
    vector(SUBSYSTEM, "latency_seconds",
           "Average request latency per endpoint in seconds.",
           ("method", "endpoint"),
           lambda resp: per_endpoint(resp.latency_ms, scale=1000.0)),
    vector(SUBSYSTEM, "requests_per_second",
           "Requests per second per endpoint.",
           ("method", "endpoint"),
           lambda resp: per_endpoint(resp.requests_per_second)),
]


class APIStatsCollector(StatCollector):
    """Collect request rates and latencies from /stats.json"""

    endpoint_path = "/stats.json"
    subsystem = SUBSYSTEM
    description = "API stats"
    response_model = APIStatsResponse

    @property
    def descriptors(self) -> List[MetricDescriptor]:
        return API_METRICS + API_STATS
