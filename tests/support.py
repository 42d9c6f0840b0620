"""Payloads and helpers shared by the test modules"""
import asyncio
import json
from typing import Callable, Dict, Union

import httpx


TYPESENSE_URL = "http://typesense.test:8108"
API_KEY = "test-api-key"

CLUSTER_METRICS_BODY = {
    "system_cpu1_active_percentage": "10.00",
    "system_cpu2_active_percentage": "20.50",
    "system_cpu_active_percentage": "15.25",
    "system_disk_total_bytes": "102888095744",
    "system_disk_used_bytes": "4177268736",
    "system_memory_total_bytes": "16764186624",
    "system_memory_used_bytes": "3234750464",
    "system_network_received_bytes": "1234567",
    "system_network_sent_bytes": "7654321",
    "typesense_memory_active_bytes": "29298688",
    "typesense_memory_allocated_bytes": "27440560",
    "typesense_memory_fragmentation_ratio": "0.06",
    "typesense_memory_mapped_bytes": "69771264",
    "typesense_memory_metadata_bytes": "4573376",
    "typesense_memory_resident_bytes": "29298688",
    "typesense_memory_retained_bytes": "25624576",
}

API_STATS_BODY = {
    "delete_latency_ms": 2.0,
    "delete_requests_per_second": 0.5,
    "import_latency_ms": 250.0,
    "import_requests_per_second": 1.5,
    "latency_ms": {
        "GET /search": 123.0,
        "POST /documents": 40.0,
    },
    "overloaded_requests_per_second": 0.0,
    "pending_write_batches": 3,
    "requests_per_second": {
        "GET /search": 12.5,
        "POST /documents": 3.0,
    },
    "search_latency_ms": 123.0,
    "search_requests_per_second": 12.5,
    "total_requests_per_second": 15.5,
    "write_latency_ms": 40.0,
    "write_requests_per_second": 3.0,
}


Route = Union[dict, str, int, httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class BrokenStream(httpx.AsyncByteStream):
    """Response body that fails while being read"""

    async def __aiter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


class SlowStream(httpx.AsyncByteStream):
    """Response body trickling out one chunk per interval"""

    def __init__(self, chunks, interval: float):
        self.chunks = chunks
        self.interval = interval

    async def __aiter__(self):
        for chunk in self.chunks:
            await asyncio.sleep(self.interval)
            yield chunk


def route_handler(routes: Dict[str, Route], seen=None):
    """Build a MockTransport handler answering per request path.

    A dict is served as JSON, a str as a raw body, an int as an empty response
    with that status, an exception is raised as a transport failure.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="Not Found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, dict):
            return httpx.Response(200, content=json.dumps(route).encode("utf-8"))
        if isinstance(route, str):
            return httpx.Response(200, content=route.encode("utf-8"))
        if isinstance(route, int):
            return httpx.Response(route)
        return route(request)

    return handler


def samples(metrics, name):
    """All samples with the given metric name"""
    return [m for m in metrics if m.name == name]


def sample_value(metrics, name, **labels):
    """Value of the single sample matching name and labels"""
    matching = [m for m in samples(metrics, name) if all(m.labels.get(k) == v for k, v in labels.items())]
    assert len(matching) == 1, f"expected one sample of {name} {labels}, got {matching}"
    return matching[0].value
