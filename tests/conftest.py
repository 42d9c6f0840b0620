"""Shared fixtures for the exporter tests"""
import json

import httpx
import pytest

from support import API_KEY, API_STATS_BODY, CLUSTER_METRICS_BODY, TYPESENSE_URL, route_handler
from utils.http_client import TypesenseClient


@pytest.fixture
def make_client():
    """Factory for TypesenseClient instances backed by a mock transport"""
    def factory(routes, seen=None, base_url: str = TYPESENSE_URL, timeout: float = 1.0) -> TypesenseClient:
        return TypesenseClient(
            base_url,
            API_KEY,
            timeout=timeout,
            transport=httpx.MockTransport(route_handler(routes, seen)),
        )
    return factory


@pytest.fixture
def healthy_routes():
    return {
        "/metrics.json": dict(CLUSTER_METRICS_BODY),
        "/stats.json": json.loads(json.dumps(API_STATS_BODY)),
    }


@pytest.fixture(autouse=True)
def typesense_env(monkeypatch):
    """Minimal environment for Config()"""
    monkeypatch.setenv("TYPESENSE_API_KEY", API_KEY)
    monkeypatch.setenv("TYPESENSE_URL", TYPESENSE_URL)
