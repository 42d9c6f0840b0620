"""Base collector for Typesense introspection endpoints"""
import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ValidationError

from collectors.exceptions import CollectorError, ParseError, StatusError, TransportError
from logging_config import get_logger
from metrics.models import NAMESPACE, MetricDescriptor, MetricType, MetricValue, build_fq_name
from utils.http_client import TypesenseClient


logger = get_logger(__name__)


def zero_if_null(value: Any) -> Any:
    """JSON null leaves a numeric field at zero"""
    return 0 if value is None else value


@dataclass
class CollectorResult:
    """Outcome of one collector update"""
    metrics: List[MetricValue] = field(default_factory=list)
    error: Optional[CollectorError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class StatCollector(ABC):
    """Fetches one upstream endpoint and maps its payload through a descriptor table.

    Subclasses declare the endpoint path, the subsystem used in metric names, the
    pydantic model the body decodes into and the descriptor table. Each instance
    owns its ``up`` gauge and its ``total_scrapes``/``json_parse_failures``
    counters for the lifetime of the process.
    """

    endpoint_path: str = ""
    subsystem: str = ""
    description: str = ""
    response_model = BaseModel

    def __init__(self, client: TypesenseClient, cluster: str, help_text: str = ""):
        self.client = client
        self.cluster = cluster
        self._help_text = help_text

        self.up = 0.0
        self.total_scrapes = 0
        self.json_parse_failures = 0

    @property
    def name(self) -> str:
        """Collector name for identification"""
        return self.subsystem

    @property
    def help_text(self) -> str:
        """Help text describing what this collector does"""
        return self._help_text or f"Typesense {self.description} collector"

    @property
    @abstractmethod
    def descriptors(self) -> List[MetricDescriptor]:
        """Static descriptor table evaluated on every successful scrape"""
        pass

    @property
    def url(self) -> str:
        return self.client.url_for(self.endpoint_path)

    async def update(self) -> CollectorResult:
        """Scrape the endpoint once.

        Health metrics are part of the result whatever the outcome; field
        metrics only when the fetch and decode succeeded.
        """
        self.total_scrapes += 1
        start = time.monotonic()

        try:
            resp = await self.fetch_and_decode()
            metrics = self.evaluate(resp)
        except ParseError as e:
            self.json_parse_failures += 1
            return self._fail(e, start)
        except CollectorError as e:
            return self._fail(e, start)

        self.up = 1.0
        logger.debug(
            f"Fetched {self.description} successfully",
            collector=self.name,
            duration_seconds=round(time.monotonic() - start, 6),
            metrics_count=len(metrics),
            event_type="collector_update",
        )
        return CollectorResult(metrics=metrics + self.health_metrics())

    def _fail(self, error: CollectorError, start: float) -> CollectorResult:
        self.up = 0.0
        logger.warning(
            f"Failed to fetch and decode {self.description}",
            collector=self.name,
            url=self.url,
            error=str(error),
            error_type=type(error).__name__,
            duration_seconds=round(time.monotonic() - start, 6),
            event_type="collector_error",
        )
        return CollectorResult(metrics=self.health_metrics(), error=error)

    async def fetch_and_decode(self) -> Any:
        """GET the endpoint and decode the body into ``response_model``.

        The client timeout bounds the whole call, from sending the request to
        the last byte of the body.
        """
        url = self.url
        timeout = self.client.timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        try:
            res = await asyncio.wait_for(self.client.get(self.endpoint_path), timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(f"failed to get {self.description}: timed out after {timeout}s", url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"failed to get {self.description}: {e}", url) from e

        try:
            if res.status_code != httpx.codes.OK:
                raise StatusError(res.status_code, url)

            try:
                body = await asyncio.wait_for(res.aread(), max(deadline - loop.time(), 0))
            except asyncio.TimeoutError as e:
                raise ParseError(f"failed to read response body: timed out after {timeout}s", url) from e
            except httpx.HTTPError as e:
                raise ParseError(f"failed to read response body: {e}", url) from e
        finally:
            await res.aclose()

        try:
            return self.response_model.model_validate_json(body)
        except ValidationError as e:
            raise ParseError(f"failed to decode response: {e}", url) from e

    def evaluate(self, resp: Any) -> List[MetricValue]:
        """Evaluate every descriptor in the table against a decoded response"""
        metrics = []
        for descriptor in self.descriptors:
            try:
                metrics.extend(descriptor.evaluate(resp, self.cluster))
            except ValueError as e:
                raise ParseError(f"invalid value for {descriptor.name}: {e}", self.url) from e
        return metrics

    def health_metrics(self) -> List[MetricValue]:
        """Current up gauge and scrape counters"""
        return [
            MetricValue(
                name=build_fq_name(NAMESPACE, self.subsystem, "up"),
                value=self.up,
                labels={},
                help_text=f"Was the last scrape of the Typesense {self.description} endpoint successful.",
                metric_type=MetricType.GAUGE,
            ),
            MetricValue(
                name=build_fq_name(NAMESPACE, self.subsystem, "total_scrapes"),
                value=self.total_scrapes,
                labels={},
                help_text=f"Current total Typesense {self.description} scrapes.",
                metric_type=MetricType.COUNTER,
            ),
            MetricValue(
                name=build_fq_name(NAMESPACE, self.subsystem, "json_parse_failures"),
                value=self.json_parse_failures,
                labels={},
                help_text="Number of errors while parsing JSON.",
                metric_type=MetricType.COUNTER,
            ),
        ]

    def get_status(self) -> Dict[str, Any]:
        """Status snapshot for the collectors endpoint"""
        return {
            "class": self.__class__.__name__,
            "help": self.help_text,
            "url": self.url,
            "up": self.up,
            "total_scrapes": self.total_scrapes,
            "json_parse_failures": self.json_parse_failures,
        }
