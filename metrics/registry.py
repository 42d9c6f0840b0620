"""Metrics registry fanning a scrape out to every collector"""
import asyncio
import platform
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .models import NAMESPACE, MetricType, MetricValue, build_fq_name
from collectors.base import CollectorResult, StatCollector
from collectors.api_stats import APIStatsCollector
from collectors.cluster_metrics import ClusterMetricsCollector
from logging_config import get_logger
from utils.http_client import TypesenseClient


logger = get_logger(__name__)

SCRAPE_DURATION = build_fq_name(NAMESPACE, "scrape", "duration_seconds")
SCRAPE_SUCCESS = build_fq_name(NAMESPACE, "scrape", "success")
BUILD_INFO = build_fq_name(NAMESPACE, "exporter", "build_info")


@dataclass
class ScrapeHealth:
    """Timing and outcome of one collector within one scrape"""
    collector: str
    duration: float
    success: bool

    def to_metrics(self) -> List[MetricValue]:
        labels = {"collector": self.collector}
        return [
            MetricValue(
                name=SCRAPE_DURATION,
                value=self.duration,
                labels=labels,
                help_text="typesense_exporter: Duration of a collector scrape.",
                metric_type=MetricType.GAUGE,
            ),
            MetricValue(
                name=SCRAPE_SUCCESS,
                value=1.0 if self.success else 0.0,
                labels=dict(labels),
                help_text="typesense_exporter: Whether a collector succeeded.",
                metric_type=MetricType.GAUGE,
            ),
        ]


class MetricsRegistry:
    """Holds the fixed set of collectors and runs them concurrently on every scrape"""

    def __init__(self, config=None, client: Optional[TypesenseClient] = None,
                 collectors: Optional[Iterable[StatCollector]] = None):
        self.config = config
        self.client = client
        self.collectors: Dict[str, StatCollector] = {}

        if collectors is None:
            collectors = self._default_collectors()
        for collector in collectors:
            self.collectors[collector.name] = collector
            logger.info(f"Registered collector: {collector.name}")

    def _default_collectors(self) -> List[StatCollector]:
        if self.client is None:
            raise ValueError("A Typesense client is required to build the default collectors")
        cluster = self.config.typesense_url if self.config is not None else self.client.base_url
        return [
            ClusterMetricsCollector(self.client, cluster),
            APIStatsCollector(self.client, cluster),
        ]

    def get_collector(self, name: str) -> Optional[StatCollector]:
        """Get collector by name"""
        return self.collectors.get(name)

    def list_collectors(self) -> List[str]:
        """List all registered collector names"""
        return list(self.collectors.keys())

    async def collect_all_async(self) -> List[MetricValue]:
        """Run every collector concurrently and merge their output"""
        metrics, _ = await self.collect_with_errors()
        return metrics

    async def collect_with_errors(self) -> Tuple[List[MetricValue], int]:
        """Run every collector concurrently; also count the collectors that failed.

        Returns only after every collector has finished; each contributes its
        own metrics plus a duration and success sample.
        """
        names = list(self.collectors)
        results = await asyncio.gather(
            *(self._collect_single_async(name, self.collectors[name]) for name in names)
        )

        all_metrics = []
        errors = 0
        for collector_metrics, health in results:
            all_metrics.extend(collector_metrics)
            all_metrics.extend(health.to_metrics())
            if not health.success:
                errors += 1

        return all_metrics, errors

    async def _collect_single_async(self, name: str, collector: StatCollector):
        """Time one collector's update and turn its outcome into a health record"""
        begin = time.perf_counter()
        try:
            result = await collector.update()
        except Exception as e:
            logger.error(
                "Collector raised unexpectedly",
                name=name,
                error=str(e),
                event_type="collection_error",
                exc_info=True,
            )
            result = CollectorResult(error=e)
        duration = time.perf_counter() - begin

        if result.success:
            logger.debug("collector succeeded", name=name, duration_seconds=duration,
                         event_type="collection_complete")
        else:
            logger.error("collector failed", name=name, duration_seconds=duration,
                         error=str(result.error), event_type="collection_error")

        return result.metrics, ScrapeHealth(collector=name, duration=duration, success=result.success)

    def build_info(self) -> MetricValue:
        """Constant metric describing the running exporter"""
        version = getattr(self.config, "service_version", "unknown")
        return MetricValue(
            name=BUILD_INFO,
            value=1.0,
            labels={"version": version, "python_version": platform.python_version()},
            help_text="A metric with a constant '1' value labeled by version from which typesense_exporter was built.",
            metric_type=MetricType.GAUGE,
        )

    def get_collector_status(self) -> Dict[str, Dict]:
        """Get status information for all collectors"""
        return {name: collector.get_status() for name, collector in self.collectors.items()}

    async def cleanup(self):
        """Release the shared HTTP client"""
        if self.client is not None:
            await self.client.aclose()
