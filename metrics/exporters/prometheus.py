"""Prometheus text exposition format encoder"""
from typing import Dict, List

from metrics.models import MetricValue


CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


class PrometheusExporter:
    """Render collected metrics in the Prometheus text format"""

    content_type = CONTENT_TYPE

    def export_metrics(self, metrics: List[MetricValue]) -> str:
        """Generate Prometheus exposition format output"""
        lines = []

        # Group metrics by name to add HELP and TYPE comments once per family
        metrics_by_name = self._group_metrics_by_name(metrics)

        for metric_name, metric_list in metrics_by_name.items():
            help_text = metric_list[0].help_text
            if help_text:
                lines.append(f"# HELP {metric_name} {escape_help(help_text)}")

            lines.append(f"# TYPE {metric_name} {metric_list[0].metric_type.value}")

            for metric in metric_list:
                lines.append(metric.to_prometheus_line())

        lines.append("")  # Final newline
        return "\n".join(lines)

    def _group_metrics_by_name(self, metrics: List[MetricValue]) -> Dict[str, List[MetricValue]]:
        """Group metrics by name, preserving order"""
        grouped = {}
        for metric in metrics:
            if metric.name not in grouped:
                grouped[metric.name] = []
            grouped[metric.name].append(metric)
        return grouped
