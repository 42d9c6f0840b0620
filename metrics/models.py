"""Metric data models and descriptors"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Tuple
from enum import Enum


NAMESPACE = "typesense"


class MetricType(Enum):
    """Prometheus metric types"""
    COUNTER = "counter"
    GAUGE = "gauge"


def build_fq_name(*parts: str) -> str:
    """Join non-empty name parts with underscores"""
    return "_".join(part for part in parts if part)


def escape_label_value(value: str) -> str:
    """Escape a label value for the text exposition format"""
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def format_sample_value(value: float) -> str:
    """Render a sample value the way Prometheus parses it"""
    if value != value:
        return "NaN"
    if value == float("inf"):
        return "+Inf"
    if value == float("-inf"):
        return "-Inf"
    return repr(float(value))


@dataclass
class MetricValue:
    """Represents a single metric sample"""
    name: str
    value: float
    labels: Dict[str, str]
    help_text: str
    metric_type: MetricType = MetricType.GAUGE

    def __post_init__(self):
        # Ensure labels is never None
        if self.labels is None:
            self.labels = {}

    def to_prometheus_line(self) -> str:
        """Convert to Prometheus exposition format"""
        labels_str = ""
        if self.labels:
            label_pairs = [f'{k}="{escape_label_value(v)}"' for k, v in self.labels.items()]
            labels_str = "{" + ",".join(label_pairs) + "}"

        return f"{self.name}{labels_str} {format_sample_value(self.value)}"


@dataclass(frozen=True)
class LabeledValue:
    """One entry of a vector metric: label values in schema order plus the value"""
    labels: Tuple[str, ...]
    value: float


@dataclass(frozen=True)
class MetricDescriptor:
    """Static definition of one exposed metric.

    Scalar descriptors extract exactly one value from a decoded response and are
    labeled with the cluster only. Vector descriptors return any number of
    :class:`LabeledValue` entries whose labels line up with ``label_names``.
    """
    name: str
    help_text: str
    value: Callable[[Any], Any]
    metric_type: MetricType = MetricType.GAUGE
    label_names: Tuple[str, ...] = ("cluster",)
    vector: bool = False

    def __post_init__(self):
        if not self.label_names:
            raise ValueError(f"Descriptor {self.name} must declare at least one label")

    def evaluate(self, resp: Any, cluster: str) -> List[MetricValue]:
        """Evaluate the descriptor against a decoded response"""
        if not self.vector:
            return [self._sample((cluster,), self.value(resp))]

        entries: Iterable[LabeledValue] = self.value(resp)
        return [self._sample((cluster,) + entry.labels, entry.value) for entry in entries]

    def _sample(self, label_values: Tuple[str, ...], value: float) -> MetricValue:
        if len(label_values) != len(self.label_names):
            raise ValueError(
                f"Metric {self.name} expects labels {self.label_names}, got {label_values}"
            )
        if any(not v for v in label_values):
            raise ValueError(f"Metric {self.name} received an empty label value: {label_values}")

        return MetricValue(
            name=self.name,
            value=float(value),
            labels=dict(zip(self.label_names, label_values)),
            help_text=self.help_text,
            metric_type=self.metric_type,
        )


def scalar(subsystem: str, name: str, help_text: str, value: Callable[[Any], float],
           metric_type: MetricType = MetricType.GAUGE) -> MetricDescriptor:
    """Build a scalar descriptor labeled by cluster"""
    return MetricDescriptor(
        name=build_fq_name(NAMESPACE, subsystem, name),
        help_text=help_text,
        value=value,
        metric_type=metric_type,
    )


def vector(subsystem: str, name: str, help_text: str, label_names: Tuple[str, ...],
           value: Callable[[Any], List[LabeledValue]],
           metric_type: MetricType = MetricType.GAUGE) -> MetricDescriptor:
    """Build a vector descriptor; ``label_names`` excludes the leading cluster label"""
    return MetricDescriptor(
        name=build_fq_name(NAMESPACE, subsystem, name),
        help_text=help_text,
        value=value,
        metric_type=metric_type,
        label_names=("cluster",) + tuple(label_names),
        vector=True,
    )
