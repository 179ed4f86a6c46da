"""
Prometheus exporter for the Sentry exporter.
"""

from typing import Dict, Iterable, Iterator, List, Optional

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, Metric

from shared.config import LabelMode
from shared.logging import get_logger
from ..ingestion.collector import MetricFamily, Sample, label_names

NAMESPACE = "sentry"

FAMILY_DOCUMENTATION: Dict[MetricFamily, str] = {
    MetricFamily.ERRORS: "Total errors",
    MetricFamily.TRANSACTIONS: "Total transactions",
}


class ScrapeSnapshot:
    """Registry-like view over one scrape: the service's own metrics plus
    the Sentry families built from that scrape's samples."""

    def __init__(self, families: Iterable[Metric], registry: Optional[CollectorRegistry] = None):
        self.families = list(families)
        self.registry = registry

    def collect(self) -> Iterator[Metric]:
        if self.registry is not None:
            yield from self.registry.collect()
        yield from self.families


class PrometheusExporter:
    """Exports Sentry samples in the Prometheus text format."""

    def __init__(self, label_mode: LabelMode = LabelMode.WITH_SLUG, registry: Optional[CollectorRegistry] = None):
        self.label_mode = label_mode
        self.registry = registry
        self.logger = get_logger("sentry_exporter.exporter.prometheus")

    def build_families(self, samples: Iterable[Sample]) -> List[CounterMetricFamily]:
        """Group samples into one counter family per metric family.

        Both families are always present, possibly without samples.
        """
        names = list(label_names(self.label_mode))
        families = {
            family: CounterMetricFamily(
                f"{NAMESPACE}_{family.value}",
                FAMILY_DOCUMENTATION[family],
                labels=names,
            )
            for family in MetricFamily
        }

        for sample in samples:
            families[sample.family].add_metric(
                [sample.labels.get(name, "") for name in names],
                sample.value,
            )

        return list(families.values())

    def export_samples(self, samples: Iterable[Sample]) -> bytes:
        """Render samples, preceded by the service's own metrics."""
        snapshot = ScrapeSnapshot(self.build_families(samples), self.registry)
        return generate_latest(snapshot)
