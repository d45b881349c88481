"""Metrics registry wiring the cluster collector into a Prometheus collector registry"""
import logging
from typing import Tuple
from prometheus_client import CollectorRegistry, Info, generate_latest, CONTENT_TYPE_LATEST
from .models import MetricDescriptor, NAMESPACE


logger = logging.getLogger(__name__)


# Static table of exported cluster gauges. Each entry gets a --collect.<name> flag.
ALL_METRICS: Tuple[MetricDescriptor, ...] = (
    MetricDescriptor(
        name="default_replica_set_status",
        help_text="Status of the default replica set (1 = OK, 0 = NOT OK).",
    ),
)


def select_metrics(config, descriptors: Tuple[MetricDescriptor, ...] = ALL_METRICS) -> Tuple[MetricDescriptor, ...]:
    """Return the descriptors enabled by configuration"""
    selected = tuple(
        descriptor for descriptor in descriptors
        if config.is_metric_enabled(descriptor.name, descriptor.default_enabled)
    )
    for descriptor in descriptors:
        if descriptor not in selected:
            logger.info(f"Metric disabled: {descriptor.full_name}")
    return selected


class MetricsRegistry:
    """Central registry holding the exporter's collectors"""

    def __init__(self, config, collector):
        self.config = config
        self.collector = collector
        self.registry = CollectorRegistry(auto_describe=True)
        self.registry.register(collector)

        build_info = Info("build", "Exporter build information.", namespace=NAMESPACE, registry=self.registry)
        build_info.info({"version": config.service_version, "service": config.service_name})

    def render(self) -> Tuple[bytes, str]:
        """Scrape all collectors and serialize in the exposition format"""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
