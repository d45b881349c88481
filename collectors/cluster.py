"""InnoDB Cluster status collector"""
import threading
import time
from typing import Callable, Dict, Iterable, Optional, Tuple
from prometheus_client import Counter, Gauge
from prometheus_client.metrics_core import Metric
from metrics.models import MetricDescriptor, NAMESPACE
from logging_config import get_logger, log_scrape
from .parser import parse_cluster_status
from .probe import ClusterStatusProbe, ProbeError


logger = get_logger(__name__)


class InnoDBClusterCollector:
    """Custom Prometheus collector that scrapes the cluster on every collect() call.

    Gauges are created unregistered and owned by the collector; the lock
    serializes scrapes so concurrent requests never interleave updates.
    A failed probe keeps the last known gauge values and only flips ``up``.
    """

    def __init__(self, config, descriptors: Tuple[MetricDescriptor, ...], fetch: Optional[Callable[[], bytes]] = None):
        self.config = config
        self.descriptors = descriptors
        self._fetch = fetch or ClusterStatusProbe(
            config.mysql_connection_string,
            binary=config.mysqlsh_path,
            timeout=config.probe_timeout,
        )
        self._lock = threading.Lock()

        self.up = Gauge(
            "up", "Was the last scrape of MySQL successful.",
            namespace=NAMESPACE, registry=None
        )
        self.total_scrapes = Counter(
            "exporter_scrapes", "Current total MySQL scrapes.",
            namespace=NAMESPACE, registry=None
        )
        self.metrics: Dict[str, Gauge] = {
            descriptor.name: Gauge(descriptor.name, descriptor.help_text, namespace=NAMESPACE, registry=None)
            for descriptor in descriptors
        }

        # Read by the health endpoint without taking the lock
        self.scrape_count = 0
        self.last_scrape_time = 0.0
        self.last_scrape_success = False

    def describe(self) -> Iterable[Metric]:
        """Static metric metadata, used at registration so no scrape happens"""
        yield from self.up.describe()
        yield from self.total_scrapes.describe()
        for gauge in self.metrics.values():
            yield from gauge.describe()

    def collect(self) -> Iterable[Metric]:
        with self._lock:
            self.scrape()
            families = list(self.up.collect())
            families.extend(self.total_scrapes.collect())
            for gauge in self.metrics.values():
                families.extend(gauge.collect())
        return families

    def scrape(self) -> bool:
        """Run one probe and update gauge state; callers must hold the lock"""
        start_time = time.time()
        self.total_scrapes.inc()
        self.scrape_count += 1

        try:
            body = self._fetch()
        except ProbeError as e:
            self.up.set(0)
            self.last_scrape_success = False
            logger.error("Can't scrape MySQL", error=str(e), event_type="scrape_error")
        else:
            self.up.set(1)
            self.last_scrape_success = True
            self.update(body)

        self.last_scrape_time = time.time()
        log_scrape(logger, self.last_scrape_success, self.last_scrape_time - start_time, self.scrape_count)
        return self.last_scrape_success

    def update(self, body: bytes) -> None:
        """Set every enabled gauge from a probe result"""
        value = parse_cluster_status(body)
        for gauge in self.metrics.values():
            gauge.set(value)
