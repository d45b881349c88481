"""Tests for the InnoDB Cluster collector"""
import threading
import time
from unittest.mock import Mock
from prometheus_client import CollectorRegistry, generate_latest

from config import Config
from collectors.cluster import InnoDBClusterCollector
from collectors.probe import ProbeError
from metrics.models import MetricDescriptor
from metrics.registry import ALL_METRICS, MetricsRegistry, select_metrics


GOOD_STATUS = b'{"clusterName":"test","defaultReplicaSet":{"name":"default","status":"OK"}}'
BAD_STATUS = b"FOOBAR"

UP = "mysql_innodb_cluster_exporter_up"
SCRAPES = "mysql_innodb_cluster_exporter_exporter_scrapes_total"
STATUS = "mysql_innodb_cluster_exporter_default_replica_set_status"


def sample_values(collector):
    """Run one collect() and index sample values by name"""
    return {
        sample.name: sample.value
        for family in collector.collect()
        for sample in family.samples
    }


class TestInnoDBClusterCollector:
    """Test scrape semantics"""

    def setup_method(self):
        """Setup test fixtures"""
        self.config = Config(mysql_connection_string="root:mysql@localhost:3306")
        self.fetch = Mock(return_value=GOOD_STATUS)
        self.collector = InnoDBClusterCollector(self.config, ALL_METRICS, fetch=self.fetch)

    def test_good_command(self):
        """Test healthy cluster status sets the gauge to 1"""
        values = sample_values(self.collector)

        assert values[UP] == 1.0
        assert values[STATUS] == 1.0
        assert values[SCRAPES] == 1.0

    def test_bad_command(self):
        """Test non-JSON output sets the gauge to 0"""
        self.fetch.return_value = BAD_STATUS

        values = sample_values(self.collector)

        assert values[UP] == 1.0
        assert values[STATUS] == 0.0

    def test_failed_probe_keeps_last_known_values(self):
        """Test a probe failure only flips up"""
        sample_values(self.collector)

        self.fetch.side_effect = ProbeError("mysqlsh exited with status 1")
        values = sample_values(self.collector)

        assert values[UP] == 0.0
        assert values[STATUS] == 1.0
        assert values[SCRAPES] == 2.0
        assert self.collector.last_scrape_success is False

    def test_failed_first_probe_reports_zero(self):
        self.fetch.side_effect = ProbeError("failed to launch mysqlsh")

        values = sample_values(self.collector)

        assert values[UP] == 0.0
        assert values[STATUS] == 0.0

    def test_scrape_counter_counts_every_attempt(self):
        outcomes = [GOOD_STATUS, ProbeError("boom"), BAD_STATUS, ProbeError("boom")]
        self.fetch.side_effect = outcomes

        for _ in outcomes:
            self.collector.collect()

        assert sample_values_without_scrape(self.collector)[SCRAPES] == 4.0
        assert self.collector.scrape_count == 4

    def test_recovery_after_failure(self):
        self.fetch.side_effect = [ProbeError("boom"), GOOD_STATUS]

        assert sample_values(self.collector)[UP] == 0.0
        values = sample_values(self.collector)

        assert values[UP] == 1.0
        assert values[STATUS] == 1.0

    def test_describe_does_not_scrape(self):
        """Test describe() only yields metadata"""
        families = list(self.collector.describe())

        assert {family.name for family in families} == {
            "mysql_innodb_cluster_exporter_up",
            "mysql_innodb_cluster_exporter_exporter_scrapes",
            "mysql_innodb_cluster_exporter_default_replica_set_status",
        }
        assert all(not family.samples for family in families)
        self.fetch.assert_not_called()

    def test_disabled_metric_not_exported(self):
        config = Config(mysql_connection_string="root:mysql@localhost:3306",
                        collect={"default_replica_set_status": False})
        collector = InnoDBClusterCollector(config, select_metrics(config), fetch=self.fetch)

        values = sample_values(collector)

        assert STATUS not in values
        assert values[UP] == 1.0

    def test_every_enabled_gauge_updated(self):
        descriptors = ALL_METRICS + (MetricDescriptor("extra_status", "Extra status gauge."),)
        collector = InnoDBClusterCollector(self.config, descriptors, fetch=self.fetch)

        values = sample_values(collector)

        assert values["mysql_innodb_cluster_exporter_extra_status"] == 1.0
        assert values[STATUS] == 1.0

    def test_concurrent_scrapes_are_serialized(self):
        """Test the lock prevents overlapping probes"""
        active = []
        overlaps = []

        def slow_fetch():
            if active:
                overlaps.append(True)
            active.append(True)
            time.sleep(0.05)
            active.pop()
            return GOOD_STATUS

        collector = InnoDBClusterCollector(self.config, ALL_METRICS, fetch=slow_fetch)
        threads = [threading.Thread(target=collector.collect) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []
        assert collector.scrape_count == 5


def sample_values_without_scrape(collector):
    values = {}
    for metric in [collector.up, collector.total_scrapes, *collector.metrics.values()]:
        for family in metric.collect():
            for sample in family.samples:
                values[sample.name] = sample.value
    return values


class TestMetricsRegistry:
    """Test registry wiring and exposition"""

    def setup_method(self):
        self.config = Config(mysql_connection_string="root:mysql@localhost:3306")
        self.fetch = Mock(return_value=GOOD_STATUS)
        self.collector = InnoDBClusterCollector(self.config, ALL_METRICS, fetch=self.fetch)

    def test_registration_does_not_scrape(self):
        MetricsRegistry(self.config, self.collector)

        self.fetch.assert_not_called()

    def test_render(self):
        registry = MetricsRegistry(self.config, self.collector)

        content, content_type = registry.render()
        text = content.decode()

        assert content_type.startswith("text/plain")
        assert "# HELP mysql_innodb_cluster_exporter_up Was the last scrape of MySQL successful." in text
        assert "# TYPE mysql_innodb_cluster_exporter_default_replica_set_status gauge" in text
        assert "mysql_innodb_cluster_exporter_default_replica_set_status 1.0" in text
        assert "mysql_innodb_cluster_exporter_exporter_scrapes_total 1.0" in text
        build_line = next(line for line in text.splitlines() if line.startswith("mysql_innodb_cluster_exporter_build_info{"))
        assert 'version="1.0.0"' in build_line
        assert build_line.endswith(" 1.0")
        self.fetch.assert_called_once()

    def test_collector_usable_with_plain_registry(self):
        registry = CollectorRegistry()
        registry.register(self.collector)

        text = generate_latest(registry).decode()

        assert "mysql_innodb_cluster_exporter_up 1.0" in text

    def test_select_metrics_defaults(self):
        assert select_metrics(self.config) == ALL_METRICS
