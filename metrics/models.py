"""Metric data models"""
from dataclasses import dataclass


NAMESPACE = "mysql_innodb_cluster_exporter"


@dataclass(frozen=True)
class MetricDescriptor:
    """Static description of an exported cluster gauge"""
    name: str
    help_text: str
    default_enabled: bool = True

    @property
    def flag_name(self) -> str:
        """Command line flag toggling this metric"""
        return f"collect.{self.name}"

    @property
    def full_name(self) -> str:
        return f"{NAMESPACE}_{self.name}"
