"""Configuration management for MySQL InnoDB Cluster Exporter"""
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Configuration class with Pydantic validation and environment-based settings"""

    # Connection (required, the exporter refuses to start without it)
    mysql_connection_string: str = Field(..., description="MySQL Shell connection URI of a cluster member")

    # Web settings
    web_listen_address: str = Field(default=":9105", description="Address to listen on for web interface and telemetry")
    web_telemetry_path: str = Field(default="/metrics", description="Path under which to expose metrics")

    # Metric selection, keyed by metric name (env: JSON object, e.g. COLLECT='{"name": false}')
    collect: Dict[str, bool] = Field(default_factory=dict, description="Per-metric collection overrides")

    # Probe settings
    mysqlsh_path: str = Field(default="mysqlsh", description="MySQL Shell binary")
    probe_timeout: Optional[float] = Field(default=None, gt=0, description="Probe timeout in seconds (unbounded if unset)")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    # Service settings
    service_name: str = Field(default="mysql_innodb_cluster_exporter", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")

    # Security settings (env: JSON list)
    trusted_hosts: List[str] = Field(default_factory=list, description="List of trusted hosts")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    class Config:
        env_prefix = ""
        case_sensitive = False

    @validator('mysql_connection_string')
    def validate_connection_string(cls, v):
        """Reject an empty connection string"""
        if not v or not v.strip():
            raise ValueError("MYSQL_CONNECTION_STRING must be set")
        return v.strip()

    @validator('web_listen_address')
    def validate_listen_address(cls, v):
        """Validate host:port listen address"""
        parse_listen_address(v)
        return v

    @validator('web_telemetry_path')
    def validate_telemetry_path(cls, v):
        """Telemetry path must be absolute and must not shadow the landing page"""
        if not v.startswith('/') or v == '/':
            raise ValueError("web_telemetry_path must start with '/' and must not be '/'")
        return v

    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def listen_host(self) -> str:
        return parse_listen_address(self.web_listen_address)[0]

    @property
    def listen_port(self) -> int:
        return parse_listen_address(self.web_listen_address)[1]

    def is_metric_enabled(self, name: str, default: bool = True) -> bool:
        """Check if a specific metric is enabled"""
        return self.collect.get(name, default)


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host listens on all interfaces"""
    host, sep, port = address.rpartition(':')
    if not sep:
        raise ValueError(f"Invalid listen address {address!r}, expected host:port")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in listen address {address!r}") from None
    if not 1 <= port_number <= 65535:
        raise ValueError(f"Port out of range in listen address {address!r}")
    host = host.strip('[]') or "0.0.0.0"
    return host, port_number
