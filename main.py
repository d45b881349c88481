#!/usr/bin/env python3
"""Main entry point for MySQL InnoDB Cluster Exporter"""
import argparse
import sys
from typing import Any, Dict, List, Optional
import uvicorn
from config import Config
from metrics.registry import ALL_METRICS
from app.server import MetricsServer
from logging_config import setup_structured_logging, get_logger, log_server_startup, log_error


def build_parser() -> argparse.ArgumentParser:
    """Command line flags; anything left unset falls back to environment configuration"""
    parser = argparse.ArgumentParser(
        prog="mysql_innodb_cluster_exporter",
        description="Prometheus exporter for MySQL InnoDB Cluster status",
    )
    parser.add_argument(
        "--web.listen-address", dest="web_listen_address", default=None,
        help="Address to listen on for web interface and telemetry (default :9105)",
    )
    parser.add_argument(
        "--web.telemetry-path", dest="web_telemetry_path", default=None,
        help="Path under which to expose metrics (default /metrics)",
    )
    parser.add_argument(
        "--log.level", dest="log_level", default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        help="Only log messages with the given severity or above",
    )
    for descriptor in ALL_METRICS:
        parser.add_argument(
            f"--{descriptor.flag_name}", dest=f"collect_{descriptor.name}", default=None,
            action=argparse.BooleanOptionalAction,
            help=descriptor.help_text,
        )
    parser.add_argument("--version", action="store_true", help="Show application version")
    return parser


def config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed flags into Config keyword overrides"""
    overrides: Dict[str, Any] = {}
    for field in ("web_listen_address", "web_telemetry_path", "log_level"):
        value = getattr(args, field)
        if value is not None:
            overrides[field] = value.upper() if field == "log_level" else value

    collect = {}
    for descriptor in ALL_METRICS:
        value = getattr(args, f"collect_{descriptor.name}")
        if value is not None:
            collect[descriptor.name] = value
    if collect:
        overrides["collect"] = collect
    return overrides


def load_config(args: argparse.Namespace) -> Config:
    # Any --collect.* flag replaces COLLECT from the environment as a whole
    return Config(**config_overrides(args))


def main(argv: Optional[List[str]] = None):
    """Main application entry point"""
    args = build_parser().parse_args(argv)
    logger = get_logger(__name__)

    if args.version:
        print(f"mysql_innodb_cluster_exporter, version {Config.model_fields['service_version'].default}")
        return

    try:
        config = load_config(args)
    except Exception as e:
        log_error(logger, e, {"component": "main", "phase": "configuration"})
        sys.exit(1)

    try:
        setup_structured_logging(config)
        logger = get_logger(__name__)
        log_server_startup(logger, config)

        server = MetricsServer(config)
        app = server.get_app()

        uvicorn.run(
            app,
            host=config.listen_host,
            port=config.listen_port,
            log_config=None  # We handle logging ourselves
        )

    except Exception as e:
        log_error(logger, e, {"component": "main", "phase": "startup"})
        sys.exit(1)


if __name__ == '__main__':
    main()
