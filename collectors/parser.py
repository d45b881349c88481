"""Cluster status parsing"""
import json
from typing import Any, Tuple, Union
from logging_config import get_logger


logger = get_logger(__name__)

CLUSTER_STATUS_PATH: Tuple[str, ...] = ("defaultReplicaSet", "status")
HEALTHY_STATUS = "OK"


def extract_field(document: Any, path: Tuple[str, ...]) -> Any:
    """Follow ``path`` through nested objects, returning None when any step is missing"""
    value = document
    for key in path:
        if not isinstance(value, dict) or key not in value:
            return None
        value = value[key]
    return value


def parse_cluster_status(raw: Union[bytes, str]) -> float:
    """Map mysqlsh cluster status output to 1.0 (OK) or 0.0 (anything else).

    Malformed output never raises; it is reported as unhealthy.
    """
    try:
        document = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # RecursionError: pathologically nested output
        logger.warning("Cluster status is not valid JSON", error=str(e), event_type="parse_error")
        return 0.0

    status = extract_field(document, CLUSTER_STATUS_PATH)
    if status is None:
        logger.warning("Cluster status field missing", path=".".join(CLUSTER_STATUS_PATH), event_type="parse_error")
        return 0.0

    return 1.0 if status == HEALTHY_STATUS else 0.0
