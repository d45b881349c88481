"""MySQL Shell probe returning the raw cluster status document"""
import subprocess
from typing import List, Optional
from logging_config import get_logger


logger = get_logger(__name__)

CLUSTER_STATUS_SCRIPT = "print(JSON.stringify(dba.getCluster().status()))"


class ProbeError(Exception):
    """Raised when the cluster status command cannot produce output"""


class ClusterStatusProbe:
    """Run ``mysqlsh`` against one cluster member and capture its stdout"""

    def __init__(self, connection_string: str, binary: str = "mysqlsh", timeout: Optional[float] = None):
        self.connection_string = connection_string
        self.binary = binary
        self.timeout = timeout

    def command(self) -> List[str]:
        return [
            self.binary,
            "--uri", self.connection_string,
            "--js",
            "--quiet-start=2",
            "-e", CLUSTER_STATUS_SCRIPT,
        ]

    def fetch(self) -> bytes:
        """Run the status command; raises ProbeError on launch failure, timeout or non-zero exit"""
        try:
            result = subprocess.run(self.command(), capture_output=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"{self.binary} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ProbeError(f"failed to launch {self.binary}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise ProbeError(f"{self.binary} exited with status {result.returncode}: {stderr[:500]}")

        logger.debug("Cluster status fetched", output_bytes=len(result.stdout), event_type="probe")
        return result.stdout

    def __call__(self) -> bytes:
        return self.fetch()
