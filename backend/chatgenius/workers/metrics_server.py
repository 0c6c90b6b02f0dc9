"""
HTTP server exposing Celery worker metrics to Prometheus.
"""
import logging
from typing import Optional

from prometheus_client import start_http_server

logger = logging.getLogger(__name__)

_started_port: Optional[int] = None


def start_metrics_server(port: int = 9090) -> None:
    """
    Start the Prometheus exposition server in a daemon thread.
    Calling it again in the same process is a no-op.

    Args:
        port: Port to listen on (default: 9090)
    """
    global _started_port

    if _started_port is not None:
        return
    start_http_server(port)
    _started_port = port
    logger.info(f"Metrics server started on port {port}")
