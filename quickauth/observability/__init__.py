"""
Observability features for quickauth.
"""

from .metrics import MetricsCollector, get_metrics_collector
from .logging import AuditLogger, setup_logging, get_logger

__all__ = [
    "AuditLogger",
    "MetricsCollector",
    "get_metrics_collector",
    "setup_logging",
    "get_logger",
]
