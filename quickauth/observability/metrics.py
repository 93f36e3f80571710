"""
Prometheus metrics collection for quickauth.
"""

from typing import Optional
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


class MetricsCollector:
    """Centralized metrics collection."""

    def __init__(self):
        self.auth_attempts = Counter(
            'quickauth_auth_attempts_total',
            'Total register/login attempts',
            ['operation', 'status']
        )

        self.token_verifications = Counter(
            'quickauth_token_verifications_total',
            'Total token verifications',
            ['status']
        )

        self.password_hash_duration = Histogram(
            'quickauth_password_hash_seconds',
            'Time spent hashing or checking passwords',
            ['operation'],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
        )

    def record_auth_attempt(self, operation: str, success: bool):
        """Record a register or login attempt."""
        status = "success" if success else "failure"
        self.auth_attempts.labels(operation=operation, status=status).inc()

    def record_token_verification(self, success: bool):
        status = "success" if success else "failure"
        self.token_verifications.labels(status=status).inc()

    def time_password_hash(self, operation: str):
        """Return a timer for a hash/verify call."""
        return self.password_hash_duration.labels(operation=operation).time()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus format."""
        return generate_latest().decode('utf-8')

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
