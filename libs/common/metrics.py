"""Metrics collection for repo search.

Provides a thin convenience wrapper around ``prometheus_client`` so the
keyword backend and the hybrid engine record search metrics consistently.

Design notes
- Metrics and labels are predeclared to keep label sets bounded
- A single registry is kept per collector (can be injected for testing)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name of the owning process
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.search_requests = Counter(
            'rs_search_requests_total',
            'Total hybrid search requests',
            ['status'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'rs_search_duration_seconds',
            'Hybrid search duration',
            registry=self.registry
        )

        self.backend_matches = Counter(
            'rs_backend_matches_total',
            'Matches produced by each search backend before fusion',
            ['backend'],
            registry=self.registry
        )

        self.backend_errors = Counter(
            'rs_backend_errors_total',
            'Search backend failures',
            ['backend', 'error'],
            registry=self.registry
        )

    def record_search(self, status: str, duration: float) -> None:
        """Record a finished hybrid search.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.search_requests.labels(status=status).inc()
        self.search_duration.observe(duration)

    def record_backend_matches(self, backend: str, count: int) -> None:
        """Record the raw match count produced by a backend."""
        self.backend_matches.labels(backend=backend).inc(count)

    def record_backend_error(self, backend: str, error: str) -> None:
        """Record a backend failure by exception class name."""
        self.backend_errors.labels(backend=backend, error=error).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str = "repo-search") -> MetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector
