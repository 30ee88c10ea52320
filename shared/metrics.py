"""
Prometheus metrics for the Car Registry services.
"""

import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest


class MetricsCollector:
    """Metrics owned by one service instance.

    Each collector registers into its own ``CollectorRegistry`` so several
    service instances can live in one process.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()

        self.service_info = Info("service", "Service information", registry=self.registry)
        self.service_info.info({"service": service_name, "version": "1.0.0"})

        self.http_requests = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )
        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )
        self.health_checks = Counter(
            "health_check_total",
            "Health check requests by status",
            ["status"],
            registry=self.registry
        )
        self.errors = Counter(
            "errors_total",
            "Errors returned to clients by code",
            ["code"],
            registry=self.registry
        )
        self.cache_lookups = Counter(
            "cache_lookups_total",
            "Cache lookups by outcome (hit, miss, error)",
            ["outcome"],
            registry=self.registry
        )
        self.storage_duration = Histogram(
            "storage_operation_duration_seconds",
            "Durable store operation duration in seconds",
            ["operation"],
            registry=self.registry
        )

    def render(self) -> bytes:
        """Prometheus text exposition of this collector's registry."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        self.http_requests.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        self.http_request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_health_check(self, status: str):
        self.health_checks.labels(status=status).inc()

    def record_error(self, code: str):
        self.errors.labels(code=code).inc()

    def record_cache_lookup(self, outcome: str):
        self.cache_lookups.labels(outcome=outcome).inc()

    @contextmanager
    def time_storage(self, operation: str):
        """Observe the duration of a store ``operation`` (load or save)."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            self.storage_duration.labels(operation=operation).observe(time.perf_counter() - start_time)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Create a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
