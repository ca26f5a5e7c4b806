"""
Shared metrics configuration for splitify.
"""

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


class MetricsCollector:
    """Metrics collector for selectors.

    Each collector owns its metrics on an explicit registry so that several
    collectors (one per application, or per test) never collide on the
    process-wide default registry.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up selection metrics."""

        self._metrics["splitify_selections_total"] = Counter(
            "splitify_selections_total",
            "Total selections made by a selector",
            ["selector", "strategy", "outcome"],
            registry=self.registry
        )

        self._metrics["splitify_selection_duration_seconds"] = Histogram(
            "splitify_selection_duration_seconds",
            "Selection duration in seconds",
            ["selector", "strategy"],
            buckets=(0.00001, 0.00005, 0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            registry=self.registry
        )

        self._metrics["splitify_rules"] = Gauge(
            "splitify_rules",
            "Number of rules registered on a selector",
            ["selector", "strategy"],
            registry=self.registry
        )

        self._metrics["splitify_errors_total"] = Counter(
            "splitify_errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_selection(self, selector: str, strategy: str, outcome: str, duration: Optional[float] = None):
        """Record the outcome of one selection."""
        self._metrics["splitify_selections_total"].labels(
            selector=selector,
            strategy=strategy,
            outcome=outcome
        ).inc()

        if duration is not None:
            self._metrics["splitify_selection_duration_seconds"].labels(
                selector=selector,
                strategy=strategy
            ).observe(duration)

    def set_rule_count(self, selector: str, strategy: str, count: int):
        """Publish the current rule table size."""
        self._metrics["splitify_rules"].labels(selector=selector, strategy=strategy).set(count)

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["splitify_errors_total"].labels(error_type=error_type, service=service_name).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(duration)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
