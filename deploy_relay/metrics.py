"""Prometheus metrics for relay observability.

Metrics are exposed at the `/metrics` endpoint in Prometheus format.

Metrics Defined:
- relay_requests_total: Counter of handled webhook requests by outcome
- relay_deploy_duration_seconds: Histogram of deploy trigger latency
- relay_directory_size: Gauge of applications in the last fetched directory
"""

import logging
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)


# Outcomes recorded on relay_requests_total
OUTCOMES = (
    "deployed",
    "bad_request",
    "forbidden",
    "not_found",
    "upstream_error",
    "method_not_allowed",
)

# Deploy calls are a single HTTP round trip to Coolify
DEFAULT_DURATION_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


class RelayMetrics:
    """Container for all relay Prometheus metrics.

    Supports custom registries so tests can create isolated instances
    without colliding with the default REGISTRY.

    Attributes:
        registry: The Prometheus registry for these metrics.
        requests_total: Counter of handled requests, labelled by outcome.
        deploy_duration_seconds: Histogram of deploy trigger latency.
        directory_size: Gauge of the last fetched directory length.

    Example:
        >>> metrics = RelayMetrics(registry=CollectorRegistry())
        >>> metrics.record_outcome("deployed")
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY

        self.requests_total = Counter(
            "relay_requests_total",
            "Total webhook requests handled by the relay",
            ["outcome"],
            registry=self.registry,
        )

        self.deploy_duration_seconds = Histogram(
            "relay_deploy_duration_seconds",
            "Time spent triggering Coolify deployments",
            buckets=DEFAULT_DURATION_BUCKETS,
            registry=self.registry,
        )

        self.directory_size = Gauge(
            "relay_directory_size",
            "Number of applications in the last fetched Coolify directory",
            registry=self.registry,
        )

        # Pre-create every label so each outcome series exists from startup
        for outcome in OUTCOMES:
            self.requests_total.labels(outcome=outcome)

    def record_outcome(self, outcome: str) -> None:
        """Count one handled request."""
        if outcome not in OUTCOMES:
            logger.warning("Unknown relay outcome: %s", outcome)
            return
        self.requests_total.labels(outcome=outcome).inc()

    def record_deploy_duration(self, duration: float) -> None:
        self.deploy_duration_seconds.observe(duration)

    def set_directory_size(self, size: int) -> None:
        self.directory_size.set(size)

    def get_count(self, outcome: str) -> float:
        """Current value of relay_requests_total for one outcome."""
        return self.requests_total.labels(outcome=outcome)._value.get()

    def generate(self) -> bytes:
        """Render all metrics in Prometheus text format."""
        return generate_latest(self.registry)
