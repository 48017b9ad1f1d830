"""
Metrics Collection with Prometheus.

Exposes request and business metrics for monitoring.
"""

from enum import Enum

from prometheus_client import Counter, Gauge, Histogram, Info

from mdrg.config import settings


class MetricLabels(str, Enum):
    """Standard metric label names."""

    ENDPOINT = "endpoint"
    METHOD = "method"
    STATUS_CODE = "status_code"
    OPERATION = "operation"
    EVENT = "event"
    OUTCOME = "outcome"
    ERROR_TYPE = "error_type"


class RecoveryMetrics:
    """
    Centralized metrics for the MDRG API.

    Covers:
    - HTTP requests (rate, duration, in-flight)
    - Authentication events (register, login, password change)
    - Cases created and payments recorded
    - Activity log write failures and errors
    """

    def __init__(self) -> None:
        """Initialize all Prometheus metrics."""

        self.service_info = Info("mdrg_service", "Service information")
        self.service_info.info(
            {
                "version": settings.api_version,
                "service_name": settings.service_name,
            }
        )

        # ====================================================================
        # HTTP Metrics
        # ====================================================================
        self.http_requests_total = Counter(
            "mdrg_http_requests_total",
            "Total HTTP requests",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD, MetricLabels.STATUS_CODE],
        )

        self.http_request_duration_seconds = Histogram(
            "mdrg_http_request_duration_seconds",
            "HTTP request duration in seconds",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        self.http_requests_in_progress = Gauge(
            "mdrg_http_requests_in_progress",
            "Number of HTTP requests currently being processed",
            [MetricLabels.ENDPOINT, MetricLabels.METHOD],
        )

        # ====================================================================
        # Auth Metrics
        # ====================================================================
        self.auth_events_total = Counter(
            "mdrg_auth_events_total",
            "Authentication events by outcome",
            [MetricLabels.EVENT, MetricLabels.OUTCOME],
        )

        # ====================================================================
        # Case / Payment Metrics
        # ====================================================================
        self.cases_created_total = Counter(
            "mdrg_cases_created_total",
            "Total cases created",
            ["priority"],
        )

        self.case_amount_owed = Histogram(
            "mdrg_case_amount_owed",
            "Amount owed on newly created cases (major units)",
            buckets=(100, 500, 1000, 2500, 5000, 10000, 25000, 50000, 100000, 500000),
        )

        self.payments_recorded_total = Counter(
            "mdrg_payments_recorded_total",
            "Total payments recorded",
            ["status"],
        )

        # ====================================================================
        # Activity / Error Metrics
        # ====================================================================
        self.activity_log_failures_total = Counter(
            "mdrg_activity_log_failures_total",
            "Activity log writes that failed",
            [MetricLabels.OPERATION],
        )

        self.errors_total = Counter(
            "mdrg_errors_total",
            "Total errors by type",
            [MetricLabels.ERROR_TYPE, MetricLabels.OPERATION],
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def record_http_request(
        self, endpoint: str, method: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            endpoint=endpoint, method=method, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(endpoint=endpoint, method=method).observe(
            duration
        )

    def record_auth_event(self, event: str, success: bool) -> None:
        """Record an authentication event."""
        self.auth_events_total.labels(
            event=event, outcome="success" if success else "failure"
        ).inc()

    def record_case_created(self, priority: str, amount_owed: float) -> None:
        """Record case creation metrics."""
        self.cases_created_total.labels(priority=priority).inc()
        self.case_amount_owed.observe(amount_owed)

    def record_payment(self, status: str) -> None:
        """Record a payment."""
        self.payments_recorded_total.labels(status=status).inc()

    def record_activity_failure(self, operation: str) -> None:
        """Record an activity log write that was dropped."""
        self.activity_log_failures_total.labels(operation=operation).inc()

    def record_error(self, error_type: str, operation: str) -> None:
        """Record error occurrence."""
        self.errors_total.labels(error_type=error_type, operation=operation).inc()


# Global metrics instance
metrics = RecoveryMetrics()
