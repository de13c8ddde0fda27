"""
Prometheus metrics module for the Parla scheduling service.

Service timings come from the @measure_operation decorator; the scheduling
counters below are incremented by the services that own each outcome.
Everything lives on a private registry exposed at /metrics/prometheus.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "parla_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "parla_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "parla_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

scheduling_rejections_total = Counter(
    "parla_scheduling_rejections_total",
    "Scheduling requests rejected, by operation and reason code",
    ["operation", "code"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "parla_booking_conflicts_total",
    "Slot claims that lost to an existing booking",
    ["operation", "detected_by"],  # detected_by: precheck | constraint
    registry=REGISTRY,
)

reschedule_retries_total = Counter(
    "parla_reschedule_retries_total",
    "Reschedules retried after a concurrent change to the same booking",
    registry=REGISTRY,
)

audit_writes_total = Counter(
    "parla_audit_writes_total",
    "Audit log rows written",
    ["entity_type", "action"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'SchedulingService')
            operation: Operation/method name (e.g., 'create_booking')
            duration: Operation duration in seconds
            status: 'success', 'rejected' (failed result) or 'error' (exception)
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_scheduling_rejection(operation: str, code: str) -> None:
        scheduling_rejections_total.labels(operation=operation, code=code).inc()

    @staticmethod
    def record_booking_conflict(operation: str, detected_by: str) -> None:
        booking_conflicts_total.labels(operation=operation, detected_by=detected_by).inc()

    @staticmethod
    def record_reschedule_retry() -> None:
        reschedule_retries_total.inc()

    @staticmethod
    def record_audit_write(entity_type: str, action: str) -> None:
        audit_writes_total.labels(entity_type=entity_type, action=action).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
