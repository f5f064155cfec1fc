"""
Prometheus metrics for the reservation core.

Service timings come from ``@BaseService.measure_operation``; the domain
counters are incremented by the reaper and the reconciliation engine.
"""

from typing import Optional

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
    "slotkeeper_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "slotkeeper_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "slotkeeper_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

holds_released_total = Counter(
    "slotkeeper_holds_released_total",
    "Unpaid holds cancelled by the stale-hold reaper",
    ["status"],  # temp | on_hold
    registry=REGISTRY,
)

payment_signals_total = Counter(
    "slotkeeper_payment_signals_total",
    "Payment signals processed by the reconciliation engine",
    # source: manual|webhook|poll|credit; outcome: applied|already_applied|ignored
    ["source", "outcome"],
    registry=REGISTRY,
)

invoices_issued_total = Counter(
    "slotkeeper_invoices_issued_total",
    "Invoice numbers consumed",
    ["subject"],  # reservation | package
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so callers do not touch metric objects directly."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str,
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def inc_holds_released(status: str, count: int = 1) -> None:
        if count:
            holds_released_total.labels(status=status).inc(count)

    @staticmethod
    def inc_payment_signal(source: str, outcome: str) -> None:
        payment_signals_total.labels(source=source, outcome=outcome).inc()

    @staticmethod
    def inc_invoice_issued(subject: str) -> None:
        invoices_issued_total.labels(subject=subject).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def get_content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
