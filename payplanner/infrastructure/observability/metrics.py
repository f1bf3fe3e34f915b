"""Prometheus metrics for payment lifecycle, calculator and sweeper monitoring"""

from typing import Optional
from prometheus_client import Counter, Histogram

# Payment lifecycle metrics
status_transition_counter = Counter(
    "payplanner_status_transitions_total",
    "Payment status changes applied by the lifecycle rules",
    ["from_status", "to_status"],
)

payment_write_counter = Counter(
    "payplanner_payment_writes_total",
    "Payments created or updated",
    ["action"],  # create | update
)

# Calculator metrics
installment_calculation_counter = Counter(
    "payplanner_installment_calculations_total",
    "Installment schedules calculated",
    ["rounding_mode"],
)

installment_rejection_counter = Counter(
    "payplanner_installment_rejections_total",
    "Installment requests rejected as invalid",
)

# Sweeper metrics
overdue_marked_counter = Counter(
    "payplanner_overdue_marked_total",
    "Payments moved to Overdue by the sweeper",
)

sweep_failure_counter = Counter(
    "payplanner_overdue_sweep_failures_total",
    "Overdue sweeper ticks that failed",
)

sweep_duration_histogram = Histogram(
    "payplanner_overdue_sweep_duration_seconds",
    "Overdue sweeper tick duration",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment_write(action: str, previous_status: Optional[str], status: str) -> None:
    """Record a payment write and, when it changed, the status transition"""
    payment_write_counter.labels(action=action).inc()
    if previous_status != status:
        status_transition_counter.labels(
            from_status=previous_status or "new",
            to_status=status,
        ).inc()
