"""Prometheus metrics for monitoring escalations, payments, and notification delivery"""

from prometheus_client import Counter, Histogram

from debt_escalator.domain.bands import NotificationBand

# Balance mutations
increment_counter = Counter(
    "debt_increment_total",
    "Scheduled debt increments applied",
)

payment_counter = Counter(
    "debt_payment_total",
    "Payment attempts by outcome",
    ["outcome"],  # accepted | invalid_amount | insufficient_balance | not_found
)

band_counter = Counter(
    "debt_notification_band_total",
    "Balances classified after an increment, by band",
    ["band"],  # none | pending | elevated | critical
)

# History retention
history_trimmed_counter = Counter(
    "debt_history_trimmed_rows_total",
    "History rows deleted by retention trimming",
    ["table"],
)

# Scheduler health
scheduler_tick_counter = Counter(
    "escalation_ticks_total",
    "Escalation scheduler ticks",
)

scheduler_failure_counter = Counter(
    "escalation_failures_total",
    "Per-account scheduler actions that failed and were skipped",
    ["action"],  # tick | warning | increment
)

# Notifier
notification_counter = Counter(
    "notifications_total",
    "Notifications handed to the mail relay",
    ["outcome"],  # sent | failed | disabled
)

notification_latency_histogram = Histogram(
    "notification_latency_seconds",
    "Mail relay response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_band(band: NotificationBand) -> None:
    """Record the severity a balance landed in after an increment"""
    band_counter.labels(band=band.value).inc()
