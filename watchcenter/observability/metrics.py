"""
Metrics definitions for Disaster Watch alerting.

This module defines Prometheus metrics for monitoring
rule admission and alert delivery.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
events_received = Counter(
    "events_received_total",
    "Number of emergency events processed",
    ["event_type"]
)

rules_evaluated = Counter(
    "rules_evaluated_total",
    "Rule admission decisions",
    ["admitted", "reason"]
)

rule_errors = Counter(
    "rule_evaluation_errors_total",
    "Rules rejected because admission raised"
)

deliveries = Counter(
    "deliveries_total",
    "Delivery attempts by method and final status",
    ["method", "status"]
)

ledger_errors = Counter(
    "ledger_errors_total",
    "Delivery ledger writes that failed",
    ["operation"]
)

outbox_enqueued = Counter(
    "outbox_enqueued_total",
    "Failed deliveries queued for retry",
    ["method"]
)

# 히스토그램 메트릭
channel_seconds = Histogram(
    "channel_send_duration_seconds",
    "Time spent in a channel adapter call",
    ["method"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0]
)

process_event_seconds = Histogram(
    "process_event_duration_seconds",
    "Total event processing latency",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0]
)

# 게이지 메트릭
outbox_size = Gauge(
    "outbox_size",
    "Current number of deliveries waiting for retry"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
