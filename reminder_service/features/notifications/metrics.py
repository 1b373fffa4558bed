"""Prometheus metrics for reminder firing and notification delivery.

Usage:
    from reminder_service.features.notifications.metrics import notification_delivered_total

    notification_delivered_total.labels(channel="ntfy", status="delivered").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Reminder firing
# =============================================================================

reminder_fired_total = Counter(
    "reminder_fired_total",
    "Reminder job firings by outcome",
    labelnames=["outcome"],
)
"""
Labels:
    outcome: sent | no_subscriptions | missing | dismissed | task_completed | stale | invalid
"""

# =============================================================================
# Delivery
# =============================================================================

notification_delivered_total = Counter(
    "notification_delivered_total",
    "Notification deliveries by channel and status",
    labelnames=["channel", "status"],
)
"""
Labels:
    channel: ntfy | web_push
    status: delivered | failed | expired | skipped | not_configured | timeout
"""

notification_delivery_duration_seconds = Histogram(
    "notification_delivery_duration_seconds",
    "Time spent delivering to one subscription",
    labelnames=["channel"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

subscriptions_deactivated_total = Counter(
    "notification_subscriptions_deactivated_total",
    "Subscriptions deactivated because the push service reported them gone",
    labelnames=["channel"],
)
