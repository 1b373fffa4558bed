"""Prometheus metrics for reminder lifecycle operations."""

from __future__ import annotations

from prometheus_client import Counter

reminder_operations_total = Counter(
    "reminder_operations_total",
    "Reminder lifecycle operations",
    labelnames=["operation"],
)
"""
Labels:
    operation: created | scheduled | snoozed | cancelled | dismissed
"""
