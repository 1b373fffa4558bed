"""Reminders feature: scheduling, delivery and the notification callback."""
