"""Notification subscriptions, channels and delivery."""
