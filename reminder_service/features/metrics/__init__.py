"""Observability endpoints."""
