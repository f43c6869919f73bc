"""
Telemetry Module

Provides Prometheus metrics for:
- SofaScore requests (count, errors, latency)
- Admin actions (imports, scoring runs)

and optional Sentry error tracking.
"""

from app.telemetry.metrics import (
    provider_requests_total,
    provider_errors_total,
    provider_latency_ms,
    admin_actions_total,
    admin_action_duration_ms,
    predictions_scored_total,
    record_provider_request,
    record_provider_error,
    record_admin_action,
    record_predictions_scored,
    get_metrics_text,
)

__all__ = [
    # Metrics
    "provider_requests_total",
    "provider_errors_total",
    "provider_latency_ms",
    "admin_actions_total",
    "admin_action_duration_ms",
    "predictions_scored_total",
    # Helpers
    "record_provider_request",
    "record_provider_error",
    "record_admin_action",
    "record_predictions_scored",
    "get_metrics_text",
]
