"""
Prometheus metrics for the pool backend.

Design principles:
- Low cardinality (controlled labels)
- Best-effort (never block main flow)

ALLOWED LABELS (bounded sets):
- provider:     "sofascore"
- endpoint:     "search/all", "tournaments/get-seasons", ... (max ~10)
- status_code:  "200", "204", "404", "429", "500", "0"
- error_code:   "timeout", "request_error", "http_4xx", "http_5xx"
- action:       the admin action names (max ~12)
- status:       "ok", "error"

Tournament, season, match and user ids are NEVER labels; log them instead.
"""

import logging

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# =============================================================================
# PROVIDER METRICS
# =============================================================================

provider_requests_total = Counter(
    "provider_requests_total",
    "Total requests to data providers",
    ["provider", "endpoint", "status_code"],
)

provider_errors_total = Counter(
    "provider_errors_total",
    "Total errors from data providers",
    ["provider", "error_code"],
)

provider_latency_ms = Histogram(
    "provider_latency_ms",
    "Request latency in milliseconds",
    ["provider", "endpoint"],
    buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
)

# =============================================================================
# ADMIN ACTION METRICS
# =============================================================================

admin_actions_total = Counter(
    "admin_actions_total",
    "Admin SofaScore actions by outcome",
    ["action", "status"],
)

admin_action_duration_ms = Histogram(
    "admin_action_duration_ms",
    "Admin action duration in milliseconds",
    ["action"],
    buckets=[50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000],
)

predictions_scored_total = Counter(
    "predictions_scored_total",
    "Predictions scored by calculate_scores",
    [],
)


# =============================================================================
# HELPER FUNCTIONS (for instrumentation)
# =============================================================================


def record_provider_request(
    provider: str,
    endpoint: str,
    status_code: int,
    latency_ms: float,
) -> None:
    """Record a provider request with its latency."""
    try:
        provider_requests_total.labels(
            provider=provider,
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()

        provider_latency_ms.labels(
            provider=provider,
            endpoint=endpoint,
        ).observe(latency_ms)
    except Exception as e:
        logger.warning(f"Failed to record provider request metric: {e}")


def record_provider_error(provider: str, error_code: str) -> None:
    """Record a provider error."""
    try:
        provider_errors_total.labels(provider=provider, error_code=error_code).inc()
    except Exception as e:
        logger.warning(f"Failed to record provider error metric: {e}")


def record_admin_action(action: str, status: str, duration_ms: float) -> None:
    """Record one admin action run."""
    try:
        admin_actions_total.labels(action=action, status=status).inc()
        admin_action_duration_ms.labels(action=action).observe(duration_ms)
    except Exception as e:
        logger.warning(f"Failed to record admin action metric: {e}")


def record_predictions_scored(count: int) -> None:
    try:
        if count > 0:
            predictions_scored_total.inc(count)
    except Exception as e:
        logger.warning(f"Failed to record scored predictions metric: {e}")


def get_metrics_text() -> tuple[str, str]:
    """
    Generate Prometheus metrics text output.

    Returns:
        Tuple of (content, content_type)
    """
    return generate_latest(REGISTRY).decode("utf-8"), CONTENT_TYPE_LATEST
