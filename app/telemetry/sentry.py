"""
Sentry integration for error tracking.

Provides:
- Automatic exception capture with stacktrace
- FastAPI request context
- SQLAlchemy query errors

Security:
- Authorization headers and cookies are scrubbed before sending
- Query strings with tokens are redacted
- Request bodies are NOT captured
- PII is disabled
"""

import logging
import os
import re
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

logger = logging.getLogger(__name__)

# Module-level flag to track initialization
_sentry_initialized = False

SENSITIVE_HEADERS = [
    "authorization",
    "cookie",
    "set-cookie",
    "x-rapidapi-key",
    "x-forwarded-for",  # Privacy
]


def scrub_sensitive_data(event: dict, hint: dict) -> Optional[dict]:
    """
    Scrub sensitive data from Sentry events before sending.

    Removes auth headers, cookies, RapidAPI keys and token-like query
    parameters, and drops the request body.
    """
    try:
        request = event.get("request") or {}

        headers = request.get("headers") or {}
        for key in list(headers.keys()):
            if key.lower() in SENSITIVE_HEADERS:
                headers[key] = "[REDACTED]"
        request["headers"] = headers

        query_string = request.get("query_string")
        if isinstance(query_string, str) and query_string:
            query_string = re.sub(
                r'(?i)(token|api_key|key|secret|password)=([^&]*)',
                r'\1=[REDACTED]',
                query_string
            )
            request["query_string"] = query_string

        # Prediction and payment bodies carry user data
        if "data" in request:
            request["data"] = "[SCRUBBED]"

        event["request"] = request

    except Exception as e:
        # Never fail scrubbing - just log and continue
        logger.warning(f"Sentry scrubbing error (continuing): {e}")

    return event


def init_sentry() -> bool:
    """
    Initialize Sentry SDK if SENTRY_DSN is configured.

    Returns True if Sentry was initialized, False otherwise.

    Environment variables:
    - SENTRY_DSN: Required. Sentry DSN from project settings.
    - SENTRY_TRACES_SAMPLE_RATE: Optional. Default 0.05 (5%).
    - SENTRY_ENABLED: Optional. Set to 'false' to disable even with DSN.
    - SENTRY_ENVIRONMENT: Used as Sentry environment tag.
    - GIT_COMMIT_SHA: Used as release version.
    """
    global _sentry_initialized

    if _sentry_initialized:
        logger.debug("Sentry already initialized, skipping")
        return True

    if os.getenv("SENTRY_ENABLED", "true").lower() == "false":
        logger.info("Sentry disabled via SENTRY_ENABLED=false")
        return False

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        logger.info("Sentry not configured (SENTRY_DSN not set)")
        return False

    environment = os.getenv("SENTRY_ENVIRONMENT", "development")
    release = os.getenv("GIT_COMMIT_SHA", "unknown")
    traces_sample_rate = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.05"))

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(
                level=logging.ERROR,
                event_level=logging.ERROR,
            ),
        ],
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        before_send=scrub_sensitive_data,
        ignore_errors=[
            KeyboardInterrupt,
            SystemExit,
        ],
    )

    _sentry_initialized = True
    logger.info(
        f"Sentry initialized: env={environment}, release={release[:8] if release != 'unknown' else 'unknown'}, "
        f"traces_sample_rate={traces_sample_rate}"
    )
    return True


def is_sentry_enabled() -> bool:
    """Check if Sentry is initialized and active."""
    return _sentry_initialized


def capture_exception(exception: Exception, action: str = None, **extra_context):
    """
    Capture an exception to Sentry with optional admin action tag.

    Args:
        exception: The exception to capture
        action: Optional admin action name for tagging
        **extra_context: Additional context to attach
    """
    if not _sentry_initialized:
        return

    with sentry_sdk.push_scope() as scope:
        if action:
            scope.set_tag("action", action)
        for key, value in extra_context.items():
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(exception)
