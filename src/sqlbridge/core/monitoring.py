"""Sentry integration for error tracking and performance monitoring.

Initialization is skipped entirely when no DSN is configured, so library
use and tests never talk to Sentry.
"""

from __future__ import annotations

import os

import sentry_sdk

from sqlbridge.__about__ import __version__

SENTRY_DSN_ENV = "SQLBRIDGE_SENTRY_DSN"


def setup_sentry(dsn: str | None = None, environment: str = "local") -> bool:
    """Initialize Sentry if a DSN is available.

    Returns True when the SDK was initialized.
    """
    dsn = dsn or os.environ.get(SENTRY_DSN_ENV)
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True
