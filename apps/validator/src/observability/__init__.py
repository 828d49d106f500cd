"""Observability helpers (logging and metrics)."""

from .logging import (
    RequestContextMiddleware,
    configure_logging,
    correlation_context,
    get_correlation_id,
    run_context,
)
from .metrics import (
    DAILY_RUN_DURATION_SECONDS,
    DAILY_RUN_RETRY_TOTAL,
    DAILY_RUNS_TOTAL,
    SCRIPT_VALIDATIONS_TOTAL,
    SDK_TEST_RUNS_TOTAL,
    RequestMetricsMiddleware,
    SDKTestTracker,
    record_validation_results,
    register_metrics,
    write_metrics_textfile,
)

__all__ = [
    "DAILY_RUN_DURATION_SECONDS",
    "DAILY_RUN_RETRY_TOTAL",
    "DAILY_RUNS_TOTAL",
    "RequestContextMiddleware",
    "RequestMetricsMiddleware",
    "SCRIPT_VALIDATIONS_TOTAL",
    "SDK_TEST_RUNS_TOTAL",
    "SDKTestTracker",
    "configure_logging",
    "correlation_context",
    "get_correlation_id",
    "record_validation_results",
    "register_metrics",
    "run_context",
    "write_metrics_textfile",
]
