"""Task runner helpers for the daily SDK validation job."""
from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from enum import Enum

from apps.validator.src.domain import LoadError, ResultsDocument
from apps.validator.src.observability.metrics import (
    DAILY_RUN_DURATION_SECONDS,
    DAILY_RUN_RETRY_TOTAL,
    DAILY_RUNS_TOTAL,
)

__all__ = ["DailyRunStatus", "DailyValidationCallable", "run_daily_validation"]


DailyValidationCallable = Callable[[], ResultsDocument | None]
"""Callable executed to perform a single daily validation run."""


class DailyRunStatus(str, Enum):
    """Final state of a daily validation run."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SDK_FAILURES = "sdk_failures"
    EMPTY = "empty"
    ERROR = "error"


def _status_for(document: ResultsDocument | None) -> DailyRunStatus:
    if document is None:
        return DailyRunStatus.EMPTY
    if document.summary.failed_sdks > 0:
        return DailyRunStatus.SDK_FAILURES
    return DailyRunStatus.COMPLETED


def run_daily_validation(
    task: DailyValidationCallable,
    *,
    max_retries: int = 0,
    retry_exceptions: Sequence[type[BaseException]] | None = None,
) -> tuple[DailyRunStatus, ResultsDocument | None]:
    """Execute the daily validation task while emitting Prometheus metrics.

    Failures to load the reference deployments are never retried.
    """

    allowed_exceptions: tuple[type[BaseException], ...]
    if retry_exceptions is None:
        allowed_exceptions = (OSError,)
    else:
        allowed_exceptions = tuple(retry_exceptions)
        if not allowed_exceptions:
            raise ValueError("retry_exceptions must not be empty")

    attempts = 0
    status = DailyRunStatus.IN_PROGRESS
    document: ResultsDocument | None = None
    start = time.perf_counter()

    try:
        while True:
            try:
                document = task()
            except LoadError:
                raise
            except allowed_exceptions:
                attempts += 1
                if attempts > max_retries:
                    raise
                DAILY_RUN_RETRY_TOTAL.inc()
                continue

            status = _status_for(document)
            break
    except Exception:
        status = DailyRunStatus.ERROR
        raise
    finally:
        duration = max(time.perf_counter() - start, 0.0)
        DAILY_RUN_DURATION_SECONDS.observe(duration)
        DAILY_RUNS_TOTAL.labels(status=status.value).inc()

    return status, document
