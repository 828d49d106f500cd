"""Prometheus metrics helpers for validation runs and the HTTP API."""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from time import perf_counter
from typing import Final

from fastapi import FastAPI, Response, status
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
    write_to_textfile,
)
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from apps.validator.src.domain import ValidationResult

SCRIPT_VALIDATIONS_TOTAL: Final[Counter] = Counter(
    "script_validations_total",
    "Total number of script descriptors validated, labelled by SDK, network and outcome.",
    labelnames=("sdk", "network", "outcome"),
)
"""Counter tracking individual descriptor verdicts."""

SDK_TEST_RUNS_TOTAL: Final[Counter] = Counter(
    "sdk_test_runs_total",
    "Total number of SDK test runs grouped by final status.",
    labelnames=("sdk", "status"),
)
"""Counter tracking whether an SDK could be installed, loaded and validated."""

SDK_TEST_DURATION_SECONDS: Final[Histogram] = Histogram(
    "sdk_test_duration_seconds",
    "Histogram of end-to-end SDK test time including install and load in seconds.",
    labelnames=("sdk",),
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0),
)
"""Histogram recording how long each SDK test took."""

DAILY_RUNS_TOTAL: Final[Counter] = Counter(
    "daily_validation_runs_total",
    "Total number of daily validation runs grouped by final status.",
    labelnames=("status",),
)
"""Counter tracking daily validation run outcomes."""

DAILY_RUN_RETRY_TOTAL: Final[Counter] = Counter(
    "daily_validation_retry_total",
    "Number of daily validation runs retried after a transient failure.",
)
"""Counter tracking retries of the daily validation job."""

DAILY_RUN_DURATION_SECONDS: Final[Histogram] = Histogram(
    "daily_validation_duration_seconds",
    "Histogram of daily validation run time in seconds.",
    buckets=(30.0, 60.0, 300.0, 900.0, 1800.0, 3600.0),
)
"""Histogram recording the duration of full daily runs."""

HTTP_REQUESTS_TOTAL: Final[Counter] = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed by the validator API.",
    labelnames=("method", "status_code", "path"),
)
"""Counter that tracks processed HTTP requests broken down by route."""

HTTP_REQUEST_DURATION_SECONDS: Final[Histogram] = Histogram(
    "http_request_duration_seconds",
    "Histogram of HTTP request latency in seconds.",
    labelnames=("method", "status_code", "path"),
)
"""Histogram measuring HTTP server latency distribution."""


def record_validation_results(sdk: str, results: Iterable[ValidationResult]) -> None:
    """Count each verdict under the SDK, network and outcome labels."""

    for result in results:
        outcome = "valid" if result.is_valid else "invalid"
        SCRIPT_VALIDATIONS_TOTAL.labels(sdk=sdk, network=result.network, outcome=outcome).inc()


class SDKTestTracker:
    """Helper recording Prometheus metrics for one SDK test run."""

    __slots__ = ("_sdk", "_started", "_completed")

    def __init__(self, sdk: str) -> None:
        self._sdk = sdk
        self._started = perf_counter()
        self._completed = False

    @property
    def elapsed(self) -> float:
        return perf_counter() - self._started

    def success(self) -> None:
        """Record a completed SDK test."""

        self._finish("success")

    def failure(self) -> None:
        """Record an SDK test that could not be completed."""

        self._finish("failure")

    def _finish(self, outcome: str) -> None:
        if self._completed:
            return
        SDK_TEST_RUNS_TOTAL.labels(sdk=self._sdk, status=outcome).inc()
        SDK_TEST_DURATION_SECONDS.labels(sdk=self._sdk).observe(self.elapsed)
        self._completed = True


def write_metrics_textfile(path: str | Path) -> None:
    """Dump the default registry in Prometheus text format for node_exporter."""

    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(destination), REGISTRY)


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Collect per-request Prometheus metrics for the FastAPI application."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> StarletteResponse:
        start_time = perf_counter()
        status_code = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            raise
        finally:
            elapsed = perf_counter() - start_time
            route = request.scope.get("route")
            path_template = getattr(route, "path", request.url.path)
            labels = (
                request.method,
                str(status_code or status.HTTP_500_INTERNAL_SERVER_ERROR),
                path_template,
            )
            HTTP_REQUESTS_TOTAL.labels(*labels).inc()
            HTTP_REQUEST_DURATION_SECONDS.labels(*labels).observe(elapsed)


def register_metrics(app: FastAPI) -> None:
    """Attach the Prometheus `/metrics` endpoint to the FastAPI application."""

    @app.get("/metrics", include_in_schema=False)
    async def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "DAILY_RUNS_TOTAL",
    "DAILY_RUN_DURATION_SECONDS",
    "DAILY_RUN_RETRY_TOTAL",
    "HTTP_REQUESTS_TOTAL",
    "HTTP_REQUEST_DURATION_SECONDS",
    "RequestMetricsMiddleware",
    "SCRIPT_VALIDATIONS_TOTAL",
    "SDK_TEST_DURATION_SECONDS",
    "SDK_TEST_RUNS_TOTAL",
    "SDKTestTracker",
    "record_validation_results",
    "register_metrics",
    "write_metrics_textfile",
]
