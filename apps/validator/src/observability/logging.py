"""JSON logging for validator runs and API requests.

Every record carries a ``correlation_id``: the run id of a CLI invocation or
the ``X-Request-Id`` of an HTTP request.
"""
from __future__ import annotations

import sys
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from time import perf_counter
from typing import Any
from uuid import uuid4

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from apps.validator.src.config import get_settings

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: str) -> Iterator[None]:
    """Tag every record logged inside the block with ``correlation_id``."""

    token = _correlation_id_var.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id_var.reset(token)


@contextmanager
def run_context(command: str, *, run_id: str | None = None) -> Iterator[str]:
    """Bracket a CLI command with start and finish records sharing one run id."""

    resolved = run_id or uuid4().hex
    with correlation_context(resolved):
        started = perf_counter()
        logger.bind(event="cli.run", stage="start", command=command).info("Starting {command}", command=command)
        outcome = "failed"
        try:
            yield resolved
            outcome = "completed"
        finally:
            logger.bind(
                event="cli.run",
                stage=outcome,
                command=command,
                duration_seconds=round(perf_counter() - started, 3),
            ).info("Finished {command}", command=command)


def _patch_record(record: Any) -> None:
    record["extra"]["correlation_id"] = _correlation_id_var.get()


def configure_logging(*, sink: Any | None = None, serialize: bool = True) -> None:
    """Install a single loguru handler at the configured level, JSON by default."""

    settings = get_settings()
    logger.remove()
    logger.configure(
        handlers=[
            {
                "sink": sink if sink is not None else sys.stderr,
                "level": settings.log_level.upper(),
                "serialize": serialize,
                "backtrace": False,
                "diagnose": False,
            }
        ],
        extra={"correlation_id": None},
        patcher=_patch_record,
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Correlate logs with ``X-Request-Id`` and record one line per API call."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = (request.headers.get("X-Request-Id") or "").strip() or str(uuid4())
        request.state.request_id = request_id

        with correlation_context(request_id):
            started = perf_counter()
            response = await call_next(request)
            response.headers["X-Request-Id"] = request_id
            if request.url.path != "/metrics":
                logger.bind(
                    event="api.request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round((perf_counter() - started) * 1000, 2),
                ).info("Handled API request")
            return response


__all__ = [
    "RequestContextMiddleware",
    "configure_logging",
    "correlation_context",
    "get_correlation_id",
    "run_context",
]
