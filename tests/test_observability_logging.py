"""Tests for JSON logging and correlation id injection."""
from __future__ import annotations

import asyncio
import io
import json

import pytest
from loguru import logger
from starlette.requests import Request
from starlette.responses import Response

from apps.validator.src.observability.logging import (
    RequestContextMiddleware,
    configure_logging,
    correlation_context,
    get_correlation_id,
    run_context,
)


def _parse_logs(buffer: io.StringIO) -> list[dict[str, object]]:
    buffer.seek(0)
    lines = [line for line in buffer.getvalue().splitlines() if line.strip()]
    return [json.loads(line)["record"] for line in lines]


def test_run_correlation_id_is_attached_to_records() -> None:
    """Every record emitted inside a run context carries its correlation id."""

    buffer = io.StringIO()
    configure_logging(sink=buffer)

    with correlation_context("run-123"):
        assert get_correlation_id() == "run-123"
        logger.bind(event="daily", stage="start").info("inside run")
    logger.bind(event="daily", stage="after").info("outside run")

    records = _parse_logs(buffer)
    assert [record["extra"]["correlation_id"] for record in records] == ["run-123", None]
    assert records[0]["extra"]["event"] == "daily"
    assert get_correlation_id() is None


def test_log_level_filters_records(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")

    buffer = io.StringIO()
    configure_logging(sink=buffer)

    logger.info("dropped")
    logger.warning("kept")

    assert [record["message"] for record in _parse_logs(buffer)] == ["kept"]


def test_request_context_injects_request_id_into_logs() -> None:
    """Request middleware injects correlation id for main and background tasks."""

    buffer = io.StringIO()
    configure_logging(sink=buffer)

    middleware = RequestContextMiddleware(lambda scope, receive, send: None)

    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/v1/validate",
        "headers": [(b"x-request-id", b"req-789")],
        "query_string": b"",
        "client": ("test", 0),
        "server": ("test", 80),
        "scheme": "http",
    }

    async def receive() -> dict[str, object]:
        return {"type": "http.request", "body": b"", "more_body": False}

    async def call_next(_: Request) -> Response:
        logger.bind(event="test", stage="main").info("main request log")

        async def background() -> None:
            logger.bind(event="test", stage="background").info("background log")

        await asyncio.create_task(background())
        return Response(status_code=200)

    async def scenario() -> Response:
        return await middleware.dispatch(Request(scope, receive), call_next)

    response = asyncio.run(scenario())
    assert response.status_code == 200
    assert response.headers.get("X-Request-Id") == "req-789"

    records = _parse_logs(buffer)
    assert len(records) >= 2
    assert {entry["extra"]["correlation_id"] for entry in records} == {"req-789"}
    request_line = next(entry for entry in records if entry["extra"].get("event") == "api.request")
    assert request_line["extra"]["status_code"] == 200
    assert request_line["extra"]["path"] == "/api/v1/validate"
    assert request_line["extra"]["method"] == "POST"


def test_run_context_brackets_command_with_its_run_id() -> None:
    buffer = io.StringIO()
    configure_logging(sink=buffer)

    with run_context("daily") as run_id:
        assert get_correlation_id() == run_id
        logger.bind(event="daily.run", stage="summary").info("summary written")

    records = _parse_logs(buffer)
    assert [record["extra"]["correlation_id"] for record in records] == [run_id] * 3
    assert [record["extra"].get("stage") for record in records] == ["start", "summary", "completed"]
    assert records[0]["extra"]["event"] == "cli.run"
    assert records[0]["extra"]["command"] == "daily"
    assert "duration_seconds" in records[-1]["extra"]
    assert get_correlation_id() is None


def test_run_context_marks_failed_commands() -> None:
    buffer = io.StringIO()
    configure_logging(sink=buffer)

    with pytest.raises(RuntimeError):
        with run_context("test", run_id="run-fixed"):
            raise RuntimeError("boom")

    finished = _parse_logs(buffer)[-1]
    assert finished["extra"]["stage"] == "failed"
    assert finished["extra"]["correlation_id"] == "run-fixed"
