"""FastAPI dependencies shared by the validation and results routes."""
from __future__ import annotations

from typing import Annotated
from uuid import uuid4

from fastapi import Header, Request, Response, status

from apps.validator.src.api.schemas import Error
from apps.validator.src.config import get_settings
from apps.validator.src.services.daily_runner import DailyTestRunner
from apps.validator.src.services.reference_store import DeploymentStore
from apps.validator.src.services.validation import ValidationEngine


class ProblemDetailException(Exception):
    """Exception carrying an RFC7807 payload for the problem handler."""

    def __init__(self, error: Error) -> None:
        super().__init__(error.title)
        self.error = error


_RequestIdHeader = Annotated[str | None, Header(alias="X-Request-Id", max_length=128)]


def build_error(
    status_code: int,
    *,
    title: str,
    detail: str | None = None,
    request_id: str | None = None,
    instance: str | None = None,
    type_: str = "about:blank",
    errors: list[dict[str, str]] | None = None,
) -> Error:
    return Error(
        type=type_,
        title=title,
        status=status_code,
        detail=detail,
        instance=instance,
        errors=errors,
        request_id=request_id,
    )


def provide_request_id(response: Response, request_id: _RequestIdHeader = None) -> str:
    """Echo the caller's `X-Request-Id`, or mint one, on every response."""

    value = (request_id or "").strip() or str(uuid4())
    response.headers["X-Request-Id"] = value
    return value


def get_validation_engine(request: Request) -> ValidationEngine:
    """Return the engine built from the reference deployments, loading them on first use.

    The lifespan normally builds the engine at startup. Clients that skip the
    lifespan (tests, embedded mounts) get it lazily; a broken dataset surfaces
    as :class:`~apps.validator.src.domain.LoadError` and maps to HTTP 503.
    """

    engine: ValidationEngine | None = getattr(request.app.state, "validation_engine", None)
    if engine is None:
        settings = get_settings()
        store = DeploymentStore.load(settings.deployments_path)
        engine = ValidationEngine(store, strict_hash_type=settings.strict_hash_type)
        request.app.state.validation_engine = engine
    return engine


def get_results_runner() -> DailyTestRunner:
    """Return a read-only runner bound to the configured results directory."""

    return DailyTestRunner(get_settings().results_path)


def no_results_recorded(request: Request, request_id: str | None) -> ProblemDetailException:
    return ProblemDetailException(
        build_error(
            status.HTTP_404_NOT_FOUND,
            title="Not found",
            detail="No validation results have been recorded yet.",
            request_id=request_id,
            instance=request.url.path,
        )
    )
