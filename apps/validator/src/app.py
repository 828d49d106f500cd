"""FastAPI application setup and router registration."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from apps.validator.src.api.dependencies import (
    ProblemDetailException,
    build_error,
    provide_request_id,
)
from apps.validator.src.api.routes import results as results_router
from apps.validator.src.api.routes import validation as validation_router
from apps.validator.src.api.schemas import Error, Health
from apps.validator.src.config import get_settings
from apps.validator.src.domain import LoadError
from apps.validator.src.health import get_health_payload
from apps.validator.src.observability import (
    RequestContextMiddleware,
    RequestMetricsMiddleware,
    configure_logging,
    register_metrics,
)
from apps.validator.src.services.reference_store import DeploymentStore
from apps.validator.src.services.validation import ValidationEngine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialise logging and load the reference deployments once."""

    configure_logging()
    settings = get_settings()
    store = DeploymentStore.load(settings.deployments_path)
    app.state.validation_engine = ValidationEngine(store, strict_hash_type=settings.strict_hash_type)
    logger.bind(
        event="api.startup",
        deployments_dir=str(settings.deployments_path),
        scripts=len(store),
        strict_hash_type=settings.strict_hash_type,
    ).info("Validator API ready with {scripts} reference scripts", scripts=len(store))
    yield
    logger.bind(event="api.shutdown").info("Validator API stopped")


app = FastAPI(title="CKB Script Validator", lifespan=lifespan)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(RequestMetricsMiddleware)
register_metrics(app)

app.include_router(validation_router.router)
app.include_router(results_router.router)


def _request_id(request: Request) -> str:
    return (
        getattr(request.state, "request_id", None)
        or request.headers.get("X-Request-Id")
        or str(uuid4())
    )


def _problem_response(error: Error) -> JSONResponse:
    response = JSONResponse(
        status_code=error.status,
        content=error.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )
    if error.request_id:
        response.headers["X-Request-Id"] = error.request_id
    return response


@app.get("/health", response_model=Health)
async def health(
    request: Request,
    response: Response,
    request_id: str = Depends(provide_request_id),
) -> Health:
    """Report liveness and how many reference scripts are loaded, if any."""

    engine = getattr(request.app.state, "validation_engine", None)
    scripts = engine.script_count if engine is not None else None
    return Health.model_validate({**get_health_payload(), "scripts": scripts})


@app.exception_handler(ProblemDetailException)
async def handle_problem_detail(request: Request, exc: ProblemDetailException) -> JSONResponse:
    """Render RFC7807 responses raised by dependencies and routes."""

    error = exc.error
    request_id = error.request_id or _request_id(request)
    return _problem_response(
        error.model_copy(update={"request_id": request_id, "instance": error.instance or request.url.path})
    )


@app.exception_handler(LoadError)
async def handle_load_error(request: Request, exc: LoadError) -> JSONResponse:
    """Report an unusable reference dataset as a service outage."""

    request_id = _request_id(request)
    logger.bind(event="deployments.load", stage="failed", source=exc.source, request_id=request_id).error(
        "Reference deployments could not be loaded"
    )
    return _problem_response(
        build_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            title="Reference deployments unavailable",
            detail=str(exc),
            request_id=request_id,
            instance=request.url.path,
        )
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert FastAPI validation errors into problem details responses."""

    errors: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error.get("loc", []) if part not in {"body"})
        errors.append({
            "field": loc or "body",
            "message": error.get("msg", "Invalid value."),
        })

    problem = build_error(
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        title="Validation failed",
        detail="Request validation failed.",
        request_id=_request_id(request),
        instance=request.url.path,
        errors=errors or None,
    )
    return _problem_response(problem)
