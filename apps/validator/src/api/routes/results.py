"""Read-only access to the latest daily validation results."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from apps.validator.src.api.dependencies import get_results_runner, no_results_recorded, provide_request_id
from apps.validator.src.domain import ResultsDocument, ValidationSummary
from apps.validator.src.services.daily_runner import DailyTestRunner

router = APIRouter(prefix="/api/v1/results", tags=["results"])


def _load_latest(request: Request, runner: DailyTestRunner, request_id: str) -> ResultsDocument:
    document = runner.get_latest_results()
    if document is None:
        raise no_results_recorded(request, request_id)
    return document


@router.get("/latest", response_model=ResultsDocument, response_model_by_alias=True)
def latest_results(
    request: Request,
    *,
    request_id: str = Depends(provide_request_id),
    runner: DailyTestRunner = Depends(get_results_runner),
) -> ResultsDocument:
    """Return the detailed results of the most recent daily run."""

    return _load_latest(request, runner, request_id)


@router.get("/latest/summary", response_model=ValidationSummary, response_model_by_alias=True)
def latest_summary(
    request: Request,
    *,
    request_id: str = Depends(provide_request_id),
    runner: DailyTestRunner = Depends(get_results_runner),
) -> ValidationSummary:
    """Return only the summary of the most recent daily run."""

    return _load_latest(request, runner, request_id).summary
