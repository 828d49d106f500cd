"""Endpoints validating SDK descriptors against the reference deployments."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger

from apps.validator.src.api.dependencies import get_validation_engine, provide_request_id
from apps.validator.src.api.schemas import ValidateRequest, ValidateResponse
from apps.validator.src.services.validation import ValidationEngine

router = APIRouter(prefix="/api/v1", tags=["validation"])


@router.post("/validate", response_model=ValidateResponse, response_model_by_alias=True)
def validate_descriptors(
    payload: ValidateRequest,
    *,
    request_id: str = Depends(provide_request_id),
    engine: ValidationEngine = Depends(get_validation_engine),
) -> ValidateResponse:
    """Validate each submitted descriptor and return the verdicts in request order."""

    results = engine.validate_all(
        (item.script_name, item.network, item.script) for item in payload.items
    )
    valid = sum(1 for result in results if result.is_valid)
    logger.bind(
        event="api.validate",
        request_id=request_id,
        total=len(results),
        invalid=len(results) - valid,
    ).info("Validated descriptors")
    return ValidateResponse(results=results, valid=valid, invalid=len(results) - valid)
