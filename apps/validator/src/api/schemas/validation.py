"""Schemas for on-demand descriptor validation."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from apps.validator.src.domain import Network, ScriptDescriptor, ValidationResult


class ValidationAPIModel(BaseModel):
    """Base schema for validation payloads."""

    model_config = ConfigDict(populate_by_name=True)


class ValidateItem(ValidationAPIModel):
    """Descriptor reported by an SDK for a single script."""

    script_name: str = Field(alias="scriptName", min_length=1)
    network: Network = Field(description="Network the descriptor was reported for.")
    script: ScriptDescriptor


class ValidateRequest(ValidationAPIModel):
    """Batch of descriptors to check against the reference deployments."""

    items: list[ValidateItem] = Field(min_length=1, max_length=1000)


class ValidateResponse(ValidationAPIModel):
    """Verdicts in the same order as the submitted items."""

    results: list[ValidationResult]
    valid: int = Field(ge=0, description="Number of descriptors that matched.")
    invalid: int = Field(ge=0, description="Number of descriptors with at least one error.")
