"""Pydantic models for system-level API responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Health(BaseModel):
    """Schema describing the health-check payload."""

    status: str = Field(description="Overall health status of the validator service.")
    version: str | None = Field(
        default=None,
        description="Currently deployed API version.",
    )
    scripts: int | None = Field(
        default=None,
        description="Number of reference scripts loaded from the deployments directory.",
    )


class ErrorItem(BaseModel):
    """Detailed description of a single validation error."""

    field: str | None = Field(
        default=None,
        description="Field path related to the error.",
    )
    message: str = Field(description="Description of the validation issue.")


class Error(BaseModel):
    """Problem+JSON compatible error representation."""

    type: str = Field(description="Link to a document describing the error type.")
    title: str = Field(description="Short human-readable summary of the error.")
    status: int = Field(description="HTTP status code applicable to this problem.")
    detail: str | None = Field(
        default=None,
        description="Explanation specific to this occurrence of the problem.",
    )
    instance: str | None = Field(
        default=None,
        description="Request path that produced the problem.",
    )
    errors: list[ErrorItem] | None = Field(
        default=None,
        description="List of field level validation errors.",
    )
    request_id: str | None = Field(
        default=None,
        description="Identifier correlating the error with logs and traces.",
    )
