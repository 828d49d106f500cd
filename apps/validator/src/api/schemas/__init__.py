"""Pydantic schemas exposed by the API layer."""

from .common import Error, ErrorItem, Health
from .validation import ValidateItem, ValidateRequest, ValidateResponse

__all__ = [
    "Error",
    "ErrorItem",
    "Health",
    "ValidateItem",
    "ValidateRequest",
    "ValidateResponse",
]
