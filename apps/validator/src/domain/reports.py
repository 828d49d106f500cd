"""Per-SDK test reports and daily run summaries."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .deployment import ValidationResult

REPORT_FORMAT_VERSION = "1.0.0"


class ReportBaseModel(BaseModel):
    """Base schema for persisted reports; JSON keys are camelCase."""

    model_config = ConfigDict(populate_by_name=True)


class TestResult(ReportBaseModel):
    """Verdict for one script of one SDK on one network."""

    __test__ = False

    script_name: str = Field(alias="scriptName")
    network: str
    result: ValidationResult


class TestReport(ReportBaseModel):
    """Outcome of installing, probing and validating a single SDK package."""

    __test__ = False

    sdk_name: str = Field(alias="sdkName")
    sdk_version: str | None = Field(default=None, alias="sdkVersion")
    success: bool
    error: str | None = None
    tests: list[TestResult] = Field(default_factory=list)
    timestamp: datetime
    total_tests: int = Field(default=0, alias="totalTests", ge=0)
    passed_tests: int = Field(default=0, alias="passedTests", ge=0)
    failed_tests: int = Field(default=0, alias="failedTests", ge=0)
    duration_seconds: float = Field(default=0.0, alias="durationSeconds", ge=0.0)


class ValidationSummary(ReportBaseModel):
    """Aggregate counts for a daily validation run."""

    total_sdks: int = Field(alias="totalSDKs")
    successful_sdks: int = Field(alias="successfulSDKs")
    failed_sdks: int = Field(alias="failedSDKs")
    skipped_sdks: int = Field(default=0, alias="skippedSDKs")
    total_tests: int = Field(alias="totalTests")
    passed_tests: int = Field(alias="passedTests")
    failed_tests: int = Field(alias="failedTests")
    success_rate: float = Field(alias="successRate", description="Percentage of SDKs tested successfully.")
    timestamp: datetime
    duration_seconds: float = Field(alias="durationSeconds")


class ResultsMetadata(ReportBaseModel):
    generated_at: datetime = Field(alias="generatedAt")
    version: str = REPORT_FORMAT_VERSION


class ResultsDocument(ReportBaseModel):
    """Detailed results file written after each daily run."""

    summary: ValidationSummary
    reports: list[TestReport]
    metadata: ResultsMetadata


__all__ = [
    "REPORT_FORMAT_VERSION",
    "ResultsDocument",
    "ResultsMetadata",
    "TestReport",
    "TestResult",
    "ValidationSummary",
]
