"""Install an SDK, extract its script descriptors and validate them."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from loguru import logger

from apps.validator.src.config import Settings, get_settings
from apps.validator.src.domain import (
    AdapterNotFoundError,
    TestReport,
    TestResult,
    ValidationResult,
    ValidatorError,
)
from apps.validator.src.integrations.npm import SDKInstaller
from apps.validator.src.integrations.sdk import SDKAdapter, get_adapter
from apps.validator.src.observability.metrics import SDKTestTracker, record_validation_results
from apps.validator.src.services.validation import ValidationEngine

AdapterFactory = Callable[[str], SDKAdapter]
"""Callable returning the adapter for an SDK package name."""


@dataclass(slots=True)
class BatchOutcome:
    """Reports for tested SDKs plus the packages skipped for lack of an adapter."""

    reports: list[TestReport] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _log_invalid(package_name: str, result: ValidationResult) -> None:
    log = logger.bind(
        event="sdk.validate",
        stage="mismatch",
        sdk=package_name,
        script=result.script_name,
        network=result.network,
    )
    log.error("Validation failed for {script} on {network}", script=result.script_name, network=result.network)
    for error in result.errors:
        log.error(" - {error}", error=error)


class DynamicSDKTester:
    """Run the install, load and validate pipeline for SDK packages."""

    def __init__(
        self,
        engine: ValidationEngine,
        *,
        settings: Settings | None = None,
        installer: SDKInstaller | None = None,
        adapter_factory: AdapterFactory | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._engine = engine
        self._installer = installer or SDKInstaller(self._settings)
        self._adapter_factory = adapter_factory or (lambda name: get_adapter(name, self._settings))

    def test_sdk(self, package_name: str, adapter: SDKAdapter) -> TestReport:
        """Return a report for ``package_name``; glue failures yield an unsuccessful report."""

        tracker = SDKTestTracker(package_name)
        sdk_version: str | None = None
        logger.bind(event="sdk.test", stage="start", sdk=package_name).info("Testing SDK {sdk}", sdk=package_name)

        try:
            with self._installer.install(package_name) as installed:
                sdk_version = installed.version
                scripts = adapter.collect_scripts(installed)
        except ValidatorError as exc:
            tracker.failure()
            logger.bind(event="sdk.test", stage="failed", sdk=package_name, error=str(exc)).error(
                "SDK test failed"
            )
            return TestReport(
                sdk_name=package_name,
                sdk_version=sdk_version,
                success=False,
                error=str(exc),
                timestamp=datetime.now(UTC),
                duration_seconds=tracker.elapsed,
            )

        logger.bind(event="sdk.test", stage="validate", sdk=package_name, scripts=len(scripts)).info(
            "Testing against {count} known scripts", count=len(scripts)
        )
        results = self._engine.validate_all((item.name, item.network, item.script) for item in scripts)
        record_validation_results(package_name, results)

        tests: list[TestResult] = []
        for result in results:
            if not result.is_valid:
                _log_invalid(package_name, result)
            tests.append(TestResult(script_name=result.script_name, network=result.network, result=result))

        passed = sum(1 for result in results if result.is_valid)
        tracker.success()
        report = TestReport(
            sdk_name=package_name,
            sdk_version=sdk_version,
            success=True,
            tests=tests,
            timestamp=datetime.now(UTC),
            total_tests=len(tests),
            passed_tests=passed,
            failed_tests=len(tests) - passed,
            duration_seconds=tracker.elapsed,
        )
        logger.bind(
            event="sdk.test",
            stage="completed",
            sdk=package_name,
            passed=report.passed_tests,
            total=report.total_tests,
            duration_seconds=round(report.duration_seconds, 2),
        ).info("Testing completed: {passed}/{total} tests passed", passed=passed, total=len(tests))
        return report

    def test_package(self, package_name: str) -> TestReport:
        """Test ``package_name`` with its registered adapter."""

        return self.test_sdk(package_name, self._adapter_factory(package_name))

    def test_all_sdks(self, package_names: Sequence[str]) -> BatchOutcome:
        """Test every package with a registered adapter, in the given order."""

        outcome = BatchOutcome()
        for package_name in package_names:
            try:
                adapter = self._adapter_factory(package_name)
            except AdapterNotFoundError:
                logger.bind(event="sdk.test", stage="skipped", sdk=package_name).info(
                    "Skipping package without adapter"
                )
                outcome.skipped.append(package_name)
                continue
            outcome.reports.append(self.test_sdk(package_name, adapter))
        return outcome


__all__ = ["AdapterFactory", "BatchOutcome", "DynamicSDKTester"]
