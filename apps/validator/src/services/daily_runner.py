"""Daily discovery, testing and reporting of all known CKB SDKs."""
from __future__ import annotations

import time
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from apps.validator.src.domain import (
    ResultsDocument,
    ResultsMetadata,
    TestReport,
    ValidationSummary,
)
from apps.validator.src.integrations.npm import NPMDiscoverer
from apps.validator.src.services.sdk_tester import DynamicSDKTester

LATEST_RESULTS_FILE = "latest-results.json"
LATEST_SUMMARY_FILE = "latest-summary.json"


def build_summary(
    reports: Sequence[TestReport],
    duration_seconds: float,
    *,
    skipped: int = 0,
    now: datetime | None = None,
) -> ValidationSummary:
    """Aggregate per-SDK reports into run totals."""

    total = len(reports)
    successful = sum(1 for report in reports if report.success)
    return ValidationSummary(
        total_sdks=total,
        successful_sdks=successful,
        failed_sdks=total - successful,
        skipped_sdks=skipped,
        total_tests=sum(report.total_tests for report in reports),
        passed_tests=sum(report.passed_tests for report in reports),
        failed_tests=sum(report.failed_tests for report in reports),
        success_rate=(successful / total) * 100 if total else 0.0,
        timestamp=now or datetime.now(UTC),
        duration_seconds=max(duration_seconds, 0.0),
    )


def _file_timestamp(moment: datetime) -> str:
    return moment.isoformat().replace(":", "-").replace(".", "-")


class DailyTestRunner:
    """Discover SDK packages, test each one and persist the results."""

    def __init__(
        self,
        results_dir: str | Path = "results",
        *,
        discoverer: NPMDiscoverer | None = None,
        tester: DynamicSDKTester | None = None,
    ) -> None:
        self._results_dir = Path(results_dir)
        self._discoverer = discoverer
        self._tester = tester

    @property
    def results_dir(self) -> Path:
        return self._results_dir

    def run_daily_tests(self) -> ResultsDocument | None:
        """Execute a full run; returns ``None`` when discovery finds nothing."""

        if self._discoverer is None or self._tester is None:
            raise RuntimeError("DailyTestRunner needs a discoverer and a tester to run")

        started = time.perf_counter()
        logger.bind(event="daily", stage="start").info("Starting daily SDK validation")

        package_names = self._discoverer.discover_sdks()
        if not package_names:
            logger.bind(event="daily", stage="empty").warning("No SDKs found to test")
            return None

        outcome = self._tester.test_all_sdks(package_names)
        summary = build_summary(
            outcome.reports,
            time.perf_counter() - started,
            skipped=len(outcome.skipped),
        )
        document = ResultsDocument(
            summary=summary,
            reports=outcome.reports,
            metadata=ResultsMetadata(generated_at=datetime.now(UTC)),
        )

        self.save_results(document)
        self.log_summary(document)

        failures = [report for report in outcome.reports if not report.success]
        if failures:
            self.handle_failures(failures)

        logger.bind(event="daily", stage="completed").info("Daily SDK validation completed")
        return document

    def save_results(self, document: ResultsDocument) -> tuple[Path, Path]:
        """Write timestamped and ``latest-*`` copies of the results and summary."""

        self._results_dir.mkdir(parents=True, exist_ok=True)
        stamp = _file_timestamp(document.summary.timestamp)
        results_file = self._results_dir / f"validation-results-{stamp}.json"
        summary_file = self._results_dir / f"validation-summary-{stamp}.json"

        results_payload = document.model_dump_json(by_alias=True, indent=2)
        summary_payload = document.summary.model_dump_json(by_alias=True, indent=2)

        results_file.write_text(results_payload, encoding="utf-8")
        summary_file.write_text(summary_payload, encoding="utf-8")
        (self._results_dir / LATEST_RESULTS_FILE).write_text(results_payload, encoding="utf-8")
        (self._results_dir / LATEST_SUMMARY_FILE).write_text(summary_payload, encoding="utf-8")

        logger.bind(
            event="daily",
            stage="saved",
            results_file=str(results_file),
            summary_file=str(summary_file),
        ).info("Saved validation results")
        return results_file, summary_file

    def log_summary(self, document: ResultsDocument) -> None:
        summary = document.summary
        logger.bind(
            event="daily",
            stage="summary",
            **summary.model_dump(mode="json", exclude={"timestamp"}),
        ).info(
            "Tested {total} SDKs: {ok} successful, {failed} failed, success rate {rate:.1f}%",
            total=summary.total_sdks,
            ok=summary.successful_sdks,
            failed=summary.failed_sdks,
            rate=summary.success_rate,
        )

        for report in document.reports:
            if report.success and report.failed_tests > 0:
                logger.bind(event="daily", stage="summary", sdk=report.sdk_name).warning(
                    "{sdk}: {failed}/{total} tests failed",
                    sdk=report.sdk_name,
                    failed=report.failed_tests,
                    total=report.total_tests,
                )

    def handle_failures(self, failures: Sequence[TestReport]) -> None:
        """Report SDKs that could not be tested at all."""

        logger.bind(event="daily", stage="failures", count=len(failures)).error(
            "Found {count} SDK failures", count=len(failures)
        )
        for failure in failures:
            logger.bind(event="daily", stage="failures", sdk=failure.sdk_name).error(
                "{sdk}: {error}", sdk=failure.sdk_name, error=failure.error
            )

    def get_latest_results(self) -> ResultsDocument | None:
        """Return the most recently saved results, if any."""

        latest = self._results_dir / LATEST_RESULTS_FILE
        if not latest.exists():
            return None
        try:
            return ResultsDocument.model_validate_json(latest.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.bind(event="daily", stage="latest", path=str(latest), error=str(exc)).warning(
                "Unable to read latest results"
            )
            return None


__all__ = ["DailyTestRunner", "LATEST_RESULTS_FILE", "LATEST_SUMMARY_FILE", "build_summary"]
