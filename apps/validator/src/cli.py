"""Command line interface for validating CKB SDK script metadata.

Usage:
    ckb-script-validator discover
    ckb-script-validator test [--package @ckb-ccc/core]
    ckb-script-validator daily
    ckb-script-validator validate descriptors.json
    ckb-script-validator serve

Settings are read from the environment or a `.env` file (see
``apps.validator.src.config.settings``). Logs are emitted as JSON on stderr;
command results go to stdout.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from apps.validator.src.api.schemas import ValidateItem
from apps.validator.src.config import Settings, get_settings
from apps.validator.src.domain import LoadError, ValidatorError
from apps.validator.src.integrations.npm import NPMDiscoverer
from apps.validator.src.integrations.sdk import CCC_PACKAGE_NAME
from apps.validator.src.observability import configure_logging, run_context, write_metrics_textfile
from apps.validator.src.services.daily_runner import DailyTestRunner
from apps.validator.src.services.reference_store import DeploymentStore
from apps.validator.src.services.sdk_tester import DynamicSDKTester
from apps.validator.src.services.validation import ValidationEngine
from jobs.daily_validation import DailyRunStatus, run_daily_validation

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_LOAD_ERROR = 2

_ITEMS_ADAPTER = TypeAdapter(list[ValidateItem])


def _build_engine(settings: Settings) -> ValidationEngine:
    store = DeploymentStore.load(settings.deployments_path)
    return ValidationEngine(store, strict_hash_type=settings.strict_hash_type)


def _dump_metrics(settings: Settings) -> None:
    if settings.metrics_textfile:
        write_metrics_textfile(settings.metrics_textfile)


def cmd_discover(args: argparse.Namespace, settings: Settings) -> int:
    names = NPMDiscoverer(settings).discover_sdks()
    print("Discovered SDKs:")
    for position, name in enumerate(names, start=1):
        print(f"  {position}. {name}")
    return EXIT_OK


def cmd_test(args: argparse.Namespace, settings: Settings) -> int:
    tester = DynamicSDKTester(_build_engine(settings), settings=settings)
    report = tester.test_package(args.package)
    _dump_metrics(settings)
    print(report.model_dump_json(by_alias=True, indent=2))
    return EXIT_OK if report.success and report.failed_tests == 0 else EXIT_FAILED


def cmd_daily(args: argparse.Namespace, settings: Settings) -> int:
    engine = _build_engine(settings)
    runner = DailyTestRunner(
        settings.results_path,
        discoverer=NPMDiscoverer(settings),
        tester=DynamicSDKTester(engine, settings=settings),
    )
    try:
        status, document = run_daily_validation(runner.run_daily_tests, max_retries=args.retries)
    finally:
        _dump_metrics(settings)

    if document is None:
        print("No SDKs found to test")
        return EXIT_OK

    print(document.summary.model_dump_json(by_alias=True, indent=2))
    if status is DailyRunStatus.SDK_FAILURES or document.summary.failed_tests > 0:
        return EXIT_FAILED
    return EXIT_OK


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    engine = _build_engine(settings)
    try:
        payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
        if isinstance(payload, dict):
            payload = payload.get("items", [])
        items = _ITEMS_ADAPTER.validate_python(payload)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"Invalid descriptors file {args.input}: {exc}", file=sys.stderr)
        return EXIT_FAILED

    results = engine.validate_all((item.script_name, item.network, item.script) for item in items)
    print(json.dumps([result.model_dump(mode="json", by_alias=True) for result in results], indent=2))
    return EXIT_OK if all(result.is_valid for result in results) else EXIT_FAILED


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "apps.validator.src.app:app",
        host=args.host or settings.app_host,
        port=args.port or settings.app_port,
        log_level=settings.log_level.lower(),
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ckb-script-validator",
        description="CKB script validation tool for testing SDKs against deployment configurations",
    )
    subparsers = parser.add_subparsers(dest="command")

    discover = subparsers.add_parser("discover", help="Discover available CKB SDKs on npm")
    discover.set_defaults(handler=cmd_discover)

    test = subparsers.add_parser("test", help="Test a specific SDK")
    test.add_argument("--package", default=CCC_PACKAGE_NAME, help="npm package to test")
    test.set_defaults(handler=cmd_test)

    daily = subparsers.add_parser("daily", help="Run full daily validation of all discovered SDKs")
    daily.add_argument("--retries", type=int, default=0, help="Retries after transient I/O failures")
    daily.set_defaults(handler=cmd_daily)

    validate = subparsers.add_parser("validate", help="Validate SDK descriptors stored in a JSON file")
    validate.add_argument("input", help="JSON list of {scriptName, network, script} objects")
    validate.set_defaults(handler=cmd_validate)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(handler=cmd_serve)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler: Callable[[argparse.Namespace, Settings], int] | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return EXIT_OK

    settings = get_settings()
    configure_logging()
    with run_context(args.command):
        try:
            return handler(args, settings)
        except LoadError as exc:
            print(f"Unable to load reference deployments: {exc}", file=sys.stderr)
            return EXIT_LOAD_ERROR
        except ValidatorError as exc:
            print(f"{args.command} failed: {exc}", file=sys.stderr)
            return EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
