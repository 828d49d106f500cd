"""Tests for the install, load and validate pipeline of a single SDK."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest
from prometheus_client import REGISTRY

from apps.validator.src.config import Settings
from apps.validator.src.domain import (
    AdapterNotFoundError,
    ScriptDescriptor,
    SDKInstallError,
    SDKLoadError,
    SDKScript,
)
from apps.validator.src.integrations.npm import InstalledSDK
from apps.validator.src.services.sdk_tester import DynamicSDKTester
from apps.validator.src.services.validation import ValidationEngine
from tests.deployment_test_utils import descriptor_payload


class FakeInstaller:
    """Installer stand-in yielding a fixed install root."""

    def __init__(self, root: Path, *, version: str | None = "0.9.0", error: Exception | None = None) -> None:
        self.root = root
        self.version = version
        self.error = error
        self.installed: list[str] = []

    @contextmanager
    def install(self, package_name: str, version: str = "latest") -> Iterator[InstalledSDK]:
        self.installed.append(package_name)
        if self.error is not None:
            raise self.error
        yield InstalledSDK(package_name=package_name, version=self.version, root=self.root)


class FakeAdapter:
    def __init__(self, package_name: str, scripts: list[SDKScript] | None = None, error: Exception | None = None):
        self.package_name = package_name
        self.scripts = scripts or []
        self.error = error

    def collect_scripts(self, sdk: InstalledSDK) -> list[SDKScript]:
        if self.error is not None:
            raise self.error
        return self.scripts


def _script(name: str, network: str = "mainnet", **overrides: str) -> SDKScript:
    return SDKScript(name=name, network=network, script=ScriptDescriptor.model_validate(descriptor_payload(**overrides)))


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def installer(tmp_path: Path) -> FakeInstaller:
    return FakeInstaller(tmp_path)


def _tester(engine: ValidationEngine, installer: FakeInstaller, adapters: dict[str, FakeAdapter] | None = None):
    registry = adapters or {}

    def factory(name: str) -> FakeAdapter:
        try:
            return registry[name]
        except KeyError as exc:
            raise AdapterNotFoundError(name) from exc

    return DynamicSDKTester(engine, settings=Settings(), installer=installer, adapter_factory=factory)


def test_report_counts_passed_and_failed_scripts(engine: ValidationEngine, installer: FakeInstaller) -> None:
    adapter = FakeAdapter(
        "sdk-report",
        [_script("always_success"), _script("always_success", "testnet", code_hash="0xFFFF"), _script("unknown")],
    )
    before_valid = _sample("script_validations_total", sdk="sdk-report", network="mainnet", outcome="valid")
    before_runs = _sample("sdk_test_runs_total", sdk="sdk-report", status="success")

    report = _tester(engine, installer).test_sdk("sdk-report", adapter)

    assert report.success is True
    assert report.error is None
    assert report.sdk_version == "0.9.0"
    assert (report.total_tests, report.passed_tests, report.failed_tests) == (3, 1, 2)
    assert [test.script_name for test in report.tests] == ["always_success", "always_success", "unknown"]
    assert report.tests[1].result.errors == ("CodeHash mismatch: expected 0xAABB, got 0xFFFF",)
    assert report.duration_seconds >= 0
    assert _sample("script_validations_total", sdk="sdk-report", network="mainnet", outcome="valid") == before_valid + 1
    assert _sample("sdk_test_runs_total", sdk="sdk-report", status="success") == before_runs + 1


def test_install_failure_produces_unsuccessful_report(engine: ValidationEngine, tmp_path: Path) -> None:
    installer = FakeInstaller(tmp_path, error=SDKInstallError("npm install sdk-broken@latest exited with code 1"))
    before = _sample("sdk_test_runs_total", sdk="sdk-broken", status="failure")

    report = _tester(engine, installer).test_sdk("sdk-broken", FakeAdapter("sdk-broken"))

    assert report.success is False
    assert report.error == "npm install sdk-broken@latest exited with code 1"
    assert report.sdk_version is None
    assert report.tests == []
    assert report.total_tests == 0
    assert _sample("sdk_test_runs_total", sdk="sdk-broken", status="failure") == before + 1


def test_load_failure_keeps_installed_version(engine: ValidationEngine, installer: FakeInstaller) -> None:
    adapter = FakeAdapter("sdk-broken", error=SDKLoadError("Failed to load sdk-broken: boom"))

    report = _tester(engine, installer).test_sdk("sdk-broken", adapter)

    assert report.success is False
    assert report.sdk_version == "0.9.0"
    assert report.error == "Failed to load sdk-broken: boom"


def test_test_package_uses_registered_adapter(engine: ValidationEngine, installer: FakeInstaller) -> None:
    tester = _tester(engine, installer, {"sdk-one": FakeAdapter("sdk-one", [_script("always_success")])})

    report = tester.test_package("sdk-one")

    assert report.passed_tests == 1
    assert installer.installed == ["sdk-one"]


def test_test_all_sdks_skips_packages_without_adapter(engine: ValidationEngine, installer: FakeInstaller) -> None:
    adapters = {
        "sdk-one": FakeAdapter("sdk-one", [_script("always_success")]),
        "sdk-two": FakeAdapter("sdk-two", [_script("two_deps")]),
    }

    outcome = _tester(engine, installer, adapters).test_all_sdks(["sdk-one", "ckb-unknown", "sdk-two"])

    assert [report.sdk_name for report in outcome.reports] == ["sdk-one", "sdk-two"]
    assert outcome.skipped == ["ckb-unknown"]
    assert installer.installed == ["sdk-one", "sdk-two"]
    assert outcome.reports[1].failed_tests == 1
