from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from apps.validator.src.config import get_settings
from apps.validator.src.services.reference_store import DeploymentStore
from apps.validator.src.services.validation import ValidationEngine
from tests.deployment_test_utils import default_records, write_records


@pytest.fixture(autouse=True)
def _reset_settings() -> Iterator[None]:
    """Ensure each test reads settings from its own environment."""

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop handlers bound to streams captured by a previous test."""

    yield
    logger.remove()


@pytest.fixture()
def deployments_dir(tmp_path: Path) -> Path:
    return write_records(tmp_path / "deployments", *default_records())


@pytest.fixture()
def store(deployments_dir: Path) -> DeploymentStore:
    return DeploymentStore.load(deployments_dir)


@pytest.fixture()
def engine(store: DeploymentStore) -> ValidationEngine:
    return ValidationEngine(store)


@pytest.fixture()
def app_env(monkeypatch: pytest.MonkeyPatch, deployments_dir: Path, tmp_path: Path) -> Path:
    """Point settings at temporary deployments and results directories."""

    results_dir = tmp_path / "results"
    monkeypatch.setenv("DEPLOYMENTS_DIR", str(deployments_dir))
    monkeypatch.setenv("RESULTS_DIR", str(results_dir))
    monkeypatch.delenv("STRICT_HASH_TYPE", raising=False)
    monkeypatch.delenv("METRICS_TEXTFILE", raising=False)
    get_settings.cache_clear()
    return results_dir
