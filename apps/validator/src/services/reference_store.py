"""Loading of the trusted script deployment dataset."""
from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from loguru import logger
from pydantic import ValidationError

from apps.validator.src.domain import LoadError, ScriptDeployment

__all__ = ["DeploymentStore", "load_deployments"]


def _read_record(path: Path) -> ScriptDeployment:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LoadError(f"Unable to read deployment file {path}: {exc}", source=str(path)) from exc

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise LoadError(f"Malformed JSON in deployment file {path}: {exc}", source=str(path)) from exc

    try:
        return ScriptDeployment.model_validate(payload)
    except ValidationError as exc:
        raise LoadError(
            f"Deployment file {path} does not describe a script deployment: {exc}",
            source=str(path),
        ) from exc


def load_deployments(source: str | Path) -> dict[str, ScriptDeployment]:
    """Read every ``*.json`` record from ``source`` keyed by the record name.

    Files are read in sorted order; a later record with the same name replaces
    an earlier one. Any unreadable or malformed file aborts the whole load.
    """

    directory = Path(source)
    if not directory.is_dir():
        raise LoadError(f"Deployments directory not found: {directory}", source=str(directory))

    try:
        files = sorted(path for path in directory.iterdir() if path.suffix == ".json")
    except OSError as exc:
        raise LoadError(f"Unable to list deployments directory {directory}: {exc}", source=str(directory)) from exc

    deployments: dict[str, ScriptDeployment] = {}
    for path in files:
        record = _read_record(path)
        deployments[record.name] = record

    logger.bind(
        event="deployments.load",
        stage="completed",
        source=str(directory),
        total_records=len(deployments),
    ).info("Loaded script deployments")
    return deployments


class DeploymentStore(Mapping[str, ScriptDeployment]):
    """Read-only mapping of script name to its deployment record."""

    __slots__ = ("_records",)

    def __init__(self, records: Mapping[str, ScriptDeployment]) -> None:
        self._records = MappingProxyType(dict(records))

    @classmethod
    def load(cls, source: str | Path) -> DeploymentStore:
        return cls(load_deployments(source))

    def __getitem__(self, name: str) -> ScriptDeployment:
        return self._records[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"DeploymentStore({len(self._records)} scripts)"
