"""Install npm SDK packages into throw-away directories and run node scripts against them."""
from __future__ import annotations

import json
import subprocess
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from apps.validator.src.config import Settings, get_settings
from apps.validator.src.domain import SDKInstallError, SDKLoadError

_TEMP_PREFIX = "ckb-sdk-"


@dataclass(frozen=True, slots=True)
class InstalledSDK:
    """SDK package installed under ``root/node_modules``."""

    package_name: str
    version: str | None
    root: Path

    @property
    def package_dir(self) -> Path:
        return self.root / "node_modules" / self.package_name


def _read_installed_version(package_dir: Path) -> str | None:
    manifest = package_dir / "package.json"
    try:
        payload = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    version = payload.get("version") if isinstance(payload, dict) else None
    return version if isinstance(version, str) else None


def _run(command: Sequence[str], *, cwd: Path, timeout: float) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        list(command),
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
    )


class SDKInstaller:
    """Install SDK packages with npm into temporary prefixes."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def build_install_command(self, package_name: str, version: str = "latest") -> list[str]:
        return [
            self._settings.npm_bin,
            "install",
            "--no-save",
            "--no-audit",
            "--no-fund",
            "--ignore-scripts",
            "--prefix",
            ".",
            f"{package_name}@{version}",
        ]

    @contextmanager
    def install(self, package_name: str, version: str = "latest") -> Iterator[InstalledSDK]:
        """Install ``package_name@version`` and remove it once the block exits."""

        with tempfile.TemporaryDirectory(prefix=_TEMP_PREFIX) as workdir:
            root = Path(workdir)
            command = self.build_install_command(package_name, version)
            logger.bind(event="sdk.install", stage="start", package=package_name, version=version).info(
                "Installing SDK package"
            )
            try:
                result = _run(command, cwd=root, timeout=float(self._settings.sdk_install_timeout_s))
            except FileNotFoundError as exc:
                raise SDKInstallError(f"npm executable not found: {self._settings.npm_bin}") from exc
            except subprocess.TimeoutExpired as exc:
                raise SDKInstallError(
                    f"Installing {package_name}@{version} timed out after {exc.timeout}s"
                ) from exc

            if result.returncode != 0:
                logger.bind(
                    event="sdk.install",
                    stage="failed",
                    package=package_name,
                    returncode=result.returncode,
                    stderr=result.stderr,
                ).error("npm install failed")
                raise SDKInstallError(
                    f"npm install {package_name}@{version} exited with code {result.returncode}"
                )

            installed = InstalledSDK(
                package_name=package_name,
                version=_read_installed_version(root / "node_modules" / package_name),
                root=root,
            )
            logger.bind(
                event="sdk.install",
                stage="completed",
                package=package_name,
                installed_version=installed.version,
            ).info("Installed SDK package")
            yield installed


def run_node_script(
    sdk: InstalledSDK,
    source: str,
    *,
    settings: Settings | None = None,
) -> Any:
    """Evaluate ``source`` with node inside the SDK install root and decode its JSON output."""

    resolved = settings or get_settings()
    command = [resolved.node_bin, "-e", source]
    try:
        result = _run(command, cwd=sdk.root, timeout=float(resolved.node_timeout_s))
    except FileNotFoundError as exc:
        raise SDKLoadError(f"node executable not found: {resolved.node_bin}") from exc
    except subprocess.TimeoutExpired as exc:
        raise SDKLoadError(f"Probing {sdk.package_name} timed out after {exc.timeout}s") from exc

    if result.returncode != 0:
        logger.bind(
            event="sdk.load",
            stage="failed",
            package=sdk.package_name,
            returncode=result.returncode,
            stderr=result.stderr,
        ).error("Node script failed")
        message = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else "no output"
        raise SDKLoadError(f"Failed to load {sdk.package_name}: {message}")

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise SDKLoadError(f"Node script for {sdk.package_name} did not print valid JSON") from exc


__all__ = ["InstalledSDK", "SDKInstaller", "run_node_script"]
