"""npm registry client used to discover candidate CKB SDK packages."""
from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx
from loguru import logger

from apps.validator.src.config import Settings, get_settings
from apps.validator.src.domain import DiscoveryError

SEARCH_ENDPOINT = "-/v1/search"
MAX_RETRY_ATTEMPTS = 4


@dataclass(frozen=True, slots=True)
class NPMPackage:
    """Package metadata reported by the registry."""

    name: str
    version: str
    description: str | None = None
    repository: str | None = None


def _repository_url(payload: dict[str, Any]) -> str | None:
    repository = payload.get("repository")
    if isinstance(repository, dict):
        url = repository.get("url")
        return url if isinstance(url, str) else None
    if isinstance(repository, str):
        return repository
    links = payload.get("links")
    if isinstance(links, dict) and isinstance(links.get("repository"), str):
        return links["repository"]
    return None


def _package_from_payload(payload: dict[str, Any]) -> NPMPackage | None:
    name = payload.get("name")
    if not isinstance(name, str) or not name:
        return None
    version = payload.get("version")
    description = payload.get("description")
    return NPMPackage(
        name=name,
        version=version if isinstance(version, str) else "",
        description=description if isinstance(description, str) else None,
        repository=_repository_url(payload),
    )


class NPMDiscoverer:
    """Search the npm registry for packages that look like CKB SDKs."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: httpx.Client | None = None,
        sleep: Any = time.sleep,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._sleep = sleep
        self._base_url = self._settings.npm_registry_url.rstrip("/")

    def discover_sdks(self, patterns: Sequence[str] | None = None) -> list[str]:
        """Return unique package names matching any pattern, in first-seen order."""

        search_patterns = list(patterns) if patterns is not None else self._settings.discovery_patterns
        logger.bind(event="discovery", stage="start", patterns=search_patterns).info(
            "Discovering CKB SDK packages on npm"
        )

        names: dict[str, None] = {}
        for pattern in search_patterns:
            try:
                packages = self.search(pattern)
            except DiscoveryError as exc:
                logger.bind(event="discovery", stage="search_failed", pattern=pattern).warning(
                    "Failed to search for pattern {pattern!r}: {error}", pattern=pattern, error=str(exc)
                )
                continue
            for package in packages:
                names.setdefault(package.name, None)
            logger.bind(event="discovery", stage="search", pattern=pattern, found=len(packages)).info(
                "Found packages matching pattern"
            )

        unique = list(names)
        logger.bind(event="discovery", stage="completed", total_packages=len(unique)).info(
            "Discovered unique SDK packages"
        )
        return unique

    def search(self, pattern: str) -> list[NPMPackage]:
        """Run a registry keyword search and return the matching packages."""

        payload = self._get_json(
            f"{self._base_url}/{SEARCH_ENDPOINT}",
            params={"text": pattern, "size": str(self._settings.sdk_search_size)},
        )
        objects = payload.get("objects") if isinstance(payload, dict) else None
        if not isinstance(objects, list):
            raise DiscoveryError(f"Unexpected search payload for pattern {pattern!r}")

        packages: list[NPMPackage] = []
        for entry in objects:
            if not isinstance(entry, dict) or not isinstance(entry.get("package"), dict):
                continue
            package = _package_from_payload(entry["package"])
            if package is not None:
                packages.append(package)
        return packages

    def get_package_info(self, package_name: str) -> NPMPackage | None:
        """Return metadata for the latest published version, or ``None`` on failure."""

        try:
            payload = self._get_json(f"{self._base_url}/{quote(package_name, safe='@')}/latest")
        except DiscoveryError as exc:
            logger.bind(event="discovery", stage="package_info", package=package_name).warning(
                "Failed to get info for {package}: {error}", package=package_name, error=str(exc)
            )
            return None
        return _package_from_payload(payload) if isinstance(payload, dict) else None

    def get_latest_version(self, package_name: str) -> str | None:
        """Return the ``latest`` dist-tag version of ``package_name``."""

        info = self.get_package_info(package_name)
        if info is None or not info.version:
            return None
        return info.version

    def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        if self._client is not None:
            return self._request_with_retry(self._client, url, params)
        with httpx.Client(timeout=float(self._settings.request_timeout_s)) as client:
            return self._request_with_retry(client, url, params)

    def _request_with_retry(
        self,
        client: httpx.Client,
        url: str,
        params: dict[str, str] | None,
    ) -> Any:
        backoff_base = float(self._settings.npm_backoff_seconds)
        attempt = 0
        while True:
            try:
                response = client.get(url, params=params)
            except httpx.HTTPError as exc:
                raise DiscoveryError(f"Request to {url} failed: {exc}") from exc

            if response.status_code == httpx.codes.OK:
                try:
                    return response.json()
                except ValueError as exc:
                    raise DiscoveryError(f"Invalid JSON returned by {url}") from exc

            retryable = response.status_code == httpx.codes.TOO_MANY_REQUESTS or 500 <= response.status_code < 600
            if not retryable:
                raise DiscoveryError(f"Registry returned HTTP {response.status_code} for {url}")

            attempt += 1
            if attempt >= MAX_RETRY_ATTEMPTS:
                raise DiscoveryError(
                    f"Registry returned HTTP {response.status_code} for {url} after {attempt} attempts"
                )

            delay = backoff_base * (2 ** (attempt - 1)) if backoff_base > 0 else 0.0
            logger.bind(
                event="discovery",
                stage="retry",
                attempt=attempt,
                status_code=response.status_code,
                retry_delay=delay,
            ).warning("Retrying npm registry request")
            if delay > 0:
                self._sleep(delay)


__all__ = ["NPMDiscoverer", "NPMPackage"]
