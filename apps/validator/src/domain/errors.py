"""Exceptions raised by the validator outside of script comparison."""

from __future__ import annotations


class ValidatorError(Exception):
    """Base class for operational failures of a validation run."""


class LoadError(ValidatorError):
    """Raised when the reference deployments cannot be loaded."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class DiscoveryError(ValidatorError):
    """Raised when the npm registry cannot be queried."""


class SDKInstallError(ValidatorError):
    """Raised when an SDK package cannot be installed."""


class SDKLoadError(ValidatorError):
    """Raised when an installed SDK cannot be loaded or inspected."""


class AdapterNotFoundError(ValidatorError):
    """Raised when no adapter is registered for an SDK package."""

    def __init__(self, package_name: str) -> None:
        super().__init__(f"No adapter registered for SDK package {package_name!r}")
        self.package_name = package_name


__all__ = [
    "AdapterNotFoundError",
    "DiscoveryError",
    "LoadError",
    "SDKInstallError",
    "SDKLoadError",
    "ValidatorError",
]
