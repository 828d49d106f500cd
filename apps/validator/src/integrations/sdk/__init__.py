"""SDK adapters selected by npm package name."""

from __future__ import annotations

from apps.validator.src.config import Settings
from apps.validator.src.domain import AdapterNotFoundError

from .base import NodeRunner, SDKAdapter
from .ccc import CCC_PACKAGE_NAME, CCCAdapter

ADAPTERS: dict[str, type[CCCAdapter]] = {
    CCC_PACKAGE_NAME: CCCAdapter,
}

SDK_PACKAGE_NAMES: tuple[str, ...] = tuple(ADAPTERS)


def get_adapter(package_name: str, settings: Settings | None = None) -> SDKAdapter:
    """Instantiate the adapter registered for ``package_name``."""

    try:
        adapter_class = ADAPTERS[package_name]
    except KeyError as exc:
        raise AdapterNotFoundError(package_name) from exc
    return adapter_class(settings)


__all__ = [
    "ADAPTERS",
    "CCCAdapter",
    "CCC_PACKAGE_NAME",
    "NodeRunner",
    "SDKAdapter",
    "SDK_PACKAGE_NAMES",
    "get_adapter",
]
