"""Capability interface implemented by SDK adapters."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from apps.validator.src.domain import SDKScript
from apps.validator.src.integrations.npm import InstalledSDK

NodeRunner = Callable[[InstalledSDK, str], Any]
"""Callable evaluating a node snippet inside an installed SDK and returning decoded JSON."""


class SDKAdapter(Protocol):
    """Extract script descriptors from one SDK family."""

    package_name: str

    def collect_scripts(self, sdk: InstalledSDK) -> list[SDKScript]:  # pragma: no cover - Protocol
        """Return every script the SDK knows about, per network."""
