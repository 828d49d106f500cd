"""Domain-level helpers for health-check responses."""

from __future__ import annotations

HEALTH_PAYLOAD: dict[str, str] = {"status": "ok"}


def get_health_payload() -> dict[str, str]:
    """Return a fresh copy of the canonical payload for the health endpoint."""
    return dict(HEALTH_PAYLOAD)
