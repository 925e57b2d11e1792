"""Process-wide SpamGuard instance shared by the routers."""

from __future__ import annotations

from spamguard.config import load_settings
from spamguard.container import SpamGuard

_guard: SpamGuard | None = None


def get_guard() -> SpamGuard:
    """FastAPI dependency; tests replace it through ``app.dependency_overrides``."""
    global _guard
    if _guard is None:
        _guard = SpamGuard(load_settings())
    return _guard


def shutdown_guard() -> None:
    global _guard
    if _guard is not None:
        _guard.close()
        _guard = None
