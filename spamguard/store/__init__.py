"""Per-target Akismet state storage."""

from spamguard.store.state_store import StateStore

__all__ = ["StateStore"]
