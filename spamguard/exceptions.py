"""Exception hierarchy for SpamGuard.

Everything raised on purpose by the package derives from
:class:`SpamGuardError`, so callers can catch the whole family at once.
"""

from __future__ import annotations

from typing import Any, Optional


class SpamGuardError(Exception):
    """Base class for all SpamGuard errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({extra})"
        return self.message


class ConfigurationError(SpamGuardError):
    """A settings value is missing or malformed."""


class ClassifierUnavailable(SpamGuardError):
    """The Akismet check could not be completed (network, timeout, auth, bad reply)."""


class ReportFeedbackFailure(SpamGuardError):
    """Submitting spam/ham feedback to Akismet failed."""


class StaleReferenceError(SpamGuardError):
    """A post, topic or user vanished between enqueue and processing."""


class InvalidEventError(SpamGuardError, ValueError):
    """An inbound event payload failed validation."""


class CaseNotFoundError(SpamGuardError):
    """No moderation case exists with the requested id."""

    def __init__(self, case_id: str) -> None:
        super().__init__(f"Moderation case not found: {case_id}", {"case_id": case_id})
        self.case_id = case_id


class InvalidActionError(SpamGuardError, ValueError):
    """A moderator action does not apply to the case it was performed on."""
