"""Typed events exchanged between the host forum and SpamGuard.

Each event validates itself on construction so malformed payloads are
rejected at the boundary instead of deep inside a handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from spamguard.exceptions import InvalidEventError


def _require_id(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidEventError(f"{name} must be a positive integer", {name: value})


def _optional_text(name: str, value: object) -> None:
    if value is not None and not isinstance(value, str):
        raise InvalidEventError(f"{name} must be a string", {name: value})


@dataclass(frozen=True)
class PostCreatedEvent:
    """A post was created; carries the submitter context for Akismet."""

    post_id: int
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None

    def __post_init__(self) -> None:
        _require_id("post_id", self.post_id)
        _optional_text("ip_address", self.ip_address)
        _optional_text("user_agent", self.user_agent)
        _optional_text("referrer", self.referrer)


@dataclass(frozen=True)
class PostConfirmedSpamEvent:
    """Staff agreed that a flagged post is spam."""

    post_id: int

    def __post_init__(self) -> None:
        _require_id("post_id", self.post_id)


@dataclass(frozen=True)
class PostConfirmedHamEvent:
    """Staff cleared a flagged post."""

    post_id: int

    def __post_init__(self) -> None:
        _require_id("post_id", self.post_id)


@dataclass(frozen=True)
class UserAnonymizedEvent:
    """A user's data was anonymized; ``anonymize_ip`` replaces stored IPs when given."""

    user_id: int
    anonymize_ip: Optional[str] = None

    def __post_init__(self) -> None:
        _require_id("user_id", self.user_id)
        _optional_text("anonymize_ip", self.anonymize_ip)


@dataclass(frozen=True)
class ProfileBioChangedEvent:
    """A user saved their profile."""

    user_id: int
    old_bio: str = ""
    new_bio: str = ""

    def __post_init__(self) -> None:
        _require_id("user_id", self.user_id)
        _optional_text("old_bio", self.old_bio)
        _optional_text("new_bio", self.new_bio)

    @property
    def changed(self) -> bool:
        return (self.old_bio or "") != (self.new_bio or "")


@dataclass(frozen=True)
class SpamFoundEvent:
    """Emitted after a sweep that quarantined at least one item."""

    count: int

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 1:
            raise InvalidEventError("count must be a positive integer", {"count": self.count})
