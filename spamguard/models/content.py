"""Forum domain models: users, topics and posts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional


class TrustLevel(IntEnum):
    """Ranked reputation tiers assigned by the host forum."""

    NEWUSER = 0
    BASIC = 1
    MEMBER = 2
    REGULAR = 3
    LEADER = 4


SYSTEM_USER_ID = -1


@dataclass
class User:
    """A forum account."""

    id: int
    username: str
    name: str = ""
    email: str = ""
    trust_level: int = TrustLevel.NEWUSER
    staff: bool = False
    post_count: int = 0
    bio_raw: str = ""
    website: str = ""
    ip_address: str = ""
    deleted_at: str = ""

    @property
    def username_lower(self) -> str:
        return self.username.lower()

    @property
    def deleted(self) -> bool:
        return bool(self.deleted_at)

    def has_trust_level(self, level: int) -> bool:
        """Staff hold every trust level; everyone else needs ``trust_level >= level``."""
        return self.staff or self.trust_level >= level


@dataclass
class Topic:
    """A thread that owns posts."""

    id: int
    title: str
    slug: str = ""
    private_message: bool = False
    deleted_at: str = ""

    def __post_init__(self) -> None:
        if not self.slug:
            self.slug = "-".join(self.title.lower().split()) or "topic"


@dataclass
class Post:
    """A single piece of user-generated content inside a topic."""

    id: int
    topic_id: int
    user_id: int
    raw: str
    post_number: int = 1
    cooked: str = ""
    user_deleted: bool = False
    deleted_at: str = ""
    deleted_by_id: Optional[int] = None
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    @property
    def is_first_post(self) -> bool:
        return self.post_number == 1

    @property
    def deleted(self) -> bool:
        return bool(self.deleted_at)

    def url_for(self, topic: Topic) -> str:
        return f"/t/{topic.slug}/{topic.id}/{self.post_number}"
