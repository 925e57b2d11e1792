"""Data models for moderation cases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class CaseStatus(str, Enum):
    """Lifecycle of a moderation case."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    ignored = "ignored"
    deleted = "deleted"


class CaseType(str, Enum):
    akismet_post = "akismet_post"
    akismet_user = "akismet_user"


@dataclass
class CaseScore:
    """One reason attached to a case, attributed to an actor."""

    user_id: int
    score_type: str
    reason: str
    created_at: str = ""


@dataclass
class ModerationCase:
    """A record surfaced to moderators for an accept/reject decision.

    ``target_id`` is a weak reference: the post or user may be gone by
    the time a moderator looks at the case, so ``payload`` keeps a
    snapshot of what was detected.
    """

    id: str
    case_type: CaseType
    target_type: str
    target_id: int
    created_by: int
    topic_id: Optional[int] = None
    status: CaseStatus = CaseStatus.pending
    payload: dict[str, Any] = field(default_factory=dict)
    scores: list[CaseScore] = field(default_factory=list)
    created_at: str = ""
    decided_at: str = ""
    decided_by: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.case_type, str):
            self.case_type = CaseType(self.case_type)
        if isinstance(self.status, str):
            self.status = CaseStatus(self.status)
        self.scores = [CaseScore(**s) if isinstance(s, dict) else s for s in self.scores]

    @property
    def pending(self) -> bool:
        return self.status == CaseStatus.pending
