"""Per-target check state and the stored metadata that travels with it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CheckState(str, Enum):
    """Where a post or user sits in the Akismet pipeline."""

    new = "new"
    checked = "checked"
    needs_review = "needs_review"
    skipped = "skipped"

    @property
    def terminal(self) -> bool:
        return self is not CheckState.new


# Keys of the persisted metadata record
STATE = "STATE"
IP_ADDRESS = "IP_ADDRESS"
USER_AGENT = "USER_AGENT"
REFERRER = "REFERRER"
ATTEMPTS = "ATTEMPTS"


@dataclass
class StateRecord:
    """A snapshot of the metadata stored for one target."""

    target_id: int
    state: CheckState
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    attempts: int = 0

    @classmethod
    def from_fields(cls, target_id: int, data: dict) -> StateRecord:
        return cls(
            target_id=target_id,
            state=CheckState(data[STATE]),
            ip_address=data.get(IP_ADDRESS),
            user_agent=data.get(USER_AGENT),
            referrer=data.get(REFERRER),
            attempts=int(data.get(ATTEMPTS, 0)),
        )
