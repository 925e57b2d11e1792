"""Domain models shared across SpamGuard."""

from spamguard.models.content import SYSTEM_USER_ID, Post, Topic, TrustLevel, User
from spamguard.models.state import CheckState, StateRecord

__all__ = [
    "SYSTEM_USER_ID",
    "Post",
    "Topic",
    "TrustLevel",
    "User",
    "CheckState",
    "StateRecord",
]
