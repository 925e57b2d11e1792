"""Host forum access."""

from spamguard.forum.local_forum import LocalForum

__all__ = ["LocalForum"]
