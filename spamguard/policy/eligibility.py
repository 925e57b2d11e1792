"""Eligibility policy: should this post or bio be sent to Akismet?

Both predicates are pure functions of their arguments and the current
settings. They never raise.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

from spamguard.config import Settings
from spamguard.models.content import Post, Topic, TrustLevel, User

MIN_POST_LENGTH = 20

# RFC 3986 URI-reference: only unreserved, reserved and percent-encoded octets.
_URI_CHARS = re.compile(r"^(?:[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=]|%[0-9A-Fa-f]{2})+$")
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_IP_LITERAL = re.compile(r"^\[(?:[0-9A-Fa-f:.]+|v[0-9A-Fa-f]+\.[^\[\]]+)\](?::[0-9]*)?$")


def is_uri(text: str) -> bool:
    """Return *True* if *text* as a whole is one well-formed URI reference."""
    if not text or not _URI_CHARS.match(text):
        return False
    if ":" in text.split("/", 1)[0] and not _SCHEME.match(text):
        # A colon in the first segment is only legal as a scheme delimiter.
        return False
    try:
        parts = urlsplit(text)
        # Accessing the port validates it and raises on garbage.
        parts.port
    except ValueError:
        return False
    if "#" in parts.fragment:
        return False
    # Brackets are only legal around an IP-literal host.
    if any(c in "[]" for c in parts.path + parts.query + parts.fragment):
        return False
    userinfo, _, host = parts.netloc.rpartition("@")
    if "[" in userinfo or "]" in userinfo:
        return False
    if ("[" in host or "]" in host) and not _IP_LITERAL.match(host):
        return False
    return True


def should_check_post(
    post: Optional[Post],
    author: Optional[User],
    topic: Optional[Topic],
    settings: Settings,
) -> bool:
    """Decide whether *post* is worth an Akismet check."""
    if post is None or author is None or not settings.enabled:
        return False

    # Private messages are never checked; a missing topic is treated the same.
    if topic is None or topic.private_message:
        return False

    stripped = (post.raw or "").strip()

    if len(stripped) < MIN_POST_LENGTH:
        return False

    # Always check the first post of a freshly promoted TL1 user
    if author.trust_level == TrustLevel.BASIC and author.post_count == 0:
        return True

    if author.has_trust_level(settings.skip_trust_level):
        return False

    # Established posters are left alone
    if author.post_count > settings.skip_posts:
        return False

    # A post that is nothing but a link is already covered by the forum's
    # new-user link limits.
    if is_uri(stripped):
        return False

    return True


def should_check_user(user: Optional[User], settings: Settings) -> bool:
    """Decide whether a user's profile bio should be checked."""
    if user is None or not settings.enabled or not settings.review_users:
        return False
    if user.staff or user.deleted:
        return False
    if user.trust_level != TrustLevel.NEWUSER:
        return False
    return bool((user.bio_raw or "").strip())
