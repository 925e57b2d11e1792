"""Builds the flat key-value payload Akismet expects for a post or a user."""

from __future__ import annotations

from typing import Any, Callable, Optional

from spamguard.config import Settings
from spamguard.forum.local_forum import LocalForum
from spamguard.models.content import Post, Topic, User
from spamguard.store.state_store import StateStore

Munger = Callable[[dict[str, Any]], None]


def comment_content(post: Post, topic: Optional[Topic]) -> str:
    """First posts carry the topic title, separated by a blank line."""
    if post.is_first_post:
        title = topic.title if topic else ""
        return f"{title}\n\n{post.raw}"
    return post.raw


class FeedbackBuilder:
    """Assembles Akismet request payloads from forum records plus stored metadata.

    ``munge`` is an optional callable invoked with the finished mapping
    right before it is returned; it may mutate the mapping in place.
    """

    def __init__(
        self,
        settings: Settings,
        forum: LocalForum,
        post_states: StateStore,
        user_states: Optional[StateStore] = None,
        munge: Optional[Munger] = None,
    ) -> None:
        self.settings = settings
        self.forum = forum
        self.post_states = post_states
        self.user_states = user_states
        self.munge = munge

    def _finish(self, args: dict[str, Any], user: Optional[User]) -> dict[str, Any]:
        # Sending the email to Akismet is optional
        if self.settings.transmit_email:
            args["comment_author_email"] = user.email if user else None
        if self.munge is not None:
            self.munge(args)
        return args

    def args_for_post(self, post: Post) -> dict[str, Any]:
        topic = self.forum.get_topic(post.topic_id)
        user = self.forum.get_user(post.user_id)
        record = self.post_states.get(post.id)
        url = post.url_for(topic) if topic else f"/p/{post.id}"

        args: dict[str, Any] = {
            "comment_type": "forum-post",
            "referrer": record.referrer if record else None,
            "permalink": f"{self.settings.base_url}{url}",
            "comment_author": user.username if user else None,
            "comment_content": comment_content(post, topic),
            "user_ip": record.ip_address if record else None,
            "user_agent": record.user_agent if record else None,
        }
        return self._finish(args, user)

    def args_for_user(self, user: User) -> dict[str, Any]:
        record = self.user_states.get(user.id) if self.user_states else None
        args: dict[str, Any] = {
            "comment_type": "signup",
            "permalink": f"{self.settings.base_url}/u/{user.username_lower}",
            "comment_author": user.username,
            "comment_content": user.bio_raw,
            "comment_author_url": user.website or None,
            "user_ip": (record.ip_address if record else None) or user.ip_address or None,
            "user_agent": record.user_agent if record else None,
        }
        return self._finish(args, user)
