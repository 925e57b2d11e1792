"""File-based stand-in for the host forum's persistence.

SpamGuard only needs a narrow slice of the forum: look up users, topics
and posts, soft-delete and recover posts, delete spammer accounts and
drop a system message in a user's inbox.  :class:`LocalForum` provides
that slice backed by JSON files under ``~/.spamguard/forum/``; a real
deployment swaps in an adapter over the forum database that offers the
same methods.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from spamguard.exceptions import StaleReferenceError
from spamguard.models.content import SYSTEM_USER_ID, Post, Topic, User
from spamguard.utils.jsonfile import read_json, write_json

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalForum:
    """JSON-backed users, topics, posts and system messages.

    Storage path: ``<base_dir>/`` with:
    - ``users.json`` -- id -> user dict
    - ``topics.json`` -- id -> topic dict
    - ``posts.json`` -- id -> post dict
    - ``messages.json`` -- list of system message dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".spamguard" / "forum"
        self._base.mkdir(parents=True, exist_ok=True)
        self._users_path = self._base / "users.json"
        self._topics_path = self._base / "topics.json"
        self._posts_path = self._base / "posts.json"
        self._messages_path = self._base / "messages.json"
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self, path: Path) -> dict[str, dict]:
        return read_json(path, {})

    def _put(self, path: Path, key: int, record: dict[str, Any]) -> None:
        with self._lock:
            data = self._load(path)
            data[str(key)] = record
            write_json(path, data)

    # ------------------------------------------------------------------
    # Creation (used by the host and by tests)
    # ------------------------------------------------------------------

    def save_user(self, user: User) -> User:
        self._put(self._users_path, user.id, asdict(user))
        return user

    def save_topic(self, topic: Topic) -> Topic:
        self._put(self._topics_path, topic.id, asdict(topic))
        return topic

    def save_post(self, post: Post) -> Post:
        self._put(self._posts_path, post.id, asdict(post))
        return post

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def system_user(self) -> User:
        return User(id=SYSTEM_USER_ID, username="system", name="system", staff=True)

    def get_user(self, user_id: int) -> Optional[User]:
        if user_id == SYSTEM_USER_ID:
            return self.system_user()
        d = self._load(self._users_path).get(str(user_id))
        return User(**d) if d else None

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        """Return the topic, or *None* if it is missing or trashed."""
        d = self._load(self._topics_path).get(str(topic_id))
        if not d or d.get("deleted_at"):
            return None
        return Topic(**d)

    def get_post(self, post_id: int) -> Optional[Post]:
        """Return the post row, including soft-deleted posts."""
        d = self._load(self._posts_path).get(str(post_id))
        return Post(**d) if d else None

    def require_post(self, post_id: int) -> Post:
        """Like :meth:`get_post` but the post and its topic must both exist."""
        post = self.get_post(post_id)
        if post is None:
            raise StaleReferenceError("Post no longer exists", {"post_id": post_id})
        if self.get_topic(post.topic_id) is None:
            raise StaleReferenceError(
                "Topic no longer exists", {"post_id": post_id, "topic_id": post.topic_id}
            )
        return post

    def require_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        if user is None or user.deleted:
            raise StaleReferenceError("User no longer exists", {"user_id": user_id})
        return user

    def post_ids_for_user(self, user_id: int) -> list[int]:
        return [
            int(pid)
            for pid, d in self._load(self._posts_path).items()
            if d.get("user_id") == user_id
        ]

    # ------------------------------------------------------------------
    # Mutations requested by SpamGuard
    # ------------------------------------------------------------------

    def destroy_post(self, post: Post, actor: User) -> bool:
        """Soft-delete *post* on behalf of *actor*.

        Returns *False* when the post was already deleted or no longer exists.
        """
        with self._lock:
            posts = self._load(self._posts_path)
            d = posts.get(str(post.id))
            if not d or d.get("deleted_at"):
                return False
            d["deleted_at"] = _now()
            d["deleted_by_id"] = actor.id
            write_json(self._posts_path, posts)
        post.deleted_at = d["deleted_at"]
        post.deleted_by_id = actor.id
        logger.info("Post %s deleted by %s", post.id, actor.username)
        return True

    def recover_post(self, post_id: int) -> bool:
        with self._lock:
            posts = self._load(self._posts_path)
            d = posts.get(str(post_id))
            if not d or not d.get("deleted_at"):
                return False
            d["deleted_at"] = ""
            d["deleted_by_id"] = None
            write_json(self._posts_path, posts)
        logger.info("Post %s recovered", post_id)
        return True

    def delete_user(self, user_id: int, actor: User) -> bool:
        """Delete a user account and trash all of their posts."""
        with self._lock:
            users = self._load(self._users_path)
            d = users.get(str(user_id))
            if not d or d.get("deleted_at"):
                return False
            now = _now()
            d["deleted_at"] = now
            write_json(self._users_path, users)

            posts = self._load(self._posts_path)
            for p in posts.values():
                if p.get("user_id") == user_id and not p.get("deleted_at"):
                    p["deleted_at"] = now
                    p["deleted_by_id"] = actor.id
            write_json(self._posts_path, posts)
        logger.info("User %s deleted by %s", user_id, actor.username)
        return True

    def send_system_message(self, user_id: int, template: str, params: Optional[dict] = None) -> dict:
        message = {
            "id": uuid.uuid4().hex[:16],
            "user_id": user_id,
            "template": template,
            "params": params or {},
            "created_at": _now(),
        }
        with self._lock:
            messages = read_json(self._messages_path, [])
            messages.append(message)
            write_json(self._messages_path, messages)
        return message

    def messages_for(self, user_id: int) -> list[dict]:
        return [m for m in read_json(self._messages_path, []) if m.get("user_id") == user_id]
