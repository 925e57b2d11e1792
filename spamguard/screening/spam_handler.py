"""Checks pending posts against Akismet and quarantines the spam.

On a positive verdict the post is soft-deleted by the system user, an
``akismet_post`` moderation case is opened with a spam score, the post
moves to ``needs_review`` and the author gets a system message.  On a
negative verdict the post moves to ``checked``.  Every step is safe to
repeat when a job is retried.
"""

from __future__ import annotations

import html
import itertools
import logging
from typing import Optional

from spamguard.akismet.client import AkismetClient, with_client
from spamguard.akismet.feedback import FeedbackBuilder
from spamguard.config import Settings
from spamguard.events.bus import EventBus
from spamguard.exceptions import StaleReferenceError
from spamguard.forum.local_forum import LocalForum
from spamguard.history.decision_log import DecisionLog
from spamguard.models.content import Post, User
from spamguard.models.state import CheckState
from spamguard.reviews.case_store import CaseStore
from spamguard.reviews.models import CaseType
from spamguard.screening.base import BatchScreener, ClientFactory
from spamguard.screening.transitions import Effect, Outcome, Transition
from spamguard.store.state_store import StateStore

logger = logging.getLogger(__name__)

SPAM_REASON = "akismet_spam_post"
SPAM_MESSAGE = "akismet_spam"


def cooked_snapshot(post: Post) -> str:
    """The rendered post, falling back to escaped raw text."""
    if post.cooked:
        return post.cooked
    return "".join(f"<p>{html.escape(p)}</p>" for p in post.raw.split("\n\n") if p.strip())


class SpamHandler(BatchScreener[Post]):
    """Sweeps ``new`` posts through Akismet."""

    target_type = "post"

    def __init__(
        self,
        settings: Settings,
        forum: LocalForum,
        states: StateStore,
        cases: CaseStore,
        builder: FeedbackBuilder,
        history: DecisionLog,
        bus: EventBus,
        client_factory: ClientFactory = with_client,
    ) -> None:
        super().__init__(settings, states, history, bus, client_factory)
        self.forum = forum
        self.cases = cases
        self.builder = builder

    # -- entry points --------------------------------------------------------

    def sweep(self, limit: Optional[int] = None) -> int:
        """Check up to ``limit`` pending posts (default ``sweep_batch_size``)."""
        if not self.settings.active:
            logger.debug("Akismet disabled or unconfigured; skipping sweep")
            return 0
        batch = itertools.islice(
            self.states.pending_items(self.forum, self.cases),
            limit or self.settings.sweep_batch_size,
        )
        return self.check_for_spam(batch)

    def check_post(self, post_id: int) -> int:
        """Check a single post right away if it is still ``new``."""
        post = self.forum.get_post(post_id)
        if post is None or self.states.state_of(post_id) != CheckState.new:
            return 0
        return self.check_for_spam([post])

    # -- BatchScreener hooks -------------------------------------------------

    def _target_id(self, target: Post) -> int:
        return target.id

    def _actor(self) -> User:
        return self.forum.system_user()

    def _classify(self, client: AkismetClient, target: Post) -> Outcome:
        try:
            post = self.forum.require_post(target.id)
        except StaleReferenceError as exc:
            logger.info("Skipping post %s: %s", target.id, exc)
            return Outcome.STALE
        if post.deleted or post.user_deleted:
            return Outcome.STALE
        return self._safe_check(client, self.builder.args_for_post(post))

    def _apply(self, target: Post, result: Transition, actor: User) -> bool:
        post = self.forum.get_post(target.id) or target
        created = False

        # The case goes first: once the post is destroyed the sweep no longer sees it.
        if Effect.OPEN_CASE in result.effects:
            case, created = self.cases.needs_review(
                CaseType.akismet_post,
                "post",
                post.id,
                created_by=actor.id,
                payload={"post_cooked": cooked_snapshot(post)},
                topic_id=post.topic_id,
            )
            self.cases.add_score(case.id, actor.id, "spam", SPAM_REASON)

        if Effect.DESTROY_CONTENT in result.effects:
            self.forum.destroy_post(post, actor)

        self._record(actor, post.id, result, topic_id=post.topic_id)

        # Send a message to the user explaining what happened
        if Effect.NOTIFY_AUTHOR in result.effects and created and self.settings.notify_user:
            topic = self.forum.get_topic(post.topic_id)
            self.forum.send_system_message(
                post.user_id, SPAM_MESSAGE, {"topic_title": topic.title if topic else ""}
            )

        return Effect.COUNT_SPAM in result.effects
