"""Connects forum events to SpamGuard's state, jobs and webhooks."""

from __future__ import annotations

import logging

from spamguard.akismet.feedback import FeedbackBuilder
from spamguard.config import Settings
from spamguard.events.bus import EventBus
from spamguard.forum.local_forum import LocalForum
from spamguard.jobs.queue import JobQueue
from spamguard.jobs.tasks import CHECK_POST_JOB, UPDATE_STATUS_JOB
from spamguard.models.content import TrustLevel
from spamguard.models.events import (
    PostConfirmedHamEvent,
    PostConfirmedSpamEvent,
    PostCreatedEvent,
    ProfileBioChangedEvent,
    SpamFoundEvent,
    UserAnonymizedEvent,
)
from spamguard.models.state import CheckState
from spamguard.notify.webhooks import FOUND_SPAM, WebhookNotifier
from spamguard.policy.eligibility import should_check_post
from spamguard.screening.users_bouncer import UsersBouncer
from spamguard.store.state_store import StateStore

logger = logging.getLogger(__name__)


class EventBridge:
    """Event handlers for everything SpamGuard listens to.

    Call :meth:`attach` once to subscribe them on a bus.
    """

    def __init__(
        self,
        settings: Settings,
        forum: LocalForum,
        post_states: StateStore,
        user_states: StateStore,
        builder: FeedbackBuilder,
        queue: JobQueue,
        bouncer: UsersBouncer,
        webhooks: WebhookNotifier,
    ) -> None:
        self.settings = settings
        self.forum = forum
        self.post_states = post_states
        self.user_states = user_states
        self.builder = builder
        self.queue = queue
        self.bouncer = bouncer
        self.webhooks = webhooks

    def attach(self, bus: EventBus) -> None:
        bus.on(PostCreatedEvent, self.on_post_created)
        bus.on(PostConfirmedSpamEvent, self.on_confirmed_spam)
        bus.on(PostConfirmedHamEvent, self.on_confirmed_ham)
        bus.on(UserAnonymizedEvent, self.on_user_anonymized)
        bus.on(ProfileBioChangedEvent, self.on_bio_changed)
        bus.on(SpamFoundEvent, self.on_spam_found)

    def on_post_created(self, event: PostCreatedEvent) -> None:
        post = self.forum.get_post(event.post_id)
        if post is None:
            logger.debug("post_created for unknown post %s", event.post_id)
            return
        author = self.forum.get_user(post.user_id)
        topic = self.forum.get_topic(post.topic_id)
        if not should_check_post(post, author, topic, self.settings):
            return

        record = self.post_states.set_state(
            post.id,
            CheckState.new,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            referrer=event.referrer,
        )
        if record is None:
            return

        # Brand new users are checked right away instead of on the next sweep
        if author.trust_level == TrustLevel.NEWUSER:
            self.queue.enqueue(CHECK_POST_JOB, post_id=post.id)

    def on_confirmed_spam(self, event: PostConfirmedSpamEvent) -> None:
        self._report(event.post_id, "spam")

    def on_confirmed_ham(self, event: PostConfirmedHamEvent) -> None:
        self._report(event.post_id, "ham")

    def _report(self, post_id: int, status: str) -> None:
        if not self.settings.active:
            return
        post = self.forum.get_post(post_id)
        if post is None:
            logger.info("Not reporting %s for missing post %s", status, post_id)
            return
        # Build now: the post may be gone by the time the job runs
        feedback = self.builder.args_for_post(post)
        self.queue.enqueue(UPDATE_STATUS_JOB, status=status, feedback=feedback)

    def on_user_anonymized(self, event: UserAnonymizedEvent) -> None:
        if event.anonymize_ip is None:
            return
        post_ids = self.forum.post_ids_for_user(event.user_id)
        self.post_states.anonymize_ips(post_ids, event.anonymize_ip)
        self.user_states.anonymize_ips([event.user_id], event.anonymize_ip)

    def on_bio_changed(self, event: ProfileBioChangedEvent) -> None:
        if not event.changed or not (event.new_bio or "").strip():
            return
        self.bouncer.enqueue_for_check(self.forum.get_user(event.user_id))

    def on_spam_found(self, event: SpamFoundEvent) -> None:
        self.webhooks.fire(FOUND_SPAM, {"count": event.count})
