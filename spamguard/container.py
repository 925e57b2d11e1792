"""Builds a fully wired SpamGuard instance from :class:`Settings`."""

from __future__ import annotations

import functools
from typing import Optional

import httpx

from spamguard.akismet.client import with_client
from spamguard.akismet.feedback import FeedbackBuilder, Munger
from spamguard.config import Settings
from spamguard.events.bridge import EventBridge
from spamguard.events.bus import EventBus
from spamguard.forum.local_forum import LocalForum
from spamguard.history.decision_log import DecisionLog
from spamguard.jobs.queue import JobQueue
from spamguard.jobs.tasks import CHECK_POSTS_JOB, register_jobs
from spamguard.notify.webhooks import WebhookNotifier
from spamguard.reviews.actions import ReviewActions
from spamguard.reviews.case_store import CaseStore
from spamguard.screening.base import ClientFactory
from spamguard.screening.spam_handler import SpamHandler
from spamguard.screening.users_bouncer import CHECK_USERS_JOB, UsersBouncer
from spamguard.store.state_store import StateStore


class SpamGuard:
    """Every SpamGuard component, sharing one data directory.

    ``transport`` is handed to every ``httpx`` client (Akismet and
    webhooks), which is how tests swap in ``httpx.MockTransport``.
    ``inline`` runs jobs in the calling thread.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        forum: Optional[LocalForum] = None,
        munge: Optional[Munger] = None,
        transport: Optional[httpx.BaseTransport] = None,
        client_factory: Optional[ClientFactory] = None,
        inline: bool = False,
    ) -> None:
        self.settings = settings
        root = settings.data_path

        self.forum = forum or LocalForum(root / "forum")
        self.post_states = StateStore(root / "states", "posts", api_key=settings.api_key)
        self.user_states = StateStore(root / "states", "users", api_key=settings.api_key)
        self.cases = CaseStore(root / "reviews")
        self.history = DecisionLog(root / "history")
        self.webhooks = WebhookNotifier(
            root / "webhooks", timeout=settings.request_timeout, transport=transport
        )
        self.bus = EventBus()
        self.queue = JobQueue(
            max_retries=settings.job_max_retries,
            retry_delay=settings.job_retry_delay,
            inline=inline,
        )
        self.client_factory = client_factory or functools.partial(with_client, transport=transport)

        self.builder = FeedbackBuilder(
            settings, self.forum, self.post_states, self.user_states, munge=munge
        )
        self.handler = SpamHandler(
            settings,
            self.forum,
            self.post_states,
            self.cases,
            self.builder,
            self.history,
            self.bus,
            client_factory=self.client_factory,
        )
        self.bouncer = UsersBouncer(
            settings,
            self.forum,
            self.user_states,
            self.cases,
            self.builder,
            self.history,
            self.bus,
            self.queue,
            client_factory=self.client_factory,
        )
        self.reviews = ReviewActions(
            settings,
            self.forum,
            self.cases,
            self.post_states,
            self.user_states,
            self.builder,
            self.history,
            self.queue,
            webhooks=self.webhooks,
        )
        self.bridge = EventBridge(
            settings,
            self.forum,
            self.post_states,
            self.user_states,
            self.builder,
            self.queue,
            self.bouncer,
            self.webhooks,
        )

        register_jobs(self.queue, settings, self.handler, self.bouncer, self.client_factory)
        self.bridge.attach(self.bus)

    def trigger(self, event: object) -> int:
        return self.bus.trigger(event)

    def schedule_sweeps(self) -> None:
        """Queue one post sweep and one user sweep."""
        self.queue.enqueue(CHECK_POSTS_JOB)
        self.queue.enqueue(CHECK_USERS_JOB)

    def close(self) -> None:
        self.queue.shutdown()
