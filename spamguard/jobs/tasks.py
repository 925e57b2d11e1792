"""The named jobs SpamGuard schedules on its :class:`JobQueue`."""

from __future__ import annotations

import logging
from typing import Any

from spamguard.config import Settings
from spamguard.jobs.queue import JobQueue
from spamguard.screening.base import ClientFactory
from spamguard.screening.spam_handler import SpamHandler
from spamguard.screening.users_bouncer import CHECK_USERS_JOB, UsersBouncer

logger = logging.getLogger(__name__)

CHECK_POSTS_JOB = "check_for_spam_posts"
CHECK_POST_JOB = "check_akismet_post"
UPDATE_STATUS_JOB = "update_akismet_status"

JOB_NAMES = (CHECK_POSTS_JOB, CHECK_POST_JOB, UPDATE_STATUS_JOB, CHECK_USERS_JOB)


def register_jobs(
    queue: JobQueue,
    settings: Settings,
    handler: SpamHandler,
    bouncer: UsersBouncer,
    client_factory: ClientFactory,
) -> None:
    def check_for_spam_posts() -> None:
        checked = handler.sweep()
        logger.info("Post sweep quarantined %d post(s)", checked)

    def check_akismet_post(post_id: int) -> None:
        if not settings.active:
            return
        handler.check_post(post_id)

    def update_akismet_status(status: str, feedback: dict[str, Any]) -> None:
        # ReportFeedbackFailure propagates so the queue retries the job
        if not settings.active:
            return
        with client_factory(settings) as client:
            client.submit_feedback(status, feedback)
        logger.info("Reported %s to Akismet", status)

    def check_users_for_spam() -> None:
        flagged = bouncer.sweep()
        logger.info("User sweep flagged %d user(s)", flagged)

    queue.register(CHECK_POSTS_JOB, check_for_spam_posts)
    queue.register(CHECK_POST_JOB, check_akismet_post)
    queue.register(UPDATE_STATUS_JOB, update_akismet_status)
    queue.register(CHECK_USERS_JOB, check_users_for_spam)
