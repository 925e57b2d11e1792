"""Screens new users' profile bios with Akismet.

Mirrors :class:`~spamguard.screening.spam_handler.SpamHandler` for the
user entity: a spammy bio opens an ``akismet_user`` case and leaves the
account for a moderator to delete, a clean one marks the user checked.
"""

from __future__ import annotations

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
from spamguard.jobs.queue import JobQueue
from spamguard.models.content import User
from spamguard.models.state import CheckState
from spamguard.policy.eligibility import should_check_user
from spamguard.reviews.case_store import CaseStore
from spamguard.reviews.models import CaseType
from spamguard.screening.base import BatchScreener, ClientFactory
from spamguard.screening.transitions import Effect, Outcome, Transition
from spamguard.store.state_store import StateStore

logger = logging.getLogger(__name__)

SPAM_REASON = "akismet_spam_user"
CHECK_USERS_JOB = "check_users_for_spam"


class UsersBouncer(BatchScreener[User]):
    target_type = "user"

    def __init__(
        self,
        settings: Settings,
        forum: LocalForum,
        states: StateStore,
        cases: CaseStore,
        builder: FeedbackBuilder,
        history: DecisionLog,
        bus: EventBus,
        queue: JobQueue,
        client_factory: ClientFactory = with_client,
    ) -> None:
        super().__init__(settings, states, history, bus, client_factory)
        self.forum = forum
        self.cases = cases
        self.builder = builder
        self.queue = queue

    def enqueue_for_check(self, user: Optional[User]) -> bool:
        """Mark *user* ``new`` and schedule a check; *False* if not eligible."""
        if not should_check_user(user, self.settings) or not self.settings.configured:
            return False
        self.states.set_state(user.id, CheckState.new, ip_address=user.ip_address or None)
        self.queue.enqueue(CHECK_USERS_JOB)
        return True

    def sweep(self, limit: Optional[int] = None) -> int:
        if not self.settings.active:
            return 0
        batch = itertools.islice(
            self.states.pending_users(self.forum, self.cases),
            limit or self.settings.sweep_batch_size,
        )
        return self.check_for_spam(batch)

    def check_user(self, client: AkismetClient, user: User) -> bool:
        """Check one user inside an already open client session."""
        return self._check_one(client, user)

    # -- BatchScreener hooks -------------------------------------------------

    def _target_id(self, target: User) -> int:
        return target.id

    def _actor(self) -> User:
        return self.forum.system_user()

    def _classify(self, client: AkismetClient, target: User) -> Outcome:
        try:
            user = self.forum.require_user(target.id)
        except StaleReferenceError as exc:
            logger.info("Skipping user %s: %s", target.id, exc)
            return Outcome.STALE
        return self._safe_check(client, self.builder.args_for_user(user))

    def _apply(self, target: User, result: Transition, actor: User) -> bool:
        user = self.forum.get_user(target.id) or target

        if Effect.OPEN_CASE in result.effects:
            case, _ = self.cases.needs_review(
                CaseType.akismet_user,
                "user",
                user.id,
                created_by=actor.id,
                payload={
                    "username": user.username,
                    "name": user.name,
                    "email": user.email,
                    "bio": user.bio_raw,
                },
            )
            self.cases.add_score(case.id, actor.id, "spam", SPAM_REASON)

        self._record(actor, user.id, result)
        return Effect.COUNT_SPAM in result.effects
