"""Moderator decisions on Akismet cases.

Each action settles a pending case, carries out its side effects on the
forum, reports the verdict back to Akismet through the job queue and
leaves an entry in the decision history.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from spamguard.akismet.feedback import FeedbackBuilder
from spamguard.config import Settings
from spamguard.exceptions import CaseNotFoundError, InvalidActionError
from spamguard.forum.local_forum import LocalForum
from spamguard.history.decision_log import DecisionLog
from spamguard.jobs.queue import JobQueue
from spamguard.jobs.tasks import UPDATE_STATUS_JOB
from spamguard.models.content import User
from spamguard.models.state import CheckState
from spamguard.notify.webhooks import REVIEW_DECIDED, WebhookNotifier
from spamguard.reviews.case_store import CaseStore
from spamguard.reviews.models import CaseStatus, CaseType, ModerationCase
from spamguard.store.state_store import StateStore

logger = logging.getLogger(__name__)

CONFIRM_SPAM = "confirm_spam"
NOT_SPAM = "not_spam"
IGNORE = "ignore"
CONFIRM_DELETE = "confirm_delete"
DELETE_USER = "delete_user"

POST_ACTIONS = (CONFIRM_SPAM, NOT_SPAM, IGNORE, CONFIRM_DELETE)
USER_ACTIONS = (CONFIRM_SPAM, DELETE_USER, NOT_SPAM)


def actions_for(case: ModerationCase) -> tuple[str, ...]:
    if case.case_type is CaseType.akismet_user:
        return USER_ACTIONS
    return POST_ACTIONS


class ReviewActions:
    def __init__(
        self,
        settings: Settings,
        forum: LocalForum,
        cases: CaseStore,
        post_states: StateStore,
        user_states: StateStore,
        builder: FeedbackBuilder,
        history: DecisionLog,
        queue: JobQueue,
        webhooks: Optional[WebhookNotifier] = None,
    ) -> None:
        self.settings = settings
        self.forum = forum
        self.cases = cases
        self.post_states = post_states
        self.user_states = user_states
        self.builder = builder
        self.history = history
        self.queue = queue
        self.webhooks = webhooks

    def perform(self, case_id: str, action: str, moderator_id: int) -> ModerationCase:
        """Apply *action* to the case and return it.

        A case that was already decided is returned as-is and nothing
        else happens.
        """
        case = self.cases.get(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)
        if action not in actions_for(case):
            raise InvalidActionError(
                f"Action {action!r} does not apply to {case.case_type.value} cases",
                {"case_id": case_id, "allowed": ", ".join(actions_for(case))},
            )
        if not case.pending:
            return case

        moderator = self._moderator(moderator_id)
        if case.case_type is CaseType.akismet_user:
            decided = self._perform_on_user(case, action, moderator)
        else:
            decided = self._perform_on_post(case, action, moderator)

        if self.webhooks is not None and decided.status is not CaseStatus.pending:
            self.webhooks.fire(
                REVIEW_DECIDED,
                {"case_id": decided.id, "action": action, "status": decided.status.value},
            )
        return decided

    # ------------------------------------------------------------------
    # Per case type
    # ------------------------------------------------------------------

    def _perform_on_post(self, case: ModerationCase, action: str, moderator: User) -> ModerationCase:
        post = self.forum.get_post(case.target_id)
        # Built before any deletion so the report still has the author
        feedback = self.builder.args_for_post(post) if post else None

        if action == CONFIRM_SPAM:
            decided, changed = self.cases.decide(case.id, CaseStatus.approved, moderator.id)
            if changed:
                self._report("spam", feedback)
                self._log(moderator, "confirmed_spam", case)

        elif action == NOT_SPAM:
            decided, changed = self.cases.decide(case.id, CaseStatus.rejected, moderator.id)
            if changed:
                self.forum.recover_post(case.target_id)
                self.post_states.set_state(case.target_id, CheckState.checked)
                self._report("ham", feedback)
                self._log(moderator, "confirmed_ham", case)

        elif action == IGNORE:
            decided, changed = self.cases.decide(case.id, CaseStatus.ignored, moderator.id)
            if changed:
                self._log(moderator, "ignored", case)

        else:
            decided, changed = self.cases.decide(case.id, CaseStatus.deleted, moderator.id)
            if changed:
                if post is not None:
                    self.forum.delete_user(post.user_id, moderator)
                self._report("spam", feedback)
                self._log(moderator, "confirmed_spam_deleted", case)

        return decided

    def _perform_on_user(self, case: ModerationCase, action: str, moderator: User) -> ModerationCase:
        user = self.forum.get_user(case.target_id)
        feedback = self.builder.args_for_user(user) if user else None

        if action == NOT_SPAM:
            decided, changed = self.cases.decide(case.id, CaseStatus.rejected, moderator.id)
            if changed:
                self.user_states.set_state(case.target_id, CheckState.checked)
                self._report("ham", feedback)
                self._log(moderator, "confirmed_ham", case)
            return decided

        decided, changed = self.cases.decide(case.id, CaseStatus.deleted, moderator.id)
        if changed:
            self.forum.delete_user(case.target_id, moderator)
            self._report("spam", feedback)
            self._log(moderator, "confirmed_spam_deleted", case)
        return decided

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _moderator(self, moderator_id: int) -> User:
        return self.forum.get_user(moderator_id) or User(id=moderator_id, username=f"user{moderator_id}")

    def _report(self, status: str, feedback: Optional[dict[str, Any]]) -> None:
        if feedback is None or not self.settings.active:
            return
        self.queue.enqueue(UPDATE_STATUS_JOB, status=status, feedback=feedback)

    def _log(self, moderator: User, action: str, case: ModerationCase) -> None:
        self.history.record(
            moderator.id,
            action,
            case.target_type,
            case.target_id,
            {"case_id": case.id, "topic_id": case.topic_id},
        )
        logger.info("%s marked %s %s as %s", moderator.username, case.target_type, case.target_id, action)
