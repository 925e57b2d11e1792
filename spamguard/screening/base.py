"""Shared batch loop for the post and user screeners."""

from __future__ import annotations

import itertools
import logging
from typing import Callable, ContextManager, Generic, Iterable, TypeVar

from spamguard.akismet.client import AkismetClient, with_client
from spamguard.config import Settings
from spamguard.events.bus import EventBus
from spamguard.exceptions import ClassifierUnavailable
from spamguard.history.decision_log import DecisionLog
from spamguard.models.content import User
from spamguard.models.events import SpamFoundEvent
from spamguard.models.state import CheckState
from spamguard.screening.transitions import Outcome, Transition, transition
from spamguard.store.state_store import StateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
ClientFactory = Callable[[Settings], ContextManager[AkismetClient]]


class BatchScreener(Generic[T]):
    """Runs a batch of targets through Akismet inside one client session.

    Subclasses supply how to identify a target, how to decide whether it
    went stale and how to apply the resulting transition.
    """

    target_type = ""

    def __init__(
        self,
        settings: Settings,
        states: StateStore,
        history: DecisionLog,
        bus: EventBus,
        client_factory: ClientFactory = with_client,
    ) -> None:
        self.settings = settings
        self.states = states
        self.history = history
        self.bus = bus
        self.client_factory = client_factory

    # -- hooks ---------------------------------------------------------------

    def _target_id(self, target: T) -> int:
        raise NotImplementedError

    def _classify(self, client: AkismetClient, target: T) -> Outcome:
        raise NotImplementedError

    def _apply(self, target: T, result: Transition, actor: User) -> bool:
        """Carry out *result*; return *True* if the target was counted as spam."""
        raise NotImplementedError

    def _actor(self) -> User:
        raise NotImplementedError

    # -- batch loop ----------------------------------------------------------

    def check_for_spam(self, targets: Iterable[T]) -> int:
        """Check every target and return how many were quarantined.

        No client session is opened for an empty batch.
        """
        iterator = iter(targets)
        first = next(iterator, None)
        if first is None:
            return 0

        spam_count = 0
        with self.client_factory(self.settings) as client:
            for target in itertools.chain([first], iterator):
                if self._check_one(client, target):
                    spam_count += 1

        # Let subscribers (chat rooms, alerting) know spam turned up
        if spam_count > 0:
            self.bus.trigger(SpamFoundEvent(spam_count))
        return spam_count

    def _check_one(self, client: AkismetClient, target: T) -> bool:
        target_id = self._target_id(target)
        if not self.states.claim(target_id):
            logger.debug("%s %s is not new or already in flight", self.target_type, target_id)
            return False
        try:
            record = self.states.get(target_id)
            current = record.state if record else CheckState.new
            attempts = record.attempts if record else 0
            outcome = self._classify(client, target)
            if outcome is Outcome.FAILED:
                attempts = self.states.record_failure(target_id)
            result = transition(current, outcome, attempts, self.settings.max_check_attempts)
            if outcome is Outcome.FAILED:
                self._log_failure(target_id, attempts, result)
            return self._apply(target, result, self._actor())
        finally:
            self.states.release(target_id)

    def _safe_check(self, client: AkismetClient, payload: dict) -> Outcome:
        try:
            return Outcome.SPAM if client.comment_check(payload) else Outcome.HAM
        except ClassifierUnavailable as exc:
            logger.warning("Akismet check failed: %s", exc)
            return Outcome.FAILED

    def _log_failure(self, target_id: int, attempts: int, result: Transition) -> None:
        if result.next_state is CheckState.skipped:
            logger.error(
                "Giving up on %s %s after %d failed Akismet attempts",
                self.target_type, target_id, attempts,
            )
        else:
            logger.info(
                "%s %s stays new for retry (attempt %d of %d)",
                self.target_type, target_id, attempts, self.settings.max_check_attempts,
            )

    def _record(self, actor: User, target_id: int, result: Transition, **details: object) -> None:
        if result.changed:
            self.states.set_state(target_id, result.next_state)
            self.history.record(
                actor.id, result.next_state.value, self.target_type, target_id, dict(details)
            )
