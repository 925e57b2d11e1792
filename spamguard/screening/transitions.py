"""The Akismet check state machine as a pure function.

``transition`` maps the current state and the outcome of one check
attempt to the next state plus the side effects the caller must carry
out.  Nothing here touches storage or the network.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from spamguard.models.state import CheckState


class Outcome(str, Enum):
    """What happened when a target was picked up for checking."""

    STALE = "stale"  # content or its thread vanished
    SPAM = "spam"
    HAM = "ham"
    FAILED = "failed"  # classifier unavailable


class Effect(str, Enum):
    DESTROY_CONTENT = "destroy_content"
    OPEN_CASE = "open_case"
    NOTIFY_AUTHOR = "notify_author"
    COUNT_SPAM = "count_spam"
    LOG_FAILURE = "log_failure"


@dataclass(frozen=True)
class Transition:
    next_state: CheckState
    effects: tuple[Effect, ...] = ()

    @property
    def changed(self) -> bool:
        return self.next_state is not CheckState.new


_SPAM_EFFECTS = (Effect.DESTROY_CONTENT, Effect.OPEN_CASE, Effect.NOTIFY_AUTHOR, Effect.COUNT_SPAM)


def transition(
    current: CheckState,
    outcome: Outcome,
    attempts: int = 0,
    max_attempts: int = 5,
) -> Transition:
    """Return the next state and side effects for *outcome*.

    Only ``new`` targets move; anything already checked, reviewed or
    skipped stays where it is with no effects.  ``attempts`` counts
    failures including the current one.
    """
    if current is not CheckState.new:
        return Transition(current)

    if outcome is Outcome.STALE:
        return Transition(CheckState.skipped)
    if outcome is Outcome.SPAM:
        return Transition(CheckState.needs_review, _SPAM_EFFECTS)
    if outcome is Outcome.HAM:
        return Transition(CheckState.checked)

    # Failed: stay new for the next sweep until the attempt budget runs out
    if attempts >= max_attempts:
        return Transition(CheckState.skipped, (Effect.LOG_FAILURE,))
    return Transition(CheckState.new, (Effect.LOG_FAILURE,))
