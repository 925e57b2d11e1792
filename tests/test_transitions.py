"""Tests for the pure check state machine."""

import pytest

from spamguard.models.state import CheckState
from spamguard.screening.transitions import Effect, Outcome, transition


def test_spam_goes_to_review_with_all_effects():
    result = transition(CheckState.new, Outcome.SPAM)
    assert result.next_state is CheckState.needs_review
    assert set(result.effects) == {
        Effect.DESTROY_CONTENT,
        Effect.OPEN_CASE,
        Effect.NOTIFY_AUTHOR,
        Effect.COUNT_SPAM,
    }


def test_ham_is_checked_without_effects():
    result = transition(CheckState.new, Outcome.HAM)
    assert result.next_state is CheckState.checked
    assert result.effects == ()


def test_stale_is_skipped():
    assert transition(CheckState.new, Outcome.STALE).next_state is CheckState.skipped


def test_failure_stays_new_until_attempts_run_out():
    retry = transition(CheckState.new, Outcome.FAILED, attempts=2, max_attempts=3)
    assert retry.next_state is CheckState.new
    assert not retry.changed
    assert Effect.LOG_FAILURE in retry.effects

    give_up = transition(CheckState.new, Outcome.FAILED, attempts=3, max_attempts=3)
    assert give_up.next_state is CheckState.skipped
    assert give_up.changed


@pytest.mark.parametrize(
    "state", [CheckState.checked, CheckState.needs_review, CheckState.skipped]
)
@pytest.mark.parametrize("outcome", list(Outcome))
def test_settled_states_never_move(state, outcome):
    result = transition(state, outcome)
    assert result.next_state is state
    assert result.effects == ()
