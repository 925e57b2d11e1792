"""Tests for moderation cases and moderator actions."""

import pytest

from spamguard.exceptions import CaseNotFoundError, InvalidActionError
from spamguard.models.content import TrustLevel, User
from spamguard.models.state import CheckState
from spamguard.notify.webhooks import REVIEW_DECIDED
from spamguard.reviews.case_store import CaseStore
from spamguard.reviews.models import CaseStatus, CaseType

MODERATOR = 2


@pytest.fixture
def spam_case(guard, seed, akismet):
    """Run the seeded post through a spam verdict and return its case."""
    guard.forum.save_user(User(id=MODERATOR, username="mod", staff=True, trust_level=TrustLevel.LEADER))
    _, _, post = seed
    akismet.verdict = "true"
    guard.post_states.set_state(post.id, CheckState.new)
    guard.handler.sweep()
    akismet.calls.clear()
    return guard.cases.pending_for(CaseType.akismet_post, "post", post.id)


@pytest.fixture
def user_case(guard, akismet):
    guard.forum.save_user(User(id=MODERATOR, username="mod", staff=True))
    user = guard.forum.save_user(User(id=30, username="bio", bio_raw="Cheap watches for sale"))
    akismet.verdict = "true"
    guard.bouncer.enqueue_for_check(user)
    akismet.calls.clear()
    return guard.cases.pending_for(CaseType.akismet_user, "user", user.id)


# --- Store ---


def test_needs_review_reuses_pending_case(tmp_path):
    store = CaseStore(tmp_path)
    first, created = store.needs_review(CaseType.akismet_post, "post", 1, created_by=-1)
    again, created_again = store.needs_review(CaseType.akismet_post, "post", 1, created_by=-1)
    assert created and not created_again
    assert first.id == again.id


def test_add_score_is_deduplicated(tmp_path):
    store = CaseStore(tmp_path)
    case, _ = store.needs_review(CaseType.akismet_post, "post", 1, created_by=-1)
    store.add_score(case.id, -1, "spam", "akismet_spam_post")
    case = store.add_score(case.id, -1, "spam", "akismet_spam_post")
    assert len(case.scores) == 1
    with pytest.raises(CaseNotFoundError):
        store.add_score("missing", -1, "spam", "x")


def test_decided_case_allows_a_new_one(tmp_path):
    store = CaseStore(tmp_path)
    case, _ = store.needs_review(CaseType.akismet_post, "post", 1, created_by=-1)
    store.decide(case.id, CaseStatus.ignored, 5)
    fresh, created = store.needs_review(CaseType.akismet_post, "post", 1, created_by=-1)
    assert created
    assert fresh.id != case.id
    assert store.get_pending_count() == 1


# --- Post actions ---


def test_confirm_spam(guard, spam_case, akismet):
    case = guard.reviews.perform(spam_case.id, "confirm_spam", MODERATOR)

    assert case.status is CaseStatus.approved
    assert case.decided_by == MODERATOR
    assert len(akismet.forms("/submit-spam")) == 1
    assert guard.history.staff_actions()[0].action == "confirmed_spam"
    # The post stays deleted
    assert guard.forum.get_post(spam_case.target_id).deleted


def test_not_spam_restores_post(guard, spam_case, akismet):
    case = guard.reviews.perform(spam_case.id, "not_spam", MODERATOR)

    assert case.status is CaseStatus.rejected
    assert not guard.forum.get_post(spam_case.target_id).deleted
    assert guard.post_states.state_of(spam_case.target_id) is CheckState.checked
    assert len(akismet.forms("/submit-ham")) == 1
    assert guard.history.staff_actions()[0].action == "confirmed_ham"


def test_ignore(guard, spam_case, akismet):
    case = guard.reviews.perform(spam_case.id, "ignore", MODERATOR)
    assert case.status is CaseStatus.ignored
    assert akismet.calls == []
    assert guard.history.staff_actions()[0].action == "ignored"


def test_confirm_delete_removes_author(guard, spam_case, seed, akismet):
    author, _, _ = seed
    case = guard.reviews.perform(spam_case.id, "confirm_delete", MODERATOR)

    assert case.status is CaseStatus.deleted
    assert guard.forum.get_user(author.id).deleted
    assert akismet.forms("/submit-spam")[0]["comment_author"] == "NewPerson"
    assert guard.history.staff_actions()[0].action == "confirmed_spam_deleted"


def test_second_decision_is_a_noop(guard, spam_case, akismet):
    guard.reviews.perform(spam_case.id, "confirm_spam", MODERATOR)
    case = guard.reviews.perform(spam_case.id, "not_spam", MODERATOR)

    assert case.status is CaseStatus.approved
    assert guard.forum.get_post(spam_case.target_id).deleted
    assert akismet.forms("/submit-ham") == []
    assert len(guard.history.staff_actions()) == 1


def test_decision_fires_webhook(guard, spam_case):
    hook = guard.webhooks.register("http://hooks.example/reviews", [REVIEW_DECIDED])
    guard.reviews.perform(spam_case.id, "ignore", MODERATOR)
    delivery = guard.webhooks.get_deliveries(hook.id)[0]
    assert delivery.payload == {"case_id": spam_case.id, "action": "ignore", "status": "ignored"}


def test_unknown_case(guard):
    with pytest.raises(CaseNotFoundError):
        guard.reviews.perform("nope", "ignore", MODERATOR)


def test_user_action_on_post_case_is_rejected(guard, spam_case):
    with pytest.raises(InvalidActionError):
        guard.reviews.perform(spam_case.id, "delete_user", MODERATOR)
    assert guard.cases.get(spam_case.id).pending


# --- User actions ---


def test_delete_spam_user(guard, user_case, akismet):
    case = guard.reviews.perform(user_case.id, "delete_user", MODERATOR)
    assert case.status is CaseStatus.deleted
    assert guard.forum.get_user(user_case.target_id).deleted
    form = akismet.forms("/submit-spam")[0]
    assert form["comment_type"] == "signup"


def test_confirm_spam_on_user_also_deletes(guard, user_case):
    case = guard.reviews.perform(user_case.id, "confirm_spam", MODERATOR)
    assert case.status is CaseStatus.deleted
    assert guard.forum.get_user(user_case.target_id).deleted


def test_user_not_spam(guard, user_case, akismet):
    case = guard.reviews.perform(user_case.id, "not_spam", MODERATOR)
    assert case.status is CaseStatus.rejected
    assert guard.user_states.state_of(user_case.target_id) is CheckState.checked
    assert not guard.forum.get_user(user_case.target_id).deleted
    assert len(akismet.forms("/submit-ham")) == 1


def test_post_only_actions_do_not_apply_to_users(guard, user_case):
    with pytest.raises(InvalidActionError):
        guard.reviews.perform(user_case.id, "confirm_delete", MODERATOR)
    with pytest.raises(InvalidActionError):
        guard.reviews.perform(user_case.id, "ignore", MODERATOR)
