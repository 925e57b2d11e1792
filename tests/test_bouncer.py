"""Tests for screening user bios."""

from spamguard.models.content import TrustLevel, User
from spamguard.models.events import ProfileBioChangedEvent
from spamguard.models.state import CheckState
from spamguard.reviews.models import CaseType
from spamguard.screening.users_bouncer import SPAM_REASON


def _bio_user(guard, **kwargs):
    kwargs.setdefault("bio_raw", "Cheap watches, visit my site")
    return guard.forum.save_user(
        User(id=30, username="Watcher", name="W", email="w@example.com", ip_address="7.7.7.7", **kwargs)
    )


def test_spammy_bio_opens_user_case(guard, akismet):
    akismet.verdict = "true"
    user = _bio_user(guard)

    assert guard.bouncer.enqueue_for_check(user)

    assert guard.user_states.state_of(user.id) is CheckState.needs_review
    case = guard.cases.pending_for(CaseType.akismet_user, "user", user.id)
    assert case.payload == {
        "username": "Watcher",
        "name": "W",
        "email": "w@example.com",
        "bio": "Cheap watches, visit my site",
    }
    assert [s.reason for s in case.scores] == [SPAM_REASON]
    # The account itself is left for a moderator
    assert not guard.forum.get_user(user.id).deleted

    form = akismet.forms("/comment-check")[0]
    assert form["comment_type"] == "signup"
    assert form["user_ip"] == "7.7.7.7"


def test_clean_bio_is_checked(guard, akismet):
    user = _bio_user(guard)
    guard.bouncer.enqueue_for_check(user)
    assert guard.user_states.state_of(user.id) is CheckState.checked
    assert guard.cases.list_cases() == []


def test_ineligible_users_are_not_enqueued(guard, akismet):
    user = _bio_user(guard, trust_level=TrustLevel.MEMBER)
    assert not guard.bouncer.enqueue_for_check(user)
    assert guard.user_states.get(user.id) is None
    assert not guard.bouncer.enqueue_for_check(None)
    assert akismet.calls == []


def test_deleted_user_is_skipped(guard, akismet):
    user = _bio_user(guard)
    guard.user_states.set_state(user.id, CheckState.new)
    guard.forum.delete_user(user.id, guard.forum.system_user())

    assert guard.bouncer.check_for_spam([user]) == 0
    assert guard.user_states.state_of(user.id) is CheckState.skipped
    assert akismet.calls == []


def test_bio_change_triggers_check(guard, akismet):
    user = _bio_user(guard)
    guard.trigger(ProfileBioChangedEvent(user.id, old_bio="", new_bio=user.bio_raw))
    assert guard.user_states.state_of(user.id) is CheckState.checked


def test_unchanged_or_cleared_bio_is_ignored(guard, akismet):
    user = _bio_user(guard)
    guard.trigger(ProfileBioChangedEvent(user.id, old_bio=user.bio_raw, new_bio=user.bio_raw))
    guard.trigger(ProfileBioChangedEvent(user.id, old_bio=user.bio_raw, new_bio="   "))
    assert guard.user_states.get(user.id) is None
    assert akismet.calls == []
