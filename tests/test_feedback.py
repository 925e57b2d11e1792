"""Tests for building Akismet payloads."""

from spamguard.akismet.feedback import FeedbackBuilder
from spamguard.models.content import Post, User
from spamguard.models.state import CheckState


def test_args_for_first_post(guard, seed):
    author, topic, post = seed
    guard.post_states.set_state(post.id, CheckState.new, "1.2.3.4", "Mozilla", "http://ref")

    args = guard.builder.args_for_post(post)

    assert args == {
        "comment_type": "forum-post",
        "referrer": "http://ref",
        "permalink": "http://forum.example/t/hello-forum/100/1",
        "comment_author": "NewPerson",
        "comment_content": "Hello forum\n\nThis is a normal message!",
        "user_ip": "1.2.3.4",
        "user_agent": "Mozilla",
        "comment_author_email": "new@example.com",
    }


def test_reply_has_no_title(guard, seed):
    reply = guard.forum.save_post(
        Post(id=1001, topic_id=100, user_id=10, raw="A perfectly fine reply here", post_number=2)
    )
    args = guard.builder.args_for_post(reply)
    assert args["comment_content"] == "A perfectly fine reply here"
    assert args["permalink"].endswith("/100/2")
    # Nothing stored yet for this post
    assert args["user_ip"] is None


def test_email_is_optional(guard, seed, settings):
    _, _, post = seed
    builder = FeedbackBuilder(
        settings.with_overrides(transmit_email=False), guard.forum, guard.post_states
    )
    assert "comment_author_email" not in builder.args_for_post(post)


def test_munge_hook_can_edit_payload(guard, seed, settings):
    _, _, post = seed

    def munge(args):
        args["comment_content"] = args["comment_content"].upper()
        args["blog_lang"] = "en"

    builder = FeedbackBuilder(settings, guard.forum, guard.post_states, munge=munge)
    args = builder.args_for_post(post)
    assert args["comment_content"].startswith("HELLO FORUM")
    assert args["blog_lang"] == "en"


def test_args_for_user(guard):
    user = guard.forum.save_user(
        User(
            id=20,
            username="BioSpammer",
            email="bio@example.com",
            bio_raw="Cheap watches at my site",
            website="http://watches.example",
            ip_address="5.5.5.5",
        )
    )
    args = guard.builder.args_for_user(user)
    assert args["comment_type"] == "signup"
    assert args["permalink"] == "http://forum.example/u/biospammer"
    assert args["comment_content"] == "Cheap watches at my site"
    assert args["comment_author_url"] == "http://watches.example"
    assert args["user_ip"] == "5.5.5.5"
    assert args["comment_author_email"] == "bio@example.com"
