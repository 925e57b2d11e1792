"""Shared fixtures: a SpamGuard wired to a temp dir and a fake Akismet."""

from urllib.parse import parse_qsl

import httpx
import pytest

from spamguard.config import Settings
from spamguard.container import SpamGuard
from spamguard.models.content import Post, Topic, TrustLevel, User

ACK = "Thanks for making the web a better place."


class FakeAkismet:
    """An ``httpx.MockTransport`` handler standing in for Akismet and webhook receivers.

    ``verdict`` is the comment-check reply, ``timeout`` makes every
    comment-check time out, and ``calls`` keeps ``(host, path, form)``
    for each request.
    """

    def __init__(self):
        self.verdict = "false"
        self.timeout = False
        self.feedback_reply = ACK
        self.webhook_status = 200
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        form = dict(parse_qsl(request.content.decode("utf-8")))
        self.calls.append((request.url.host, request.url.path, form))

        if not request.url.host.endswith("rest.akismet.com"):
            return httpx.Response(self.webhook_status, text="ok")

        path = request.url.path
        if path.endswith("/comment-check"):
            if self.timeout:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, text=self.verdict)
        if path.endswith("/submit-spam") or path.endswith("/submit-ham"):
            return httpx.Response(200, text=self.feedback_reply)
        if path.endswith("/verify-key"):
            return httpx.Response(200, text="valid" if form.get("key") == "test-key" else "invalid")
        return httpx.Response(404)

    def paths(self, suffix=""):
        return [path for _, path, _ in self.calls if path.endswith(suffix)]

    def forms(self, suffix):
        return [form for _, path, form in self.calls if path.endswith(suffix)]


@pytest.fixture
def akismet():
    return FakeAkismet()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        enabled=True,
        api_key="test-key",
        base_url="http://forum.example",
        data_dir=str(tmp_path),
        job_retry_delay=0.0,
    )


@pytest.fixture
def make_guard(akismet):
    guards = []

    def _make(settings, **kwargs):
        kwargs.setdefault("inline", True)
        guard = SpamGuard(settings, transport=httpx.MockTransport(akismet), **kwargs)
        guards.append(guard)
        return guard

    yield _make
    for guard in guards:
        guard.close()


@pytest.fixture
def guard(make_guard, settings):
    return make_guard(settings)


@pytest.fixture
def seed(guard):
    """A TL0 author, a regular topic and an eligible first post."""
    forum = guard.forum
    author = forum.save_user(
        User(
            id=10,
            username="NewPerson",
            name="New Person",
            email="new@example.com",
            trust_level=TrustLevel.NEWUSER,
            ip_address="10.0.0.5",
        )
    )
    topic = forum.save_topic(Topic(id=100, title="Hello forum"))
    post = forum.save_post(
        Post(id=1000, topic_id=100, user_id=10, raw="This is a normal message!", post_number=1)
    )
    return author, topic, post
