"""Tests for the Akismet REST client."""

import httpx
import pytest

from spamguard.akismet.client import AkismetClient
from spamguard.exceptions import ClassifierUnavailable, ConfigurationError, ReportFeedbackFailure

from conftest import ACK, FakeAkismet


def _client(fake):
    return AkismetClient("test-key", "http://forum.example", transport=httpx.MockTransport(fake))


def test_missing_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        AkismetClient("", "http://forum.example")


def test_comment_check_verdicts():
    fake = FakeAkismet()
    with _client(fake) as client:
        assert client.comment_check({"comment_content": "hi"}) is False
        fake.verdict = "true"
        assert client.comment_check({"comment_content": "buy now"}) is True

    host, path, form = fake.calls[0]
    assert host == "test-key.rest.akismet.com"
    assert path == "/1.1/comment-check"
    assert form["blog"] == "http://forum.example"
    assert form["comment_content"] == "hi"


def test_none_values_are_not_sent():
    fake = FakeAkismet()
    with _client(fake) as client:
        client.comment_check({"comment_content": "hi", "user_ip": None})
    assert "user_ip" not in fake.forms("/comment-check")[0]


def test_timeout_raises_classifier_unavailable():
    fake = FakeAkismet()
    fake.timeout = True
    with _client(fake) as client:
        with pytest.raises(ClassifierUnavailable):
            client.comment_check({"comment_content": "hi"})


def test_unexpected_reply_raises_classifier_unavailable():
    def handler(request):
        return httpx.Response(200, text="invalid", headers={"X-akismet-debug-help": "bad key"})

    client = AkismetClient("k", "http://forum.example", transport=httpx.MockTransport(handler))
    with pytest.raises(ClassifierUnavailable) as excinfo:
        client.comment_check({})
    assert "bad key" in str(excinfo.value)


def test_http_error_raises_classifier_unavailable():
    client = AkismetClient(
        "k", "http://forum.example", transport=httpx.MockTransport(lambda r: httpx.Response(503))
    )
    with pytest.raises(ClassifierUnavailable):
        client.comment_check({})


def test_submit_feedback():
    fake = FakeAkismet()
    with _client(fake) as client:
        client.submit_feedback("spam", {"comment_content": "buy now"})
        client.submit_feedback("ham", {"comment_content": "hello"})
    assert fake.paths("/submit-spam") == ["/1.1/submit-spam"]
    assert fake.paths("/submit-ham") == ["/1.1/submit-ham"]


def test_submit_feedback_rejects_unknown_status():
    with _client(FakeAkismet()) as client:
        with pytest.raises(ValueError):
            client.submit_feedback("maybe", {})


def test_submit_feedback_without_ack_fails():
    fake = FakeAkismet()
    fake.feedback_reply = "nope"
    with _client(fake) as client:
        with pytest.raises(ReportFeedbackFailure):
            client.submit_feedback("spam", {})
    assert fake.feedback_reply != ACK


def test_verify_key():
    fake = FakeAkismet()
    with _client(fake) as client:
        assert client.verify_key()
    host, path, form = fake.calls[0]
    assert host == "rest.akismet.com"
    assert path == "/1.1/verify-key"
    assert form["key"] == "test-key"


def test_invalid_url_raises_classifier_unavailable():
    def handler(request):
        raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

    client = AkismetClient("k", "http://forum.example", transport=httpx.MockTransport(handler))
    with pytest.raises(ClassifierUnavailable):
        client.comment_check({})
    with pytest.raises(ClassifierUnavailable):
        client.verify_key()
    with pytest.raises(ReportFeedbackFailure):
        client.submit_feedback("spam", {})
