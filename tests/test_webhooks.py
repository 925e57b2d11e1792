"""Tests for outbound webhooks."""

import json

import httpx
import pytest

from spamguard.notify.webhooks import FOUND_SPAM, REVIEW_DECIDED, WebhookNotifier, sign


class Receiver:
    def __init__(self, status=200):
        self.status = status
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, text="thanks")


def _notifier(tmp_path, receiver):
    return WebhookNotifier(tmp_path, transport=httpx.MockTransport(receiver))


def test_register_and_list(tmp_path):
    notifier = _notifier(tmp_path, Receiver())
    wh = notifier.register("http://hooks.example/a", [FOUND_SPAM], name="alerts")
    assert [w.id for w in notifier.list_webhooks()] == [wh.id]
    assert notifier.get(wh.id).name == "alerts"
    assert (tmp_path / "webhooks.json").exists()


def test_unknown_event_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        _notifier(tmp_path, Receiver()).register("http://x", ["post.liked"])


def test_fire_only_reaches_subscribed_active_hooks(tmp_path):
    receiver = Receiver()
    notifier = _notifier(tmp_path, receiver)
    spam = notifier.register("http://hooks.example/spam", [FOUND_SPAM])
    notifier.register("http://hooks.example/reviews", [REVIEW_DECIDED])
    paused = notifier.register("http://hooks.example/paused", [FOUND_SPAM])
    notifier.set_active(paused.id, False)

    deliveries = notifier.fire(FOUND_SPAM, {"count": 4})

    assert [d.webhook_id for d in deliveries] == [spam.id]
    request = receiver.requests[0]
    assert request.headers["X-SpamGuard-Event"] == FOUND_SPAM
    assert json.loads(request.content) == {"event": FOUND_SPAM, "payload": {"count": 4}}


def test_payload_is_signed_with_secret(tmp_path):
    receiver = Receiver()
    notifier = _notifier(tmp_path, receiver)
    notifier.register("http://hooks.example/spam", [FOUND_SPAM], secret="s3cret")
    notifier.fire(FOUND_SPAM, {"count": 1})

    request = receiver.requests[0]
    assert request.headers["X-SpamGuard-Signature"] == sign(request.content, "s3cret")


def test_failed_delivery_is_recorded_and_retryable(tmp_path):
    receiver = Receiver(status=500)
    notifier = _notifier(tmp_path, receiver)
    wh = notifier.register("http://hooks.example/spam", [FOUND_SPAM])

    failed = notifier.fire(FOUND_SPAM, {"count": 2})[0]
    assert not failed.success
    assert failed.response_status == 500

    receiver.status = 200
    retried = notifier.retry_delivery(failed.id)
    assert retried.success
    assert retried.payload == {"count": 2}
    assert len(notifier.get_deliveries(wh.id)) == 2


def test_unreachable_hook_does_not_raise(tmp_path):
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    notifier = WebhookNotifier(tmp_path, transport=httpx.MockTransport(refuse))
    notifier.register("http://hooks.example/spam", [FOUND_SPAM])
    delivery = notifier.fire(FOUND_SPAM, {"count": 1})[0]
    assert not delivery.success
    assert "refused" in delivery.response_body


def test_remove(tmp_path):
    notifier = _notifier(tmp_path, Receiver())
    wh = notifier.register("http://hooks.example/spam", [FOUND_SPAM])
    assert notifier.remove(wh.id)
    assert not notifier.remove(wh.id)
    assert notifier.fire(FOUND_SPAM, {"count": 1}) == []
