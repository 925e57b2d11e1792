"""Outbound webhooks for SpamGuard events.

Hooks subscribe to event names (``akismet.found_spam``,
``review.decided``).  Payloads are JSON, signed with HMAC-SHA256 when
the hook has a secret, and POSTed with ``httpx``.  Every attempt is
kept in a delivery log so a failed one can be replayed.

Storage is file-based JSON in ``~/.spamguard/webhooks/``.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import httpx

from spamguard.utils.jsonfile import read_json, write_json

logger = logging.getLogger(__name__)

FOUND_SPAM = "akismet.found_spam"
REVIEW_DECIDED = "review.decided"
WEBHOOK_EVENTS = [FOUND_SPAM, REVIEW_DECIDED]

# Deliveries kept on disk
MAX_DELIVERIES = 1000


@dataclass
class Webhook:
    id: str
    name: str
    url: str
    events: list[str] = field(default_factory=list)
    secret: str = ""
    active: bool = True
    created_at: str = ""


@dataclass
class WebhookDelivery:
    """One attempt to deliver an event to one hook."""

    id: str
    webhook_id: str
    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    response_status: int = 0
    response_body: str = ""
    success: bool = False
    delivered_at: str = ""
    duration_ms: int = 0


def sign(body: bytes, secret: str) -> str:
    mac = hmac.new(secret.encode("utf-8"), body, hashlib.sha256)
    return f"sha256={mac.hexdigest()}"


class WebhookNotifier:
    """Registers hooks and fans events out to them."""

    def __init__(
        self,
        base_dir: Optional[str | Path] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".spamguard" / "webhooks"
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._hooks_file = self._base_dir / "webhooks.json"
        self._deliveries_file = self._base_dir / "deliveries.json"
        self._timeout = timeout
        self._transport = transport
        self._lock = threading.RLock()

    @staticmethod
    def _webhook_from_dict(d: dict[str, Any]) -> Webhook:
        return Webhook(**{k: v for k, v in d.items() if k in Webhook.__dataclass_fields__})

    @staticmethod
    def _delivery_from_dict(d: dict[str, Any]) -> WebhookDelivery:
        return WebhookDelivery(
            **{k: v for k, v in d.items() if k in WebhookDelivery.__dataclass_fields__}
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        url: str,
        events: list[str],
        secret: str = "",
        name: str = "",
    ) -> Webhook:
        unknown = [e for e in events if e not in WEBHOOK_EVENTS]
        if unknown:
            raise ValueError(f"Unknown webhook events: {', '.join(unknown)}")
        wh = Webhook(
            id=uuid.uuid4().hex[:16],
            name=name or url,
            url=url,
            events=list(events),
            secret=secret,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            hooks = read_json(self._hooks_file, [])
            hooks.append(asdict(wh))
            write_json(self._hooks_file, hooks)
        return wh

    def get(self, webhook_id: str) -> Optional[Webhook]:
        for d in read_json(self._hooks_file, []):
            if d.get("id") == webhook_id:
                return self._webhook_from_dict(d)
        return None

    def list_webhooks(self) -> list[Webhook]:
        return [self._webhook_from_dict(d) for d in read_json(self._hooks_file, [])]

    def set_active(self, webhook_id: str, active: bool) -> Webhook:
        with self._lock:
            hooks = read_json(self._hooks_file, [])
            for d in hooks:
                if d.get("id") == webhook_id:
                    d["active"] = active
                    write_json(self._hooks_file, hooks)
                    return self._webhook_from_dict(d)
        raise ValueError(f"Webhook {webhook_id} not found")

    def remove(self, webhook_id: str) -> bool:
        with self._lock:
            hooks = read_json(self._hooks_file, [])
            kept = [d for d in hooks if d.get("id") != webhook_id]
            if len(kept) == len(hooks):
                return False
            write_json(self._hooks_file, kept)
        return True

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def fire(self, event: str, payload: dict[str, Any]) -> list[WebhookDelivery]:
        """Deliver *event* to every active hook subscribed to it."""
        hooks = [w for w in self.list_webhooks() if w.active and event in w.events]
        if not hooks:
            return []

        results = [self._deliver(wh, event, payload) for wh in hooks]
        self._append_deliveries(results)
        return results

    def _append_deliveries(self, deliveries: list[WebhookDelivery]) -> None:
        with self._lock:
            data = read_json(self._deliveries_file, [])
            data.extend(asdict(d) for d in deliveries)
            write_json(self._deliveries_file, data[-MAX_DELIVERIES:])

    def _deliver(self, wh: Webhook, event: str, payload: dict[str, Any]) -> WebhookDelivery:
        body = json.dumps({"event": event, "payload": payload}).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "X-SpamGuard-Event": event,
        }
        if wh.secret:
            headers["X-SpamGuard-Signature"] = sign(body, wh.secret)

        start = time.monotonic()
        status = 0
        resp_body = ""
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(wh.url, content=body, headers=headers)
            status = response.status_code
            resp_body = response.text[:2000]
        except httpx.HTTPError as exc:
            resp_body = str(exc)[:2000]
            logger.warning("Webhook %s delivery of %s failed: %s", wh.id, event, exc)

        success = 200 <= status < 300
        if status and not success:
            logger.warning("Webhook %s answered %s for %s", wh.id, status, event)

        return WebhookDelivery(
            id=uuid.uuid4().hex[:16],
            webhook_id=wh.id,
            event=event,
            payload=payload,
            response_status=status,
            response_body=resp_body,
            success=success,
            delivered_at=datetime.now(timezone.utc).isoformat(),
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    # ------------------------------------------------------------------
    # Delivery history
    # ------------------------------------------------------------------

    def get_deliveries(
        self,
        webhook_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[WebhookDelivery]:
        """Newest first, optionally for one hook."""
        deliveries = [self._delivery_from_dict(d) for d in read_json(self._deliveries_file, [])]
        if webhook_id:
            deliveries = [d for d in deliveries if d.webhook_id == webhook_id]
        deliveries.sort(key=lambda d: d.delivered_at, reverse=True)
        return deliveries[:limit]

    def retry_delivery(self, delivery_id: str) -> WebhookDelivery:
        for d in read_json(self._deliveries_file, []):
            if d.get("id") == delivery_id:
                original = self._delivery_from_dict(d)
                wh = self.get(original.webhook_id)
                if wh is None:
                    raise ValueError(f"Webhook {original.webhook_id} not found")
                delivery = self._deliver(wh, original.event, original.payload)
                self._append_deliveries([delivery])
                return delivery
        raise ValueError(f"Delivery {delivery_id} not found")
