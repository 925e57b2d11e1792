"""Webhooks router -- register outbound hooks and inspect deliveries."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from spamguard.container import SpamGuard
from web.backend.app.deps import get_guard
from web.backend.app.models.api import (
    CreateWebhookRequest,
    ToggleWebhookRequest,
    WebhookDeliveryResponse,
    WebhookResponse,
)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("", response_model=WebhookResponse, status_code=status.HTTP_201_CREATED)
async def create_webhook(req: CreateWebhookRequest, guard: SpamGuard = Depends(get_guard)):
    try:
        wh = guard.webhooks.register(req.url, req.events, secret=req.secret, name=req.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return WebhookResponse(**{k: v for k, v in asdict(wh).items() if k != "secret"})


@router.get("", response_model=list[WebhookResponse])
async def list_webhooks(guard: SpamGuard = Depends(get_guard)):
    return [
        WebhookResponse(**{k: v for k, v in asdict(w).items() if k != "secret"})
        for w in guard.webhooks.list_webhooks()
    ]


@router.put("/{webhook_id}/toggle", response_model=WebhookResponse)
async def toggle_webhook(webhook_id: str, req: ToggleWebhookRequest, guard: SpamGuard = Depends(get_guard)):
    try:
        wh = guard.webhooks.set_active(webhook_id, req.active)
    except ValueError:
        raise HTTPException(status_code=404, detail="Webhook not found")
    return WebhookResponse(**{k: v for k, v in asdict(wh).items() if k != "secret"})


@router.delete("/{webhook_id}")
async def delete_webhook(webhook_id: str, guard: SpamGuard = Depends(get_guard)):
    if not guard.webhooks.remove(webhook_id):
        raise HTTPException(status_code=404, detail="Webhook not found")
    return {"ok": True}


@router.get("/deliveries", response_model=list[WebhookDeliveryResponse])
async def list_deliveries(
    webhook_id: Optional[str] = None,
    limit: int = 100,
    guard: SpamGuard = Depends(get_guard),
):
    """Delivery attempts, newest first."""
    return [WebhookDeliveryResponse(**asdict(d)) for d in guard.webhooks.get_deliveries(webhook_id, limit)]
