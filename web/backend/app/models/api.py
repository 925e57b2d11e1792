"""Pydantic models for API request/response serialization.

These models mirror the SpamGuard dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Inbound forum events
# ---------------------------------------------------------------------------


class PostCreatedRequest(BaseModel):
    post_id: int
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None


class PostFeedbackRequest(BaseModel):
    """Body for post-confirmed-spam and post-confirmed-ham."""

    post_id: int


class UserAnonymizedRequest(BaseModel):
    user_id: int
    anonymize_ip: Optional[str] = None


class BioChangedRequest(BaseModel):
    user_id: int
    old_bio: str = ""
    new_bio: str = ""


class EventAcceptedResponse(BaseModel):
    ok: bool = True
    event: str
    handlers: int = 0


# ---------------------------------------------------------------------------
# Moderation cases
# ---------------------------------------------------------------------------


class CaseScoreResponse(BaseModel):
    """Mirrors spamguard.reviews.models.CaseScore."""

    user_id: int
    score_type: str
    reason: str
    created_at: str = ""


class CaseResponse(BaseModel):
    """Mirrors spamguard.reviews.models.ModerationCase."""

    id: str
    case_type: str
    target_type: str
    target_id: int
    created_by: int
    topic_id: Optional[int] = None
    status: str = "pending"
    payload: dict[str, Any] = Field(default_factory=dict)
    scores: list[CaseScoreResponse] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    created_at: str = ""
    decided_at: str = ""
    decided_by: Optional[int] = None


class CaseActionRequest(BaseModel):
    action: str
    moderator_id: int


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class DecisionEntryResponse(BaseModel):
    """Mirrors spamguard.history.decision_log.DecisionEntry."""

    id: str
    timestamp: str
    actor_id: int
    action: str
    target_type: str
    target_id: int
    details: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


class CreateWebhookRequest(BaseModel):
    url: str
    events: list[str]
    secret: str = ""
    name: str = ""


class ToggleWebhookRequest(BaseModel):
    active: bool


class WebhookResponse(BaseModel):
    id: str
    name: str
    url: str
    events: list[str] = Field(default_factory=list)
    active: bool = True
    created_at: str = ""


class WebhookDeliveryResponse(BaseModel):
    id: str
    webhook_id: str
    event: str
    payload: dict[str, Any] = Field(default_factory=dict)
    response_status: int = 0
    response_body: str = ""
    success: bool = False
    delivered_at: str = ""
    duration_ms: int = 0
