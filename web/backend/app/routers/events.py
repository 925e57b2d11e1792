"""Events router -- the forum host reports post and user lifecycle events here."""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status

from spamguard.container import SpamGuard
from spamguard.exceptions import InvalidEventError
from spamguard.models.events import (
    PostConfirmedHamEvent,
    PostConfirmedSpamEvent,
    PostCreatedEvent,
    ProfileBioChangedEvent,
    UserAnonymizedEvent,
)
from web.backend.app.deps import get_guard
from web.backend.app.models.api import (
    BioChangedRequest,
    EventAcceptedResponse,
    PostCreatedRequest,
    PostFeedbackRequest,
    UserAnonymizedRequest,
)

router = APIRouter(prefix="/api/events", tags=["events"])


def _dispatch(guard: SpamGuard, build: Callable[[], object]) -> EventAcceptedResponse:
    try:
        event = build()
    except InvalidEventError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    handled = guard.trigger(event)
    return EventAcceptedResponse(event=type(event).__name__, handlers=handled)


@router.post("/post-created", response_model=EventAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def post_created(body: PostCreatedRequest, guard: SpamGuard = Depends(get_guard)):
    """A post was created; queue it for screening if it qualifies."""
    return _dispatch(
        guard,
        lambda: PostCreatedEvent(
            body.post_id,
            ip_address=body.ip_address,
            user_agent=body.user_agent,
            referrer=body.referrer,
        ),
    )


@router.post("/post-confirmed-spam", response_model=EventAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def post_confirmed_spam(body: PostFeedbackRequest, guard: SpamGuard = Depends(get_guard)):
    return _dispatch(guard, lambda: PostConfirmedSpamEvent(body.post_id))


@router.post("/post-confirmed-ham", response_model=EventAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def post_confirmed_ham(body: PostFeedbackRequest, guard: SpamGuard = Depends(get_guard)):
    return _dispatch(guard, lambda: PostConfirmedHamEvent(body.post_id))


@router.post("/user-anonymized", response_model=EventAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def user_anonymized(body: UserAnonymizedRequest, guard: SpamGuard = Depends(get_guard)):
    """Rewrite stored IPs for the user's posts and profile."""
    return _dispatch(guard, lambda: UserAnonymizedEvent(body.user_id, anonymize_ip=body.anonymize_ip))


@router.post("/bio-changed", response_model=EventAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def bio_changed(body: BioChangedRequest, guard: SpamGuard = Depends(get_guard)):
    return _dispatch(
        guard,
        lambda: ProfileBioChangedEvent(body.user_id, old_bio=body.old_bio, new_bio=body.new_bio),
    )
