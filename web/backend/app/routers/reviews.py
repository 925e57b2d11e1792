"""Reviews router -- list moderation cases and act on them."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from spamguard.container import SpamGuard
from spamguard.exceptions import CaseNotFoundError, InvalidActionError
from spamguard.reviews.actions import actions_for
from spamguard.reviews.models import CaseStatus, CaseType, ModerationCase
from web.backend.app.deps import get_guard
from web.backend.app.models.api import (
    CaseActionRequest,
    CaseResponse,
    CaseScoreResponse,
    DecisionEntryResponse,
)

router = APIRouter(prefix="/api", tags=["reviews"])


def _case_response(case: ModerationCase) -> CaseResponse:
    return CaseResponse(
        id=case.id,
        case_type=case.case_type.value,
        target_type=case.target_type,
        target_id=case.target_id,
        created_by=case.created_by,
        topic_id=case.topic_id,
        status=case.status.value,
        payload=case.payload,
        scores=[CaseScoreResponse(**asdict(s)) for s in case.scores],
        actions=list(actions_for(case)) if case.pending else [],
        created_at=case.created_at,
        decided_at=case.decided_at,
        decided_by=case.decided_by,
    )


@router.get("/reviews", response_model=list[CaseResponse], summary="List moderation cases")
async def list_reviews(
    status_filter: Optional[CaseStatus] = Query(None, alias="status"),
    case_type: Optional[CaseType] = None,
    guard: SpamGuard = Depends(get_guard),
):
    """Cases newest first; pass ``status=pending`` for the review queue."""
    return [_case_response(c) for c in guard.cases.list_cases(status=status_filter, case_type=case_type)]


@router.get("/reviews/{case_id}", response_model=CaseResponse, summary="Get a moderation case")
async def get_review(case_id: str, guard: SpamGuard = Depends(get_guard)):
    case = guard.cases.get(case_id)
    if case is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Case '{case_id}' not found",
        )
    return _case_response(case)


@router.post(
    "/reviews/{case_id}/actions",
    response_model=CaseResponse,
    summary="Apply a moderator action to a case",
)
async def perform_action(case_id: str, body: CaseActionRequest, guard: SpamGuard = Depends(get_guard)):
    """Confirm, clear, ignore or delete; repeating a decision is a no-op."""
    try:
        case = guard.reviews.perform(case_id, body.action, body.moderator_id)
    except CaseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidActionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _case_response(case)


@router.get("/history", response_model=list[DecisionEntryResponse], summary="Recent decisions")
async def history(
    staff_only: bool = False,
    limit: int = 100,
    guard: SpamGuard = Depends(get_guard),
):
    entries = guard.history.staff_actions(limit) if staff_only else guard.history.get_entries(limit=limit)
    return [DecisionEntryResponse(**asdict(e)) for e in entries]
