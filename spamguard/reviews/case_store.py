"""File-based JSON storage for moderation cases.

Provides idempotent creation, scoring and decision operations for the
cases SpamGuard opens when Akismet flags a post or a user, backed by
JSON files under ``~/.spamguard/reviews/``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from spamguard.exceptions import CaseNotFoundError
from spamguard.reviews.models import CaseScore, CaseStatus, CaseType, ModerationCase
from spamguard.utils.jsonfile import read_json, write_json

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CaseStore:
    """File-based storage for moderation cases.

    Storage path: ``<base_dir>/`` with:
    - ``cases.json`` -- list of case dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".spamguard" / "reviews"
        self._base.mkdir(parents=True, exist_ok=True)
        self._cases_path = self._base / "cases.json"
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(self) -> list[dict]:
        return read_json(self._cases_path, [])

    def _write(self, data: list[dict]) -> None:
        write_json(self._cases_path, data)

    @staticmethod
    def _to_dict(case: ModerationCase) -> dict[str, Any]:
        d = asdict(case)
        d["case_type"] = case.case_type.value
        d["status"] = case.status.value
        return d

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def needs_review(
        self,
        case_type: CaseType,
        target_type: str,
        target_id: int,
        created_by: int,
        payload: Optional[dict[str, Any]] = None,
        topic_id: Optional[int] = None,
    ) -> tuple[ModerationCase, bool]:
        """Find the pending case for a target or open a new one.

        Returns ``(case, created)``; ``created`` is *False* when a pending
        case for the same target already existed, so re-running a job
        never produces duplicates.
        """
        with self._lock:
            existing = self.pending_for(case_type, target_type, target_id)
            if existing is not None:
                return existing, False

            case = ModerationCase(
                id=str(uuid.uuid4()),
                case_type=CaseType(case_type),
                target_type=target_type,
                target_id=target_id,
                created_by=created_by,
                topic_id=topic_id,
                payload=payload or {},
                created_at=_now(),
            )
            cases = self._read()
            cases.append(self._to_dict(case))
            self._write(cases)
        logger.info("Opened %s case %s for %s %s", case.case_type.value, case.id, target_type, target_id)
        return case, True

    def add_score(self, case_id: str, user_id: int, score_type: str, reason: str) -> ModerationCase:
        """Attach a score; a repeat score from the same actor and reason is ignored."""
        with self._lock:
            cases = self._read()
            for d in cases:
                if d["id"] != case_id:
                    continue
                scores = d.setdefault("scores", [])
                duplicate = any(
                    s.get("user_id") == user_id and s.get("reason") == reason for s in scores
                )
                if not duplicate:
                    scores.append(
                        asdict(CaseScore(user_id=user_id, score_type=score_type, reason=reason, created_at=_now()))
                    )
                    self._write(cases)
                return ModerationCase(**d)
        raise CaseNotFoundError(case_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, case_id: str) -> Optional[ModerationCase]:
        for d in self._read():
            if d["id"] == case_id:
                return ModerationCase(**d)
        return None

    def pending_for(
        self, case_type: CaseType | str, target_type: str, target_id: int
    ) -> Optional[ModerationCase]:
        case_type = CaseType(case_type).value
        for d in self._read():
            if (
                d.get("case_type") == case_type
                and d.get("target_type") == target_type
                and d.get("target_id") == target_id
                and d.get("status") == CaseStatus.pending.value
            ):
                return ModerationCase(**d)
        return None

    def list_cases(
        self,
        status: Optional[CaseStatus | str] = None,
        case_type: Optional[CaseType | str] = None,
    ) -> list[ModerationCase]:
        """Return cases, optionally filtered, newest first."""
        cases = self._read()
        if status:
            cases = [d for d in cases if d.get("status") == CaseStatus(status).value]
        if case_type:
            cases = [d for d in cases if d.get("case_type") == CaseType(case_type).value]
        result = [ModerationCase(**d) for d in cases]
        result.sort(key=lambda c: c.created_at, reverse=True)
        return result

    def cases_for_target(self, target_type: str, target_id: int) -> list[ModerationCase]:
        return [
            ModerationCase(**d)
            for d in self._read()
            if d.get("target_type") == target_type and d.get("target_id") == target_id
        ]

    def get_pending_count(self) -> int:
        return len(self.list_cases(status=CaseStatus.pending))

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def decide(self, case_id: str, status: CaseStatus, moderator_id: int) -> tuple[ModerationCase, bool]:
        """Move a pending case to *status*.

        Returns ``(case, changed)``; already decided cases come back
        untouched with ``changed`` set to *False*.
        """
        with self._lock:
            cases = self._read()
            for d in cases:
                if d["id"] != case_id:
                    continue
                if d.get("status") != CaseStatus.pending.value:
                    return ModerationCase(**d), False
                d["status"] = CaseStatus(status).value
                d["decided_at"] = _now()
                d["decided_by"] = moderator_id
                self._write(cases)
                return ModerationCase(**d), True
        raise CaseNotFoundError(case_id)
