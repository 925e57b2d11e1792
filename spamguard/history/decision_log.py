"""Auditable history of screening and moderation decisions.

Every automatic verdict (``checked``, ``needs_review``, ``skipped``) and
every staff action on a case (``confirmed_spam``, ``confirmed_ham``,
``ignored``, ``confirmed_spam_deleted``) is appended as one JSON line to
a daily file under ``~/.spamguard/history/``.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

STAFF_ACTIONS = ("confirmed_spam", "confirmed_ham", "ignored", "confirmed_spam_deleted")


@dataclass
class DecisionEntry:
    """A single recorded decision."""

    id: str
    timestamp: str
    actor_id: int
    action: str
    target_type: str
    target_id: int
    details: dict[str, Any] = field(default_factory=dict)


class DecisionLog:
    """Append-only JSONL log of decisions, one file per UTC day."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".spamguard" / "history"
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self) -> list[DecisionEntry]:
        entries: list[DecisionEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except OSError as exc:
                logger.warning("Could not read %s: %s", path, exc)
                continue
            for line in lines:
                if not line.strip():
                    continue
                try:
                    entries.append(DecisionEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    logger.warning("Skipping malformed history line in %s", path.name)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(
        self,
        actor_id: int,
        action: str,
        target_type: str,
        target_id: int,
        details: Optional[dict[str, Any]] = None,
    ) -> DecisionEntry:
        """Append a decision and return the created entry."""
        now = datetime.now(timezone.utc)
        entry = DecisionEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=now.isoformat(),
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=details or {},
        )
        with self._lock:
            with self._log_file_for_date(now).open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def get_entries(
        self,
        *,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
        actor_id: Optional[int] = None,
        limit: int = 200,
    ) -> list[DecisionEntry]:
        """Return filtered entries, newest first."""
        entries = self._read_all_entries()
        if action:
            entries = [e for e in entries if e.action == action]
        if target_type:
            entries = [e for e in entries if e.target_type == target_type]
        if target_id is not None:
            entries = [e for e in entries if e.target_id == target_id]
        if actor_id is not None:
            entries = [e for e in entries if e.actor_id == actor_id]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def staff_actions(self, limit: int = 200) -> list[DecisionEntry]:
        entries = [e for e in self._read_all_entries() if e.action in STAFF_ACTIONS]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]
