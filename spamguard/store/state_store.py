"""Per-target Akismet state, stored as key-value metadata.

One :class:`StateStore` exists per namespace (``posts`` or ``users``).
Each target id maps to a small dict using the keys ``STATE``,
``IP_ADDRESS``, ``USER_AGENT``, ``REFERRER`` and ``ATTEMPTS``.  All
read-modify-write cycles happen under a lock shared by every store over
the same file, and files are replaced atomically, so concurrent writers
see last-writer-wins per record without torn rows.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator, Optional

from spamguard.models.content import Post, User
from spamguard.models.state import (
    ATTEMPTS,
    IP_ADDRESS,
    REFERRER,
    STATE,
    USER_AGENT,
    CheckState,
    StateRecord,
)
from spamguard.utils.jsonfile import read_json, write_json

if TYPE_CHECKING:
    from spamguard.forum.local_forum import LocalForum
    from spamguard.reviews.case_store import CaseStore

logger = logging.getLogger(__name__)

_shared: dict[Path, tuple[threading.RLock, set[int]]] = {}
_shared_guard = threading.Lock()


def _shared_for(path: Path) -> tuple[threading.RLock, set[int]]:
    """Return the lock and in-flight set shared by every store over *path*."""
    key = path.resolve()
    with _shared_guard:
        if key not in _shared:
            _shared[key] = (threading.RLock(), set())
        return _shared[key]


class StateStore:
    """File-backed check state for one kind of target.

    Storage path: ``<base_dir>/<namespace>.json`` -- id -> metadata dict.
    """

    def __init__(
        self,
        base_dir: Optional[str | Path] = None,
        namespace: str = "posts",
        api_key: str = "",
    ) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".spamguard" / "states"
        self._base.mkdir(parents=True, exist_ok=True)
        self.namespace = namespace
        self._path = self._base / f"{namespace}.json"
        self._api_key = api_key
        self._lock, self._in_flight = _shared_for(self._path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> dict[str, dict]:
        return read_json(self._path, {})

    def _save(self, data: dict[str, dict]) -> None:
        write_json(self._path, data)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, target_id: int) -> Optional[StateRecord]:
        d = self._load().get(str(target_id))
        if not d or STATE not in d:
            return None
        return StateRecord.from_fields(target_id, d)

    def state_of(self, target_id: int) -> Optional[CheckState]:
        record = self.get(target_id)
        return record.state if record else None

    def ids_in_state(self, state: CheckState) -> list[int]:
        return sorted(
            int(tid) for tid, d in self._load().items() if d.get(STATE) == state.value
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_state(
        self,
        target_id: Optional[int],
        state: CheckState,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
    ) -> Optional[StateRecord]:
        """Move *target_id* to *state*, overwriting only the metadata supplied.

        Does nothing when the target is absent or no API key is configured.
        """
        if target_id is None or not self._api_key:
            return None

        to_update: dict[str, object] = {STATE: CheckState(state).value}
        if ip_address:
            to_update[IP_ADDRESS] = ip_address
        if user_agent:
            to_update[USER_AGENT] = user_agent
        if referrer:
            to_update[REFERRER] = referrer
        if state == CheckState.new:
            to_update[ATTEMPTS] = 0

        with self._lock:
            data = self._load()
            record = data.setdefault(str(target_id), {})
            record.update(to_update)
            self._save(data)
        logger.debug("%s %s -> %s", self.namespace, target_id, to_update[STATE])
        return StateRecord.from_fields(target_id, record)

    def record_failure(self, target_id: int) -> int:
        """Count one more failed classifier attempt and return the new total."""
        with self._lock:
            data = self._load()
            record = data.setdefault(str(target_id), {STATE: CheckState.new.value})
            record[ATTEMPTS] = int(record.get(ATTEMPTS, 0)) + 1
            self._save(data)
            return record[ATTEMPTS]

    def anonymize_ips(self, target_ids: Iterable[int], new_ip: str) -> int:
        """Rewrite the stored IP for every listed target in one locked pass.

        Returns the number of records that were rewritten.
        """
        wanted = {str(t) for t in target_ids}
        if not wanted:
            return 0
        with self._lock:
            data = self._load()
            count = 0
            for tid in wanted & data.keys():
                data[tid][IP_ADDRESS] = new_ip
                count += 1
            if count:
                self._save(data)
        logger.info("Anonymized IP on %d %s record(s)", count, self.namespace)
        return count

    # ------------------------------------------------------------------
    # Claiming
    # ------------------------------------------------------------------

    def claim(self, target_id: int) -> bool:
        """Reserve a ``new`` target for a single in-flight check."""
        with self._lock:
            if target_id in self._in_flight:
                return False
            if self.state_of(target_id) != CheckState.new:
                return False
            self._in_flight.add(target_id)
            return True

    def release(self, target_id: int) -> None:
        with self._lock:
            self._in_flight.discard(target_id)

    def is_claimed(self, target_id: int) -> bool:
        return target_id in self._in_flight

    # ------------------------------------------------------------------
    # Work queues
    # ------------------------------------------------------------------

    def pending_items(self, forum: LocalForum, cases: CaseStore) -> Iterator[Post]:
        """Yield live posts in ``new`` whose topic still exists.

        Posts that already have a pending ``akismet_post`` case, or that
        are claimed by another check, are left out.  Each call starts a
        fresh pass over the store.
        """
        for post_id in self.ids_in_state(CheckState.new):
            if self.is_claimed(post_id):
                continue
            post = forum.get_post(post_id)
            if post is None or post.deleted or forum.get_topic(post.topic_id) is None:
                continue
            if cases.pending_for("akismet_post", "post", post_id) is not None:
                continue
            yield post

    def pending_users(self, forum: LocalForum, cases: CaseStore) -> Iterator[User]:
        """Yield users in ``new`` that still exist and are not under review."""
        for user_id in self.ids_in_state(CheckState.new):
            if self.is_claimed(user_id):
                continue
            user = forum.get_user(user_id)
            if user is None or user.deleted:
                continue
            if cases.pending_for("akismet_user", "user", user_id) is not None:
                continue
            yield user
