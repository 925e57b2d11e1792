"""A small at-least-once job runner on top of a thread pool.

Jobs are registered by name and enqueued with keyword arguments.  A job
that raises is retried with linear backoff up to ``max_retries`` times,
then logged and dropped.  With ``inline=True`` jobs run synchronously in
the caller's thread, which is what the CLI and the tests use.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

Job = Callable[..., Any]


@dataclass
class FailedJob:
    name: str
    kwargs: dict[str, Any] = field(default_factory=dict)
    error: str = ""
    attempts: int = 0


class JobQueue:
    """Named background jobs with bounded retries."""

    def __init__(
        self,
        max_workers: int = 2,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        inline: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.inline = inline
        self._sleep = sleep
        self._jobs: dict[str, Job] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._max_workers = max_workers
        self._lock = threading.Lock()
        self.failed: list[FailedJob] = []

    def register(self, name: str, fn: Job) -> None:
        self._jobs[name] = fn

    @property
    def registered(self) -> list[str]:
        return sorted(self._jobs)

    def enqueue(self, name: str, **kwargs: Any) -> Future:
        """Schedule *name* with *kwargs* and return a future for its success flag."""
        if name not in self._jobs:
            raise ValueError(f"Unknown job: {name}")

        if self.inline:
            future: Future = Future()
            future.set_result(self._run(name, kwargs))
            return future

        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="spamguard-job"
                )
            return self._executor.submit(self._run, name, kwargs)

    def _run(self, name: str, kwargs: dict[str, Any]) -> bool:
        fn = self._jobs[name]
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                fn(**kwargs)
                return True
            except Exception as exc:
                if attempt < attempts:
                    logger.warning(
                        "Job %s failed (attempt %d/%d): %s", name, attempt, attempts, exc
                    )
                    self._sleep(self.retry_delay * attempt)
                    continue
                logger.error("Job %s gave up after %d attempts: %s", name, attempts, exc)
                with self._lock:
                    self.failed.append(FailedJob(name, dict(kwargs), str(exc), attempts))
        return False

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None
