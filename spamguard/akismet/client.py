"""Akismet REST client.

Wraps the three Akismet calls SpamGuard needs (``comment-check``,
``submit-spam``/``submit-ham`` and ``verify-key``) behind a small class
with a per-request timeout.  Every failure is turned into a SpamGuard
exception so callers never have to know about ``httpx``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import httpx

from spamguard.config import Settings
from spamguard.exceptions import ClassifierUnavailable, ConfigurationError, ReportFeedbackFailure

logger = logging.getLogger(__name__)

API_VERSION = "1.1"
USER_AGENT = "SpamGuard/0.1 | Akismet/1.1"
FEEDBACK_STATUSES = ("spam", "ham")
_FEEDBACK_ACK = "Thanks for making the web a better place."
# InvalidURL (e.g. a malformed API key in the host name) is not an HTTPError.
_TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class AkismetClient:
    """Thin wrapper around the Akismet REST API.

    Parameters
    ----------
    api_key : str
        Akismet API key; also forms the per-key host name.
    base_url : str
        The registered site (sent as ``blog`` with every request).
    timeout : float
        Per-request timeout in seconds.
    transport : httpx.BaseTransport | None
        Optional transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("Akismet API key is not configured")
        self.api_key = api_key
        self.base_url = base_url
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AkismetClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- helpers -------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"https://{self.api_key}.rest.akismet.com/{API_VERSION}/{path}"

    def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        body = {k: v for k, v in payload.items() if v is not None}
        body["blog"] = self.base_url
        response = self._client.post(url, data=body)
        response.raise_for_status()
        return response

    @staticmethod
    def _debug_help(response: httpx.Response) -> str:
        return response.headers.get("X-akismet-debug-help", "") or response.text[:200]

    # -- API -----------------------------------------------------------------

    def comment_check(self, payload: dict[str, Any]) -> bool:
        """Return *True* if Akismet classifies *payload* as spam.

        Raises :class:`ClassifierUnavailable` on any transport error,
        timeout, HTTP error or unexpected reply.
        """
        try:
            response = self._post(self._url("comment-check"), payload)
        except _TRANSPORT_ERRORS as exc:
            raise ClassifierUnavailable(f"Akismet comment-check failed: {exc}") from exc

        verdict = response.text.strip()
        if verdict == "true":
            return True
        if verdict == "false":
            return False
        raise ClassifierUnavailable(
            "Unexpected Akismet comment-check reply",
            {"reply": verdict[:50], "help": self._debug_help(response)},
        )

    def submit_feedback(self, status: str, payload: dict[str, Any]) -> None:
        """Report a confirmed ``spam`` or ``ham`` decision back to Akismet."""
        if status not in FEEDBACK_STATUSES:
            raise ValueError(f"status must be one of {FEEDBACK_STATUSES}, got {status!r}")
        try:
            response = self._post(self._url(f"submit-{status}"), payload)
        except _TRANSPORT_ERRORS as exc:
            raise ReportFeedbackFailure(f"Akismet submit-{status} failed: {exc}") from exc

        if response.text.strip() != _FEEDBACK_ACK:
            raise ReportFeedbackFailure(
                f"Akismet rejected submit-{status}",
                {"help": self._debug_help(response)},
            )

    def verify_key(self) -> bool:
        """Return *True* if Akismet accepts the configured key for ``base_url``."""
        url = f"https://rest.akismet.com/{API_VERSION}/verify-key"
        try:
            response = self._post(url, {"key": self.api_key})
        except _TRANSPORT_ERRORS as exc:
            raise ClassifierUnavailable(f"Akismet verify-key failed: {exc}") from exc
        return response.text.strip() == "valid"


@contextmanager
def with_client(
    settings: Settings,
    transport: Optional[httpx.BaseTransport] = None,
) -> Iterator[AkismetClient]:
    """Open a client for one batch of work and always close it afterwards."""
    client = AkismetClient(
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout=settings.request_timeout,
        transport=transport,
    )
    try:
        yield client
    finally:
        client.close()
