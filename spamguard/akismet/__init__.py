"""Akismet integration: REST client and payload builder."""

from spamguard.akismet.client import AkismetClient, with_client
from spamguard.akismet.feedback import FeedbackBuilder

__all__ = ["AkismetClient", "FeedbackBuilder", "with_client"]
