"""Exceptions raised by the command pipeline and the dispatcher."""
from typing import List, Optional


class ApKaraError(Exception):
    """Base error for the dispatch bot."""


class ExtractionIncomplete(ApKaraError):
    """Required fields are still empty after extraction and merge."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(f"Missing fields: {', '.join(self.missing)}")


class MissingQuotedContext(ApKaraError):
    """Control command was sent without quoting the original message."""


class DispatchFailure(ApKaraError):
    """External processor call errored, returned an error, or timed out."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class NotificationFailure(ApKaraError):
    """A reply could not be delivered to the chat."""


class TransportUnavailable(ApKaraError):
    """The WhatsApp gateway is not configured or cannot be reached."""


class InvalidRequest(ApKaraError):
    """A control request is missing required input."""
