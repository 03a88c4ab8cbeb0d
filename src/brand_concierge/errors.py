"""
Concierge Errors
----------------
Every failure the concierge can report, each carrying the HTTP status
it maps to and a summary/details pair for the JSON error body.
"""

from typing import Optional


class ConciergeError(Exception):
    """Base class for concierge failures."""

    status_code = 500
    summary = "A server error occurred while communicating with the Brand Concierge service."

    def __init__(self, details: str, summary: Optional[str] = None):
        self.details = details
        if summary:
            self.summary = summary
        super().__init__(details)

    def to_body(self) -> dict:
        return {"error": self.summary, "details": self.details}


class InvalidRequest(ConciergeError):
    """Raised when the inbound request is missing or has bad input."""

    status_code = 400
    summary = "Invalid request"

    def to_body(self) -> dict:
        return {"error": self.details}


class ConfigurationMissing(ConciergeError):
    """Raised when a required setting (credential, knowledge source) is absent."""

    summary = "Configuration or Initialization Error"


class UpstreamTransportFailure(ConciergeError):
    """Raised on network failures or non-success HTTP statuses from Gemini."""

    summary = "Gemini API Status Error"

    def __init__(self, details: str, upstream_status: Optional[int] = None):
        self.upstream_status = upstream_status
        super().__init__(details)


class UpstreamMalformed(ConciergeError):
    """Raised when Gemini answers successfully but the payload breaks the contract."""

    summary = "Malformed response from Gemini"


class ConciergeTimeout(ConciergeError):
    """Raised when the outbound call exceeds its time budget."""

    status_code = 504
    summary = "Gemini API request timed out"
