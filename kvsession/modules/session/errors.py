"""
Session error types.

NoSessionError, TimedOutError and the store's NotFoundError all derive from
LookupError, so callers that only care whether a value is available can catch
that single base.
"""

from typing import Optional


class SessionError(LookupError):
    """Base class for session resolution failures."""


class NoSessionError(SessionError):
    """No valid session token accompanies the request."""

    def __init__(self, message: str = "Failed to find session ID"):
        super().__init__(message)


class TimedOutError(SessionError):
    """A token is present but the inactivity window has been exceeded."""

    def __init__(self, session_id: Optional[str] = None):
        super().__init__("Session has timed out")
        self.session_id = session_id


class InvalidKeyError(ValueError):
    """A logical key name cannot be stored under the namespacing scheme."""
