"""
kvsession API data models.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class UnavailableReason(str, Enum):
    """Why a session value could not be returned."""

    NO_SESSION = "no_session"
    TIMED_OUT = "timed_out"
    NOT_FOUND = "not_found"


class SetValueRequest(BaseModel):
    """Request to store a value in the session."""

    value: str = Field(..., description="Value to store under the key")


class SetValueResponse(BaseModel):
    stored: bool


class ValueResponse(BaseModel):
    name: str
    value: str


class UnavailableResponse(BaseModel):
    """Returned with 404 when a value is unavailable."""

    name: Optional[str] = None
    reason: UnavailableReason
    detail: str


class SessionInfoResponse(BaseModel):
    """Snapshot of the caller's session."""

    session_id: str
    created_at: Optional[int] = Field(None, description="Epoch seconds")
    last_activity: int = Field(..., description="Epoch seconds")
    keys: List[str] = Field(default_factory=list)
