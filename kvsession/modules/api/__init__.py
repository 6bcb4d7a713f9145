"""
API Module - Black Box Interface

Purpose: HTTP request/response models
Interface: Pydantic models used by the routes in kvsession.main
Hidden: Validation and serialization details

The API layer only orchestrates - all session logic lives in the session module.
"""

from .models import (
    SessionInfoResponse,
    SetValueRequest,
    SetValueResponse,
    UnavailableReason,
    UnavailableResponse,
    ValueResponse,
)

__all__ = [
    "SetValueRequest",
    "SetValueResponse",
    "ValueResponse",
    "UnavailableReason",
    "UnavailableResponse",
    "SessionInfoResponse",
]
