"""
Session Module - Black Box Interface

Purpose: Map an opaque client-held identifier to a bag of named values
Interface: set(), get(), delete(), clear(), destroy()
Hidden: Identifier issuance, key namespacing, timeout detection, key tracking

Replaceable with any session backend; persistence goes through the storage
module's SessionStore contract.
"""

from ..storage import NotFoundError, StoreError
from .errors import InvalidKeyError, NoSessionError, SessionError, TimedOutError
from .session import SessionInfo, SessionModule

__all__ = [
    "SessionModule",
    "SessionInfo",
    "SessionError",
    "NoSessionError",
    "TimedOutError",
    "NotFoundError",
    "StoreError",
    "InvalidKeyError",
]
