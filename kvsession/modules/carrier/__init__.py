"""
Carrier Module - Black Box Interface

Purpose: Carry the session identifier between client and server
Interface: read_signed_token(), write_signed_token()
Hidden: Token signing, cookie attributes, response mutation

Can be replaced with header-based tokens or any other transport.
"""

from .carrier import PendingCookie, SignedCookieCarrier, TokenCarrier

__all__ = ["TokenCarrier", "SignedCookieCarrier", "PendingCookie"]
