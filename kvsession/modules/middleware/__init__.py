"""
Session Middleware Module - Black Box Interface

Purpose: Bind a SessionModule to every inbound request
Interface: SessionMiddleware (register with app.middleware("http"))
Hidden: Cookie extraction, token signing, response cookie updates

Handlers reach the session through request.state.session.
"""

import logging
import time
from typing import Callable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..carrier import SignedCookieCarrier
from ..session import SessionModule
from ..session.session import DEFAULT_COOKIE_NAME, DEFAULT_EXPIRATION, DEFAULT_TIMEOUT
from ..storage import SessionStore

logger = logging.getLogger(__name__)


class SessionMiddleware:
    """
    Per-request session wiring for FastAPI applications.

    The shared store is read from app.state.session_store so it can be
    created during the application lifespan.
    """

    def __init__(
        self,
        secret_key: str,
        timeout: int = DEFAULT_TIMEOUT,
        expiration: int = DEFAULT_EXPIRATION,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        cookie_secure: bool = False,
        skip_paths: Optional[list] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize session middleware.

        Args:
            secret_key: Key used to sign session tokens
            timeout: Inactivity window in seconds
            expiration: Token and store entry TTL in seconds
            cookie_name: Name of the session cookie
            cookie_secure: Whether the cookie is restricted to HTTPS
            skip_paths: Paths that never need a session
            clock: Epoch clock handed to each SessionModule
        """
        self.secret_key = secret_key
        self.timeout = timeout
        self.expiration = expiration
        self.cookie_name = cookie_name
        self.cookie_secure = cookie_secure
        self.skip_paths = set(skip_paths or ["/health"])
        self.clock = clock

    def get_store(self, request: Request) -> Optional[SessionStore]:
        return getattr(request.app.state, "session_store", None)

    def build_session(self, request: Request, store: SessionStore) -> SessionModule:
        """Create the carrier and session module for one request."""
        carrier = SignedCookieCarrier(
            request.cookies, self.secret_key, secure=self.cookie_secure
        )
        return SessionModule(
            carrier,
            store,
            timeout=self.timeout,
            expiration=self.expiration,
            cookie_name=self.cookie_name,
            clock=self.clock,
        )

    async def __call__(self, request: Request, call_next):
        if request.url.path in self.skip_paths:
            return await call_next(request)

        store = self.get_store(request)
        if store is None:
            logger.error("Session store not initialized")
            return JSONResponse(status_code=503, content={"error": "Session store not initialized"})

        session = self.build_session(request, store)
        request.state.session = session

        response = await call_next(request)
        session.carrier.apply(response)
        return response


__all__ = ["SessionMiddleware"]
