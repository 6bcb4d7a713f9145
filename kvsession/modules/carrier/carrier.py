"""
Signed cookie token carrier.

Session identifiers travel to the client as HS256-signed JWTs stored in a
cookie. The token carries its own expiry, independent of the server-side
inactivity timeout.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol

import jwt

logger = logging.getLogger(__name__)


class TokenCarrier(Protocol):
    """Protocol for reading and writing the client-held session token."""

    def read_signed_token(self, name: str) -> Optional[str]:
        """
        Read and verify the named token.

        Returns:
            The carried value, or None if absent, tampered with or expired
        """
        ...

    def write_signed_token(self, name: str, value: str, ttl: int) -> None:
        """
        Sign value and hand it to the client under name.

        A ttl of zero or less deletes the token immediately.
        """
        ...


@dataclass
class PendingCookie:
    """A cookie write waiting to be applied to the response."""
    name: str
    value: str
    max_age: int

    @property
    def is_deletion(self) -> bool:
        return self.max_age <= 0


class SignedCookieCarrier:
    """
    TokenCarrier bound to a single request's cookies.

    Writes are buffered and applied to the outgoing response with apply().
    A token written during the request is visible to later reads in the same
    request.
    """

    ALGORITHM = "HS256"

    def __init__(
        self,
        cookies: Mapping[str, str],
        secret_key: str,
        secure: bool = False,
        path: str = "/",
    ):
        """
        Initialize carrier.

        Args:
            cookies: Cookies sent with the current request
            secret_key: HMAC key used to sign and verify tokens
            secure: Whether cookies are restricted to HTTPS
            path: Cookie path
        """
        if not secret_key:
            raise ValueError("secret_key is required to sign session tokens")

        self.secret_key = secret_key
        self.secure = secure
        self.path = path
        self._cookies: Dict[str, str] = dict(cookies)
        self._pending: Dict[str, PendingCookie] = {}

    def read_signed_token(self, name: str) -> Optional[str]:
        raw = self._cookies.get(name)
        if not raw:
            return None

        try:
            claims = jwt.decode(
                raw,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                options={"verify_exp": True, "require": ["exp", "sid"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug(f"Token {name} has expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected invalid token {name}: {e}")
            return None

        value = claims.get("sid")
        if not isinstance(value, str) or not value:
            return None
        return value

    def write_signed_token(self, name: str, value: str, ttl: int) -> None:
        if ttl <= 0:
            self._cookies.pop(name, None)
            self._pending[name] = PendingCookie(name=name, value="", max_age=ttl)
            return

        token = self.sign(value, ttl)
        self._cookies[name] = token
        self._pending[name] = PendingCookie(name=name, value=token, max_age=ttl)

    def sign(self, value: str, ttl: int) -> str:
        """Encode value as a signed token expiring ttl seconds from now."""
        now = int(time.time())
        payload: Dict[str, Any] = {"sid": value, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)

    @property
    def pending(self) -> Dict[str, PendingCookie]:
        """Cookie writes not yet applied to a response."""
        return dict(self._pending)

    def apply(self, response) -> None:
        """
        Apply buffered cookie writes to a Starlette/FastAPI response.

        Args:
            response: Object exposing set_cookie() and delete_cookie()
        """
        for cookie in self._pending.values():
            if cookie.is_deletion:
                response.delete_cookie(
                    cookie.name,
                    path=self.path,
                    secure=self.secure,
                    httponly=True,
                    samesite="lax",
                )
            else:
                response.set_cookie(
                    cookie.name,
                    cookie.value,
                    max_age=cookie.max_age,
                    path=self.path,
                    secure=self.secure,
                    httponly=True,
                    samesite="lax",
                )
        self._pending.clear()
