import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..carrier import TokenCarrier
from ..storage import NotFoundError, SessionStore, StoreError
from .errors import InvalidKeyError, NoSessionError, TimedOutError

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "GOSESSIONID"
DEFAULT_TIMEOUT = 60 * 60
DEFAULT_EXPIRATION = 60 * 60 * 24

KEY_SEPARATOR = ":"


def create_key(*parts: str) -> str:
    """Join key segments with the namespace separator."""
    return KEY_SEPARATOR.join(parts)


def session_key(session_id: str) -> str:
    """Store key holding the creation timestamp."""
    return create_key("session", session_id)


def last_activity_key(session_id: str) -> str:
    """Store key holding the last-activity timestamp."""
    return create_key("session", session_id, "last")


def tracked_keys_key(session_id: str) -> str:
    """Store key holding the colon-joined tracked key names."""
    return create_key("session", session_id, "keys")


def value_key(session_id: str, name: str) -> str:
    """Store key holding the value of one logical key."""
    return create_key("session", session_id, "key", name)


def generate_session_id() -> str:
    # 32 bytes = 256 bits from the OS CSPRNG
    return secrets.token_urlsafe(32)


@dataclass
class SessionInfo:
    """Snapshot of an active session."""
    session_id: str
    created_at: Optional[int]
    last_activity: int
    keys: List[str] = field(default_factory=list)


class SessionModule:
    def __init__(
        self,
        carrier: TokenCarrier,
        store: SessionStore,
        timeout: int = DEFAULT_TIMEOUT,
        expiration: int = DEFAULT_EXPIRATION,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], Optional[str]] = generate_session_id,
    ):
        """
        Initialize session module for one request.

        Args:
            carrier: Token accessor bound to the current request
            store: Shared key-value store
            timeout: Seconds of inactivity before a session is timed out (1 hour)
            expiration: TTL for the client token and every store entry (1 day)
            cookie_name: Name of the token carrying the session ID
            clock: Returns the current epoch time in seconds
            id_factory: Produces new session IDs, None on failure
        """
        if timeout <= 0 or expiration <= 0:
            raise ValueError("timeout and expiration must be positive")

        self.carrier = carrier
        self.store = store
        self.timeout = timeout
        self.expiration = expiration
        self.cookie_name = cookie_name
        self.clock = clock
        self.id_factory = id_factory

    @property
    def session_id(self) -> Optional[str]:
        """Session ID carried by the current request, if any."""
        return self.carrier.read_signed_token(self.cookie_name)

    async def set(self, name: str, value: str) -> bool:
        """
        Store value under name, creating a session if needed.

        Args:
            name: Logical key name
            value: Value to store

        Returns:
            False if a new session ID could not be generated, True otherwise

        Raises:
            InvalidKeyError: If name is empty or contains the separator
            StoreError: If any underlying write fails

        Logic:
        1. Resolve the current session ID
        2. If missing or timed out, purge the old record and issue a new ID
        3. Write the value, refresh last activity, track the key name
        4. Re-issue the token so its expiry slides with the store entries
        """
        self._validate_key(name)

        session_id = self.session_id
        if session_id is None:
            session_id = await self._start_session()
            if session_id is None:
                return False
        elif await self._is_timed_out(session_id):
            logger.info(f"Session {session_id[:8]} timed out, rotating")
            await self._purge(session_id)
            session_id = await self._start_session()
            if session_id is None:
                return False

        await self.store.set(value_key(session_id, name), value, self.expiration)
        await self._touch(session_id)
        await self._track_key(session_id, name)
        self.carrier.write_signed_token(self.cookie_name, session_id, self.expiration)
        return True

    async def get(self, name: str) -> str:
        """
        Get the value stored under name.

        Raises:
            NoSessionError: If the request carries no session token
            TimedOutError: If the session exceeded the inactivity window
            NotFoundError: If name was never set or already expired
            StoreError: If the backend cannot be reached
        """
        session_id = self.session_id
        if session_id is None:
            raise NoSessionError()
        if await self._is_timed_out(session_id):
            raise TimedOutError(session_id)

        await self._touch(session_id)
        return await self.store.get(value_key(session_id, name))

    async def delete(self, *names: str) -> None:
        """
        Delete the values stored under names.

        A timed-out session is not refreshed, so deleting cannot resurrect
        it. Store failures are logged and not raised.
        """
        session_id = self.session_id
        if session_id is None:
            return

        try:
            active = not await self._is_timed_out(session_id)
            if active:
                await self._touch(session_id)

            if names:
                await self.store.delete(*(value_key(session_id, name) for name in names))
                if active:
                    await self._untrack_keys(session_id, names)
        except StoreError as e:
            logger.warning(f"Failed to delete keys from session {session_id[:8]}: {e}")

    async def clear(self) -> None:
        """Delete every value tracked under the current session."""
        session_id = self.session_id
        if session_id is None:
            return

        try:
            names = await self._tracked_keys(session_id)
        except StoreError as e:
            logger.warning(f"Failed to read tracked keys of session {session_id[:8]}: {e}")
            return

        await self.delete(*names)

    async def destroy(self) -> None:
        """
        End the session: remove the whole record and expire the token.

        Store failures are logged and not raised; the token is expired
        regardless.
        """
        session_id = self.session_id
        if session_id is None:
            return

        try:
            await self._purge(session_id)
        except StoreError as e:
            logger.warning(f"Failed to purge session {session_id[:8]}: {e}")
        finally:
            self.carrier.write_signed_token(self.cookie_name, "", -1)

        logger.info(f"Session {session_id[:8]} destroyed")

    async def is_timed_out(self) -> bool:
        """Check whether the current session is missing or inactive."""
        session_id = self.session_id
        if session_id is None:
            return True
        return await self._is_timed_out(session_id)

    async def keys(self) -> List[str]:
        """Tracked key names of the active session, in insertion order."""
        session_id = self.session_id
        if session_id is None or await self._is_timed_out(session_id):
            return []
        return await self._tracked_keys(session_id)

    async def info(self) -> Optional[SessionInfo]:
        """
        Describe the active session without refreshing it.

        Returns:
            SessionInfo, or None if there is no active session
        """
        session_id = self.session_id
        if session_id is None:
            return None

        last_activity = await self._last_activity(session_id)
        if last_activity is None or self._expired(last_activity):
            return None

        try:
            created_at: Optional[int] = int(await self.store.get(session_key(session_id)))
        except (NotFoundError, ValueError):
            created_at = None

        return SessionInfo(
            session_id=session_id,
            created_at=created_at,
            last_activity=last_activity,
            keys=await self._tracked_keys(session_id),
        )

    def _now(self) -> int:
        return int(self.clock())

    def _expired(self, last_activity: int) -> bool:
        return last_activity + self.timeout < self._now()

    @staticmethod
    def _validate_key(name: str) -> None:
        if not name:
            raise InvalidKeyError("Key name must not be empty")
        if KEY_SEPARATOR in name:
            raise InvalidKeyError(f"Key name must not contain '{KEY_SEPARATOR}': {name!r}")

    def _new_session_id(self) -> Optional[str]:
        session_id = self.id_factory()
        if not session_id:
            logger.error("Session ID generation failed")
            return None
        return session_id

    async def _start_session(self) -> Optional[str]:
        """Issue a new session ID and write its creation/last-activity pair."""
        session_id = self._new_session_id()
        if session_id is None:
            return None

        self.carrier.write_signed_token(self.cookie_name, session_id, self.expiration)

        now = str(self._now())
        await self.store.set(session_key(session_id), now, self.expiration)
        await self.store.set(last_activity_key(session_id), now, self.expiration)

        logger.info(f"Session {session_id[:8]} created")
        return session_id

    async def _purge(self, session_id: str) -> None:
        """Delete every store entry belonging to session_id."""
        names = await self._tracked_keys(session_id)
        await self.store.delete(
            *(value_key(session_id, name) for name in names),
            tracked_keys_key(session_id),
            last_activity_key(session_id),
            session_key(session_id),
        )

    async def _last_activity(self, session_id: str) -> Optional[int]:
        try:
            raw = await self.store.get(last_activity_key(session_id))
        except NotFoundError:
            return None

        try:
            return int(raw)
        except ValueError:
            logger.debug(f"Unparsable last activity for session {session_id[:8]}: {raw!r}")
            return None

    async def _is_timed_out(self, session_id: str) -> bool:
        last_activity = await self._last_activity(session_id)
        if last_activity is None:
            return True
        return self._expired(last_activity)

    async def _touch(self, session_id: str) -> None:
        await self.store.set(last_activity_key(session_id), str(self._now()), self.expiration)

    async def _tracked_keys(self, session_id: str) -> List[str]:
        try:
            raw = await self.store.get(tracked_keys_key(session_id))
        except NotFoundError:
            return []

        # dict preserves insertion order while dropping duplicates
        return list(dict.fromkeys(name for name in raw.split(KEY_SEPARATOR) if name))

    async def _track_key(self, session_id: str, name: str) -> None:
        names = await self._tracked_keys(session_id)
        if name not in names:
            names.append(name)

        # Rewritten even when unchanged so the list TTL slides with the values
        await self.store.set(
            tracked_keys_key(session_id), KEY_SEPARATOR.join(names), self.expiration
        )

    async def _untrack_keys(self, session_id: str, removed) -> None:
        names = await self._tracked_keys(session_id)
        removed = set(removed)
        remaining = [name for name in names if name not in removed]

        if len(remaining) == len(names):
            return
        if remaining:
            await self.store.set(
                tracked_keys_key(session_id), KEY_SEPARATOR.join(remaining), self.expiration
            )
        else:
            await self.store.delete(tracked_keys_key(session_id))
