"""Registry of in-flight initiator sessions, keyed by opaque handles."""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .handshake import Session
from .types import InvalidStateError, SessionLimitError

logger = logging.getLogger(__name__)


# Default TTL: 10 minutes
DEFAULT_TTL = timedelta(minutes=10)


@dataclass
class RegistryConfig:
    """Configuration for the session registry."""
    ttl: timedelta = DEFAULT_TTL
    max_sessions: int = 1024


@dataclass
class _RegistryEntry:
    """Entry in the session registry with expiration."""
    session: Session
    expires_at: datetime


class SessionRegistry:
    """
    Thread-safe mapping from session handles to initiator sessions.

    Sessions are removed (and wiped) when taken for ``finish``, when they
    expire, or when discarded. Taking a session is atomic, so at most one
    caller ever advances a given session.
    """

    def __init__(self, config: Optional[RegistryConfig] = None) -> None:
        """Creates a new registry with the given configuration."""
        self._config = config or RegistryConfig()
        self._entries: dict[str, _RegistryEntry] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def register(self, session: Session) -> str:
        """
        Store a session and return its handle.

        Raises:
            SessionLimitError: If the registry is full after pruning.
        """
        with self._lock:
            if len(self._entries) >= self._config.max_sessions:
                self._prune_locked(datetime.now())
            if len(self._entries) >= self._config.max_sessions:
                raise SessionLimitError(self._config.max_sessions)

            handle = str(uuid.uuid4())
            self._entries[handle] = _RegistryEntry(
                session=session,
                expires_at=datetime.now() + self._config.ttl,
            )

        logger.debug("Registered session %s", handle)
        return handle

    def take(self, handle: str) -> Session:
        """
        Remove and return a session.

        Raises:
            InvalidStateError: If the handle is unknown, already taken or expired.
        """
        with self._lock:
            entry = self._entries.pop(handle, None)

        if entry is None:
            raise InvalidStateError("Unknown session handle")

        if entry.expires_at <= datetime.now():
            entry.session.fail()
            logger.info("Session %s expired before finish", handle)
            raise InvalidStateError("Session expired")

        return entry.session

    def discard(self, handle: str) -> None:
        """Remove a session without finishing it."""
        with self._lock:
            entry = self._entries.pop(handle, None)
        if entry is not None:
            entry.session.fail()

    def prune_expired(self) -> int:
        """Remove all expired sessions and return how many were removed."""
        with self._lock:
            removed = self._prune_locked(datetime.now())
        if removed:
            logger.info("Pruned %d expired sessions", removed)
        return removed

    def clear(self) -> None:
        """Remove all sessions."""
        with self._lock:
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            entry.session.fail()

    def _prune_locked(self, now: datetime) -> int:
        expired = [h for h, entry in self._entries.items() if entry.expires_at <= now]
        for handle in expired:
            self._entries.pop(handle).session.fail()
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._entries
