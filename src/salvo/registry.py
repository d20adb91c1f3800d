"""Keyed store of the active GameSession per connection.

The registry is an explicit object owned by the server, not module state.
Connection threads create, look up and discard their own entry concurrently,
so the mapping is guarded by a lock. Sessions themselves share nothing.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterator

from .session import GameSession, create_session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Map connection id → GameSession with create / get / discard."""

    def __init__(self, factory: Callable[[str], GameSession] = create_session) -> None:
        self._factory = factory
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def create(self, key: str) -> GameSession:
        """Discard any previous session for *key* and register a fresh one.

        Raises PlacementExhausted from the factory; *key* then has no session.
        """
        self.discard(key)
        session = self._factory(key)
        with self._lock:
            self._sessions[key] = session
        return session

    def get(self, key: str) -> GameSession | None:
        with self._lock:
            return self._sessions.get(key)

    def discard(self, key: str) -> bool:
        """Drop the session for *key*. Returns True if one was registered."""
        with self._lock:
            session = self._sessions.pop(key, None)
        if session is None:
            return False
        session.close()
        logger.info("Session for %s discarded (%d active)", key, len(self))
        return True

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._sessions))
