"""Per-address connection throttle.

An address may connect freely once per window. Further connections from the
same address inside the window are admitted only while the server has fewer
than ``max_connections`` active connections.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict

from . import config as _cfg

logger = logging.getLogger(__name__)


class ConnectionThrottle:
    def __init__(
        self,
        window: float = _cfg.THROTTLE_WINDOW,
        max_connections: int = _cfg.MAX_CONNECTIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window
        self.max_connections = max_connections
        self._clock = clock
        self._last_seen: Dict[str, float] = {}
        self._active = 0
        self._lock = threading.Lock()

    @property
    def active(self) -> int:
        return self._active

    def admit(self, address: str) -> bool:
        """Return True and count the connection if *address* may connect now."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            last = self._last_seen.get(address)
            if last is None or now - last > self.window:
                self._last_seen[address] = now
            elif self._active >= self.max_connections:
                logger.warning("Throttled connection from %s (%d active)", address, self._active)
                return False
            self._active += 1
            return True

    def _prune(self, now: float) -> None:
        # caller holds the lock
        stale = [addr for addr, seen in self._last_seen.items() if now - seen > self.window]
        for addr in stale:
            del self._last_seen[addr]

    def release(self) -> None:
        """Forget one admitted connection once it has closed."""
        with self._lock:
            if self._active > 0:
                self._active -= 1
