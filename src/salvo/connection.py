"""Per-connection handler for the Salvo server.

Each accepted socket is served by one :class:`ClientConnection` running in its
own thread. The handler owns the client's entry in the shared
:class:`~salvo.registry.SessionRegistry` and speaks a small command protocol:

Client → Server (GAME packets, ``{"msg": <line>}``)
---------------------------------------------------
NEW              Start a new game, discarding any game in progress
FIRE <coord>     Shoot at A1–J10
FIRE <x> <y>     Shoot at raw zero-based coordinates
QUIT             Close the connection

Server → Client
---------------
game_state       Board with ships hidden, remaining shots, over/won flags
shot             Result of an accepted shot
game_over        Board with every ship revealed; the session is then discarded
ERROR packets    ``{"type": "error", "code": ..., "msg": ...}`` for rejected input
"""

from __future__ import annotations

import contextlib
import logging
import socket
from typing import Any, Callable

from . import config as _cfg
from .battleship import Coordinates, PlacementExhausted, ShotError
from .commands import CommandParseError, FireCommand, NewGameCommand, QuitCommand, parse_command
from .common import FrameError, IncompleteError, PacketType, recv_pkt
from .io_utils import error_obj, send as io_send
from .registry import SessionRegistry
from .router import EventRouter

logger = logging.getLogger(__name__)


class ClientConnection:
    """Serve one client until it quits, disconnects or goes idle."""

    def __init__(
        self,
        sock: socket.socket,
        conn_id: str,
        registry: SessionRegistry,
        *,
        idle_timeout: float = _cfg.IDLE_TIMEOUT,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.sock = sock
        self.conn_id = conn_id
        self.registry = registry
        self.io_seq = 0
        self._on_close = on_close
        if idle_timeout > 0:
            sock.settimeout(idle_timeout)
        self._r = sock.makefile("rb")
        self._w = sock.makefile("wb")

    # -------------------- helpers --------------------
    def send(self, ptype: PacketType, obj: Any) -> bool:
        ok = io_send(self._w, self.io_seq, ptype, obj=obj)
        self.io_seq += 1
        return ok

    def reject(self, code: str, msg: str) -> None:
        logger.info("%s: rejected (%s) %s", self.conn_id, code, msg)
        self.send(PacketType.ERROR, error_obj(code, msg))

    # -------------------- main loop --------------------
    def serve(self) -> None:
        logger.info("%s: connected", self.conn_id)
        try:
            while True:
                try:
                    ptype, _seq, obj = recv_pkt(self._r)
                except IncompleteError:
                    logger.debug("%s: peer closed the stream", self.conn_id)
                    break
                except socket.timeout:
                    logger.info("%s: idle timeout", self.conn_id)
                    break
                except FrameError as e:
                    logger.warning("%s: bad frame – %s", self.conn_id, e)
                    break
                except OSError as e:
                    logger.debug("%s: socket error – %s", self.conn_id, e)
                    break
                if ptype is not PacketType.GAME:
                    continue
                line = obj.get("msg", "") if isinstance(obj, dict) else obj
                if not self.handle_line(line):
                    break
        finally:
            self.close()

    def handle_line(self, line: Any) -> bool:
        """Execute one command line. Returns False when the client asked to quit."""
        try:
            cmd = parse_command(line)
        except CommandParseError as e:
            self.reject("BAD_COMMAND", str(e))
            return True
        if isinstance(cmd, QuitCommand):
            return False
        if isinstance(cmd, NewGameCommand):
            self._new_game()
        elif isinstance(cmd, FireCommand):
            self._fire(cmd)
        return True

    # -------------------- commands --------------------
    def _new_game(self) -> None:
        try:
            session = self.registry.create(self.conn_id)
        except PlacementExhausted:
            logger.exception("%s: could not start a new game", self.conn_id)
            self.reject("PLACEMENT_EXHAUSTED", "Failed to start new game")
            return
        router = EventRouter(session, self.send)
        session.subscribe(router)
        router.send_state()

    def _fire(self, cmd: FireCommand) -> None:
        session = self.registry.get(self.conn_id)
        if session is None:
            self.reject("NO_ACTIVE_GAME", "No active game found. Please start a new game.")
            return
        try:
            result = session.apply_shot(Coordinates(cmd.x, cmd.y))
        except ShotError as e:
            self.reject(e.code, str(e))
            return
        if result.game_over:
            # game_over (with the reveal) has been sent by the router already
            self.registry.discard(self.conn_id)

    # -------------------- teardown --------------------
    def close(self) -> None:
        self.registry.discard(self.conn_id)
        for f in (self._w, self._r):
            with contextlib.suppress(OSError):
                f.close()
        with contextlib.suppress(OSError):
            self.sock.shutdown(socket.SHUT_RDWR)
        self.sock.close()
        logger.info("%s: connection closed", self.conn_id)
        if self._on_close is not None:
            self._on_close()
            self._on_close = None
