import logging
import random
import socket
import threading

import pytest

from salvo.battleship import CellState, Coordinates
from salvo.common import PacketType, disable_encryption, recv_pkt, send_pkt
from salvo.connection import ClientConnection
from salvo.registry import SessionRegistry
from salvo.session import GameSession

# Suppress INFO & DEBUG logs from connection threads during tests
logging.basicConfig(level=logging.WARNING)


def ship_cells(session: GameSession) -> list[Coordinates]:
    """Every ship cell of *session*, read from the server-side snapshot."""
    return [cell for ship in session.get_state().ships for cell in ship.cells()]


def water_cells(session: GameSession) -> list[Coordinates]:
    """Cells that are guaranteed misses, in row-major order."""
    board = session.get_state().board
    return [Coordinates(x, y) for y, row in enumerate(board) for x, cell in enumerate(row) if cell is CellState.EMPTY]


class TestClient:
    """Simple client wrapper for tests over the framed protocol."""

    __test__ = False  # not a test class

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self.sock.settimeout(2.0)
        self._r = sock.makefile("rb")
        self._w = sock.makefile("wb")
        self._seq = 0

    def send(self, msg: str) -> None:
        """Send a framed GAME packet carrying one command line."""
        send_pkt(self._w, PacketType.GAME, self._seq, {"msg": msg.strip()})
        self._seq += 1

    def recv(self):
        """Return the next (ptype, obj) pair from the server."""
        ptype, _seq, obj = recv_pkt(self._r)
        return ptype, obj

    def close(self) -> None:
        for f in (self._w, self._r):
            f.close()
        self.sock.close()


@pytest.fixture(autouse=True)
def _plain_framing():
    """Every test starts and ends with encryption switched off."""
    disable_encryption()
    yield
    disable_encryption()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1337)


@pytest.fixture
def session(rng: random.Random) -> GameSession:
    return GameSession("test-session", rng=rng)


@pytest.fixture
def connection_factory():
    """Factory that serves a ClientConnection over a socketpair in a thread.

    Returns (client, handler, thread, registry).
    """
    opened: list[tuple[TestClient, threading.Thread]] = []

    def _factory(registry: SessionRegistry | None = None, conn_id: str = "C1"):
        registry = registry if registry is not None else SessionRegistry(
            lambda key: GameSession(key, rng=random.Random(7))
        )
        srv, cli = socket.socketpair()
        handler = ClientConnection(srv, conn_id, registry, idle_timeout=5.0)
        thread = threading.Thread(target=handler.serve, daemon=True)
        thread.start()
        client = TestClient(cli)
        opened.append((client, thread))
        return client, handler, thread, registry

    yield _factory

    for client, thread in opened:
        try:
            client.close()
        except OSError:
            pass
        thread.join(timeout=2.0)
