"""Salvo game server entry point (`python -m salvo.server`).

Every accepted connection gets its own daemon thread running a
:class:`~salvo.connection.ClientConnection`. Connections share nothing except
the :class:`~salvo.registry.SessionRegistry` and the connection throttle.
"""

from __future__ import annotations

import argparse
import contextlib
import itertools
import logging
import os
import signal
import socket
import sys
import threading

from . import config as _cfg
from .common import PacketType, enable_encryption, DEFAULT_KEY
from .connection import ClientConnection
from .io_utils import error_obj, send as io_send
from .registry import SessionRegistry
from .throttle import ConnectionThrottle

HOST = _cfg.DEFAULT_HOST
PORT = _cfg.DEFAULT_PORT

# Initialize module-level logger
logger = logging.getLogger(__name__)


class SalvoServer:
    """Accept loop plus per-connection worker threads."""

    def __init__(
        self,
        host: str = HOST,
        port: int = PORT,
        *,
        registry: SessionRegistry | None = None,
        throttle: ConnectionThrottle | None = None,
        idle_timeout: float = _cfg.IDLE_TIMEOUT,
    ) -> None:
        self.host = host
        self.port = port
        self.registry = registry if registry is not None else SessionRegistry()
        self.throttle = throttle if throttle is not None else ConnectionThrottle()
        self.idle_timeout = idle_timeout
        self._conn_counter = itertools.count(1)
        self._sock: socket.socket | None = None
        self._stopped = threading.Event()

    def bind(self) -> tuple[str, int]:
        """Open the listening socket; returns the bound address (useful with port 0)."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.host, self.port))
        sock.listen()
        self._sock = sock
        addr = sock.getsockname()
        self.port = addr[1]
        return addr[0], addr[1]

    def serve_forever(self) -> None:
        if self._sock is None:
            self.bind()
        assert self._sock is not None
        logger.info("Salvo server listening on %s:%d", self.host, self.port)
        while not self._stopped.is_set():
            try:
                conn, addr = self._sock.accept()
            except OSError:
                if self._stopped.is_set():
                    break
                raise
            self._accept(conn, addr)

    def _accept(self, conn: socket.socket, addr: tuple[str, int]) -> None:
        logger.info("Connection from %s:%d", addr[0], addr[1])
        if not self.throttle.admit(addr[0]):
            with conn, conn.makefile("wb") as w:
                io_send(w, 0, PacketType.ERROR, obj=error_obj("TOO_MANY_CONNECTIONS", "Too many connections"))
            return
        conn_id = f"C{next(self._conn_counter)}@{addr[0]}:{addr[1]}"
        try:
            handler = ClientConnection(
                conn,
                conn_id,
                self.registry,
                idle_timeout=self.idle_timeout,
                on_close=self.throttle.release,
            )
        except OSError:
            logger.exception("%s: could not set up connection", conn_id)
            self.throttle.release()
            with contextlib.suppress(OSError):
                conn.close()
            return
        threading.Thread(target=handler.serve, name=conn_id, daemon=True).start()

    def shutdown(self) -> None:
        self._stopped.set()
        if self._sock is not None:
            # shutdown() wakes a thread blocked in accept(); close() alone does not on Linux
            with contextlib.suppress(OSError):
                self._sock.shutdown(socket.SHUT_RDWR)
            with contextlib.suppress(OSError):
                self._sock.close()


def main() -> None:  # pragma: no cover – side-effect entrypoint
    parser = argparse.ArgumentParser(description="Salvo server")
    parser.add_argument("--host", default=HOST, help="Address to bind to.")
    parser.add_argument("--port", type=int, default=PORT, help="Port to listen on.")
    parser.add_argument(
        "--secure",
        nargs="?",
        const=DEFAULT_KEY.hex(),
        metavar="HEX",
        help="Enable AES-GCM payload encryption (optionally with a hex key).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity.",
    )
    parser.add_argument(
        "-s",
        "--silent",
        "-q",
        "--quiet",
        dest="silent",
        action="store_true",
        help="Suppress all output.",
    )

    args = parser.parse_args()

    if args.debug:
        os.environ["SALVO_DEBUG"] = "1"

    # Determine log level from CLI flags:
    if args.silent:
        level = logging.ERROR
    elif args.debug or _cfg.DEBUG:
        level = logging.DEBUG
    elif args.verbose >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.secure:
        enable_encryption(bytes.fromhex(args.secure))
        logger.info("AES-GCM encryption ENABLED")

    server = SalvoServer(args.host, args.port)

    def _shutdown(signum, frame):
        # ensure the "C" echo doesn't get stuck on our log line
        sys.stderr.write("\n")
        logger.info("Received signal %s, shutting down", signum)
        server.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    server.serve_forever()


if __name__ == "__main__":  # pragma: no cover
    main()
