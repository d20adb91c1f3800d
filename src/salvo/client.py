"""Minimal line-based CLI client for the Salvo server.

Type ``NEW`` to start a game, ``FIRE B5`` (or ``FIRE 4 1``) to shoot and
``QUIT`` to leave. Server packets are printed as they arrive.
"""

from __future__ import annotations

import argparse
import logging
import socket
import sys
import threading
from typing import Any

from . import config as _cfg
from .common import (
    PacketType,
    FrameError,
    IncompleteError,
    recv_pkt,
    send_pkt,
    enable_encryption,
    DEFAULT_KEY,
)
from .coord_utils import format_coord

HOST = _cfg.DEFAULT_HOST
PORT = _cfg.DEFAULT_PORT

logger = logging.getLogger(__name__)

# One character per cell state when printing a board.
_CELL_CHARS = {"EMPTY": ".", "SHIP": "S", "HIT": "X", "MISS": "o"}


def _print_grid(rows: list[list[str]]) -> None:
    print("   " + " ".join(f"{i:>2}" for i in range(1, len(rows[0]) + 1)))
    for idx, row in enumerate(rows):
        label = chr(ord("A") + idx)
        print(f"{label:2} " + " ".join(f"{_CELL_CHARS.get(c, '?'):>2}" for c in row))


def _show(ptype: PacketType, obj: Any) -> None:
    if ptype is PacketType.ERROR:
        print(f"[ERR] {obj.get('code')}: {obj.get('msg')}")
        return
    kind = obj.get("type") if isinstance(obj, dict) else None
    if kind == "game_state":
        _print_grid(obj["board"])
        print(f"Shots remaining: {obj['remaining_shots']}")
    elif kind == "shot":
        c = obj["coordinates"]
        line = f"{format_coord(c['x'], c['y'])}: {obj['cell_state']}"
        if obj.get("ship_sunk"):
            line += f" – {obj['ship_sunk']} sunk!"
        print(f"{line} (shots remaining: {obj['remaining_shots']})")
    elif kind == "game_over":
        _print_grid(obj["board"])
        print("You WIN!" if obj["has_won"] else "Out of shots – you lose.")
        print("Type NEW to play again.")
    else:
        print(obj)


def _receiver(rfile) -> None:
    """Print every packet until the server goes away."""
    while True:
        try:
            ptype, _seq, obj = recv_pkt(rfile)
        except (IncompleteError, OSError):
            print("[INFO] Server closed the connection")
            return
        except FrameError as e:
            logger.error("Dropping connection after bad frame: %s", e)
            return
        _show(ptype, obj)


def main() -> None:  # pragma: no cover – interactive
    parser = argparse.ArgumentParser(description="Salvo client")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--secure", nargs="?", const=DEFAULT_KEY.hex(), metavar="HEX")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if (args.debug or _cfg.DEBUG) else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if args.secure:
        enable_encryption(bytes.fromhex(args.secure))

    with socket.create_connection((args.host, args.port)) as sock:
        rfile = sock.makefile("rb")
        wfile = sock.makefile("wb")
        threading.Thread(target=_receiver, args=(rfile,), daemon=True).start()
        seq = 0
        try:
            for line in sys.stdin:
                line = line.strip()
                if not line:
                    continue
                send_pkt(wfile, PacketType.GAME, seq, {"msg": line})
                seq += 1
                if line.upper() == "QUIT":
                    break
        except (KeyboardInterrupt, BrokenPipeError):
            pass


if __name__ == "__main__":  # pragma: no cover
    main()
