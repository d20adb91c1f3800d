# io_utils.py
"""
Low-level helpers shared by the connection handler and the event router
–––––––––––––––––––––––––––––––––––––––––––––––––––––––––––––––––––––––
• send()        – frame + flush arbitrary payloads, False when the peer is gone
• board_rows()  – Board → [["EMPTY", "MISS", …], …] for JSON payloads
• error_obj()   – uniform payload for ERROR packets
"""

from typing import Any, BinaryIO, List
import logging

from .battleship import Board
from .common import PacketType, send_pkt

logger = logging.getLogger("salvo.io_utils")


def send(
    w: BinaryIO, seq: int, ptype: PacketType = PacketType.GAME, *, msg: str | None = None, obj: Any | None = None
) -> bool:
    logger.debug("send() start – ptype=%s seq=%d msg=%r obj=%r", ptype, seq, msg, obj)
    payload = obj if obj is not None else {"msg": msg}
    try:
        send_pkt(w, ptype, seq, payload)
        logger.debug("send() success – ptype=%s seq=%d", ptype, seq)
        return True
    except (BrokenPipeError, ConnectionResetError, ConnectionAbortedError):
        # peer closed or reset during send
        return False
    except (OSError, ValueError):
        # ValueError: writer already closed underneath us
        logger.exception("send() failed – seq=%d ptype=%s", seq, ptype)
        return False


def board_rows(board: Board) -> List[List[str]]:
    return [[cell.value for cell in row] for row in board]


def error_obj(code: str, msg: str) -> dict[str, str]:
    return {"type": "error", "code": code, "msg": msg}
