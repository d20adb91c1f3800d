"""Translate GameSession events into wire-protocol packets.

The router lives *outside* GameSession so that translation rules are declared
in a single place and can evolve without touching core game logic. It is also
straight-forward to unit-test by feeding synthetic Event objects.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .events import Event, Category
from .common import PacketType
from .io_utils import board_rows
from .session import GameSession

logger = logging.getLogger(__name__)


class EventRouter:
    """Session-scoped helper that converts `Event` → `send()` calls for one client."""

    def __init__(self, session: GameSession, send: Callable[[PacketType, Any], bool]) -> None:
        self._s = session
        self._send = send

    # ------------------------------------------------------------------
    # Public dispatch entry
    # ------------------------------------------------------------------
    def __call__(self, ev: Event) -> None:  # GameSession calls router(event)
        try:
            self.dispatch(ev)
        except Exception:  # noqa: BLE001
            logger.exception("Event routing failed for %s", ev)

    def send_state(self) -> bool:
        """Push the masked client view; ships stay hidden."""
        view = self._s.get_client_view()
        return self._send(
            PacketType.GAME,
            {
                "type": "game_state",
                "board": board_rows(view["board"]),
                "remaining_shots": view["remaining_shots"],
                "is_game_over": view["is_game_over"],
                "has_won": view["has_won"],
            },
        )

    # ------------------------------------------------------------------
    # Internal dispatch
    # ------------------------------------------------------------------
    def dispatch(self, ev: Event) -> None:
        if ev.category is Category.TURN:
            self._handle_turn(ev)
        elif ev.category is Category.SYSTEM:
            self._handle_system(ev)
        else:  # pragma: no cover – unknown category
            logger.debug("Ignoring event %s", ev)

    def _handle_turn(self, ev: Event) -> None:
        t = ev.type
        if t == "shot":
            self._send(PacketType.GAME, {"type": "shot", **ev.payload["result"].to_dict()})
        elif t == "end":
            reveal = self._s.get_reveal_view()
            self._send(
                PacketType.GAME,
                {"type": "game_over", "board": board_rows(reveal["board"]), "has_won": reveal["has_won"]},
            )
        else:
            logger.debug("Unhandled TURN event: %s", ev)

    def _handle_system(self, ev: Event) -> None:
        if ev.type == "closed":
            logger.debug("Session %s closed (game over=%s)", ev.payload["session_id"], ev.payload["is_game_over"])
