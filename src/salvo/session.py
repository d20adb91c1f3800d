"""Single-player game session for the Salvo server.

A :class:`GameSession` owns the authoritative board, fleet and shot budget of
one game. It is created when a client asks for a new game, accepts shots until
the game is over, and is thrown away by the registry afterwards (or when the
owning connection goes away).

Life-cycle
----------
Active   accepting shots; ship cells are hidden from the client view
Over     terminal; ``has_won`` is fixed and every further shot is rejected

The only transition, Active → Over, happens inside :meth:`GameSession.apply_shot`.

Two read-only projections are offered on top of the authoritative state:

* :meth:`GameSession.get_client_view` – SHIP cells masked as EMPTY, used for
  every pre-terminal update.
* :meth:`GameSession.get_reveal_view` – every ship cell visible, sent once
  when the game is over.
"""

from __future__ import annotations

import copy
import logging
import random
from typing import Any, Callable, List

from .battleship import (
    GameState,
    ShipPlacer,
    ShotResult,
    CellState,
    Board,
    apply_shot,
    empty_board,
)
from .events import Event, Category

logger = logging.getLogger(__name__)


class GameSession:
    """Authoritative state of one game, owned by exactly one connection."""

    def __init__(
        self,
        session_id: str,
        *,
        rng: random.Random | None = None,
        placer: ShipPlacer | None = None,
    ) -> None:
        """Place a fresh fleet and start the game.

        Raises:
            PlacementExhausted: no valid layout was found; no session exists.
        """
        board = empty_board()
        placer = placer if placer is not None else ShipPlacer(rng)
        ships = placer.place(board)
        self._state = GameState(session_id=session_id, board=board, ships=ships)
        self._subs: List[Callable[[Event], None]] = []
        self.closed = False

    # -------------------- read-only accessors --------------------
    @property
    def id(self) -> str:
        return self._state.session_id

    @property
    def remaining_shots(self) -> int:
        return self._state.remaining_shots

    @property
    def is_game_over(self) -> bool:
        return self._state.is_game_over

    @property
    def has_won(self) -> bool:
        return self._state.has_won

    # -------------------- events --------------------
    def subscribe(self, callback: Callable[[Event], None]) -> None:
        self._subs.append(callback)

    def _emit(self, ev: Event) -> None:
        for cb in list(self._subs):
            cb(ev)

    # -------------------- shots --------------------
    def apply_shot(self, coordinates: tuple[int, int]) -> ShotResult:
        """Fire at *coordinates* (x, y).

        Raises OutOfBounds, GameAlreadyOver or DuplicateShot without touching
        the session when the shot is rejected.
        """
        result = apply_shot(self._state, coordinates)
        logger.debug(
            "Session %s: shot %s -> %s (sunk=%s, remaining=%d)",
            self.id,
            tuple(result.coordinates),
            result.cell_state.value,
            result.ship_sunk.value if result.ship_sunk else None,
            result.remaining_shots,
        )
        self._emit(Event(Category.TURN, "shot", {"session_id": self.id, "result": result}))
        if result.game_over:
            logger.info("Session %s: game over (won=%s)", self.id, self.has_won)
            self._emit(
                Event(
                    Category.TURN,
                    "end",
                    {"session_id": self.id, "has_won": self.has_won, "shots": len(self._state.shots_fired)},
                )
            )
        return result

    # -------------------- projections --------------------
    def get_state(self) -> GameState:
        """Full server-side snapshot, ships included. Callers get a copy."""
        return copy.deepcopy(self._state)

    def get_client_view(self) -> dict[str, Any]:
        board: Board = [
            [CellState.EMPTY if cell is CellState.SHIP else cell for cell in row] for row in self._state.board
        ]
        return {
            "board": board,
            "remaining_shots": self._state.remaining_shots,
            "is_game_over": self._state.is_game_over,
            "has_won": self._state.has_won,
        }

    def get_reveal_view(self) -> dict[str, Any]:
        board: Board = [list(row) for row in self._state.board]
        for ship in self._state.ships:
            for x, y in ship.cells():
                if board[y][x] is not CellState.HIT:
                    board[y][x] = CellState.SHIP
        return {"board": board, "has_won": self._state.has_won}

    # -------------------- teardown --------------------
    def close(self) -> None:
        """Notify subscribers that the session is being dropped and detach them."""
        if self.closed:
            return
        self.closed = True
        self._emit(
            Event(Category.SYSTEM, "closed", {"session_id": self.id, "is_game_over": self._state.is_game_over})
        )
        self._subs.clear()


def create_session(session_id: str, *, rng: random.Random | None = None) -> GameSession:
    """Build a new session with a freshly placed fleet.

    Raises:
        PlacementExhausted: propagated from the placer; nothing is created.
    """
    session = GameSession(session_id, rng=rng)
    logger.info("Session %s created", session_id)
    return session
