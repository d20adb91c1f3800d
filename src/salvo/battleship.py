"""
battleship.py

Core data structures and rules for the single-player Battleship server:
 - CellState, ShipType and Orientation enums plus the fixed fleet table
 - ShipPosition / Coordinates / ShotResult records and the GameState they live in
 - ShipPlacer, which lays out a random fleet with a one-cell buffer around every ship
 - apply_shot(), which validates a shot and applies it to a GameState

The board is a list of rows and is always addressed as ``board[y][x]``.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Iterable, NamedTuple

from . import config as _cfg

BOARD_SIZE = _cfg.BOARD_SIZE
INITIAL_SHOTS = _cfg.INITIAL_SHOTS

logger = logging.getLogger(__name__)


class CellState(str, enum.Enum):
    """State of a single board cell."""

    EMPTY = "EMPTY"
    SHIP = "SHIP"  # server-side only until the game is over
    HIT = "HIT"
    MISS = "MISS"


class Orientation(str, enum.Enum):
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"


class ShipType(str, enum.Enum):
    CARRIER = "CARRIER"
    BATTLESHIP = "BATTLESHIP"
    CRUISER = "CRUISER"
    SUBMARINE = "SUBMARINE"
    DESTROYER = "DESTROYER"
    PATROL = "PATROL"

    @property
    def size(self) -> int:
        return SHIP_CONFIGS[self][0]


# (size, count) per ship type, in placement order.
SHIP_CONFIGS: dict[ShipType, tuple[int, int]] = {
    ShipType.CARRIER: (5, 1),
    ShipType.BATTLESHIP: (4, 1),
    ShipType.CRUISER: (3, 1),
    ShipType.SUBMARINE: (3, 1),
    ShipType.DESTROYER: (2, 3),
    ShipType.PATROL: (1, 3),
}

# One entry per ship instance: 10 ships, 24 cells.
FLEET: list[ShipType] = [ship_type for ship_type, (_, count) in SHIP_CONFIGS.items() for _ in range(count)]

Board = list[list[CellState]]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class GameError(Exception):
    """Base for all game-rule failures."""


class PlacementExhausted(GameError):
    """Raised when no valid fleet layout was found within the attempt caps."""


class ShotError(GameError):
    """Base for rejected shots. The game state is left untouched."""

    code = "INVALID_SHOT"


class OutOfBounds(ShotError):
    code = "OUT_OF_BOUNDS"


class GameAlreadyOver(ShotError):
    code = "GAME_ALREADY_OVER"


class DuplicateShot(ShotError):
    code = "DUPLICATE_SHOT"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class Coordinates(NamedTuple):
    x: int
    y: int

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}


@dataclass
class ShipPosition:
    """A placed ship. Only ``hits`` changes after placement."""

    type: ShipType
    x: int
    y: int
    orientation: Orientation
    hits: int = 0

    @property
    def size(self) -> int:
        return self.type.size

    @property
    def sunk(self) -> bool:
        return self.hits == self.size

    def cells(self) -> list[Coordinates]:
        if self.orientation is Orientation.HORIZONTAL:
            return [Coordinates(self.x + i, self.y) for i in range(self.size)]
        return [Coordinates(self.x, self.y + i) for i in range(self.size)]

    def contains(self, x: int, y: int) -> bool:
        if self.orientation is Orientation.HORIZONTAL:
            return y == self.y and self.x <= x < self.x + self.size
        return x == self.x and self.y <= y < self.y + self.size

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "x": self.x,
            "y": self.y,
            "orientation": self.orientation.value,
            "hits": self.hits,
        }


@dataclass(frozen=True)
class ShotResult:
    coordinates: Coordinates
    cell_state: CellState
    ship_sunk: ShipType | None
    game_over: bool
    remaining_shots: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinates": self.coordinates.to_dict(),
            "cell_state": self.cell_state.value,
            "ship_sunk": self.ship_sunk.value if self.ship_sunk else None,
            "game_over": self.game_over,
            "remaining_shots": self.remaining_shots,
        }


@dataclass
class GameState:
    """Authoritative per-session state. Mutated only by :func:`apply_shot`."""

    session_id: str
    board: Board
    ships: list[ShipPosition]
    remaining_shots: int = INITIAL_SHOTS
    shots_fired: set[Coordinates] = field(default_factory=set)
    is_game_over: bool = False
    has_won: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "board": [[cell.value for cell in row] for row in self.board],
            "ships": [ship.to_dict() for ship in self.ships],
            "remaining_shots": self.remaining_shots,
            "shots_fired": [c.to_dict() for c in sorted(self.shots_fired)],
            "is_game_over": self.is_game_over,
            "has_won": self.has_won,
        }


# ---------------------------------------------------------------------------
# Board helpers
# ---------------------------------------------------------------------------


def empty_board(size: int = BOARD_SIZE) -> Board:
    """Return a fresh *size*×*size* board of EMPTY cells."""
    return [[CellState.EMPTY for _ in range(size)] for _ in range(size)]


def clear_board(board: Board) -> None:
    for row in board:
        for x in range(len(row)):
            row[x] = CellState.EMPTY


def in_bounds(x: int, y: int, size: int = BOARD_SIZE) -> bool:
    return 0 <= x < size and 0 <= y < size


def can_place_ship(board: Board, ship: ShipPosition) -> bool:
    """Return True if *ship* fits on *board* without touching another ship.

    The ship's bounding box grown by one cell on every side must not contain
    a SHIP cell, which rules out overlap and contact (diagonal included).
    """
    size = len(board)
    if ship.x < 0 or ship.y < 0:
        return False
    if ship.orientation is Orientation.HORIZONTAL and ship.x + ship.size > size:
        return False
    if ship.orientation is Orientation.VERTICAL and ship.y + ship.size > size:
        return False

    for i in range(-1, ship.size + 1):
        for j in (-1, 0, 1):
            if ship.orientation is Orientation.HORIZONTAL:
                cx, cy = ship.x + i, ship.y + j
            else:
                cx, cy = ship.x + j, ship.y + i
            if in_bounds(cx, cy, size) and board[cy][cx] is CellState.SHIP:
                return False
    return True


def mark_ship(board: Board, ship: ShipPosition) -> None:
    for x, y in ship.cells():
        board[y][x] = CellState.SHIP


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


class ShipPlacer:
    """Randomly lays out a fleet on an empty board.

    Each ship gets ``ship_attempts`` random tries. If any ship runs out, the
    board is wiped and the whole fleet starts over, at most ``board_attempts``
    times, after which :class:`PlacementExhausted` is raised.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        fleet: Iterable[ShipType] | None = None,
        ship_attempts: int | None = None,
        board_attempts: int | None = None,
    ) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.fleet = list(fleet) if fleet is not None else list(FLEET)
        self.ship_attempts = _cfg.SHIP_ATTEMPTS if ship_attempts is None else ship_attempts
        self.board_attempts = _cfg.BOARD_ATTEMPTS if board_attempts is None else board_attempts

    def place(self, board: Board) -> list[ShipPosition]:
        """Mark the fleet on *board* in place and return the placed ships."""
        for attempt in range(1, self.board_attempts + 1):
            ships = self._place_fleet(board)
            if ships is not None:
                logger.debug("Fleet of %d ships placed on attempt %d", len(ships), attempt)
                return ships
            logger.debug("Placement attempt %d/%d failed – clearing board", attempt, self.board_attempts)
            clear_board(board)
        logger.error("Ship placement exhausted after %d attempts", self.board_attempts)
        raise PlacementExhausted(f"could not place fleet after {self.board_attempts} attempts")

    def random_position(self, ship_type: ShipType, size: int = BOARD_SIZE) -> ShipPosition:
        orientation = Orientation.HORIZONTAL if self.rng.random() < 0.5 else Orientation.VERTICAL
        return ShipPosition(
            type=ship_type,
            x=self.rng.randrange(size),
            y=self.rng.randrange(size),
            orientation=orientation,
        )

    def _place_fleet(self, board: Board) -> list[ShipPosition] | None:
        ships: list[ShipPosition] = []
        for ship_type in self.fleet:
            ship = self._place_one(board, ship_type)
            if ship is None:
                return None
            ships.append(ship)
        return ships

    def _place_one(self, board: Board, ship_type: ShipType) -> ShipPosition | None:
        for _ in range(self.ship_attempts):
            candidate = self.random_position(ship_type, len(board))
            if can_place_ship(board, candidate):
                mark_ship(board, candidate)
                return candidate
        logger.debug("No room for %s after %d tries", ship_type.value, self.ship_attempts)
        return None


# ---------------------------------------------------------------------------
# Shots
# ---------------------------------------------------------------------------


def find_ship(ships: Iterable[ShipPosition], x: int, y: int) -> ShipPosition | None:
    for ship in ships:
        if ship.contains(x, y):
            return ship
    return None


def apply_shot(state: GameState, coordinates: tuple[int, int]) -> ShotResult:
    """Validate and apply one shot to *state*.

    Raises OutOfBounds, GameAlreadyOver or DuplicateShot before anything is
    mutated. A miss costs one shot, a hit is free.
    """
    coords = Coordinates(*coordinates)
    x, y = coords
    size = len(state.board)
    if not in_bounds(x, y, size):
        raise OutOfBounds(f"({x}, {y}) is outside the {size}x{size} board")
    if state.is_game_over:
        raise GameAlreadyOver("game is already over – start a new game")
    if coords in state.shots_fired:
        raise DuplicateShot(f"({x}, {y}) has already been fired at")

    state.shots_fired.add(coords)
    ship_sunk: ShipType | None = None
    if state.board[y][x] is CellState.SHIP:
        cell_state = CellState.HIT
        ship = find_ship(state.ships, x, y)
        if ship is not None:
            ship.hits += 1
            if ship.sunk:
                ship_sunk = ship.type
    else:
        cell_state = CellState.MISS
        state.remaining_shots -= 1
    state.board[y][x] = cell_state

    state.has_won = all(ship.sunk for ship in state.ships)
    state.is_game_over = state.has_won or state.remaining_shots <= 0

    return ShotResult(
        coordinates=coords,
        cell_state=cell_state,
        ship_sunk=ship_sunk,
        game_over=state.is_game_over,
        remaining_shots=state.remaining_shots,
    )
