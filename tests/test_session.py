"""GameSession behaviour: shot budget, terminal states and board projections."""

from __future__ import annotations

import random

import pytest

from salvo.battleship import (
    INITIAL_SHOTS,
    CellState,
    DuplicateShot,
    GameAlreadyOver,
    OutOfBounds,
    PlacementExhausted,
    ShipPlacer,
    ShipType,
)
from salvo.events import Category
from salvo.session import GameSession, create_session
from tests.conftest import ship_cells, water_cells


def test_fresh_session_is_active(session: GameSession) -> None:
    assert session.id == "test-session"
    assert session.remaining_shots == INITIAL_SHOTS
    assert not session.is_game_over
    assert not session.has_won
    state = session.get_state()
    assert state.shots_fired == set()
    assert sum(cell is CellState.SHIP for row in state.board for cell in row) == 24


def test_twenty_five_misses_end_the_game(session: GameSession) -> None:
    misses = water_cells(session)[:INITIAL_SHOTS + 1]
    for i, coords in enumerate(misses[:INITIAL_SHOTS], start=1):
        result = session.apply_shot(coords)
        assert result.cell_state is CellState.MISS
        assert result.remaining_shots == INITIAL_SHOTS - i
        assert result.game_over == (i == INITIAL_SHOTS)
    assert session.is_game_over
    assert not session.has_won
    with pytest.raises(GameAlreadyOver):
        session.apply_shot(misses[INITIAL_SHOTS])


def test_patrol_sinks_on_single_hit(session: GameSession) -> None:
    patrol = next(s for s in session.get_state().ships if s.type is ShipType.PATROL)
    result = session.apply_shot((patrol.x, patrol.y))
    assert result.cell_state is CellState.HIT
    assert result.ship_sunk is ShipType.PATROL
    assert result.remaining_shots == INITIAL_SHOTS


def test_each_ship_reports_sunk_exactly_once(session: GameSession) -> None:
    sunk = []
    for ship in session.get_state().ships:
        for cell in ship.cells():
            result = session.apply_shot(cell)
            if result.ship_sunk is not None:
                sunk.append((result.ship_sunk, tuple(cell)))
        assert sunk[-1] == (ship.type, tuple(ship.cells()[-1]))
    assert len(sunk) == 10


def test_sinking_the_fleet_wins_regardless_of_misses(session: GameSession) -> None:
    for coords in water_cells(session)[: INITIAL_SHOTS - 1]:
        session.apply_shot(coords)
    assert session.remaining_shots == 1
    results = [session.apply_shot(cell) for cell in ship_cells(session)]
    assert [r.game_over for r in results] == [False] * 23 + [True]
    assert session.has_won and session.is_game_over
    assert session.remaining_shots == 1


def test_duplicate_shot_leaves_session_unchanged(session: GameSession) -> None:
    target = water_cells(session)[0]
    session.apply_shot(target)
    before = session.get_state()
    with pytest.raises(DuplicateShot):
        session.apply_shot(target)
    assert session.get_state() == before


@pytest.mark.parametrize("coords", [(-1, 0), (10, 5)])
def test_out_of_bounds_leaves_session_unchanged(session: GameSession, coords) -> None:
    before = session.get_state()
    with pytest.raises(OutOfBounds):
        session.apply_shot(coords)
    assert session.get_state() == before


def test_get_state_is_a_copy(session: GameSession) -> None:
    state = session.get_state()
    state.board[0][0] = CellState.MISS
    state.ships[0].hits = 99
    fresh = session.get_state()
    assert fresh.ships[0].hits == 0
    assert fresh.board[0][0] in (CellState.EMPTY, CellState.SHIP)


def test_client_view_hides_ships(session: GameSession) -> None:
    hit = ship_cells(session)[0]
    miss = water_cells(session)[0]
    session.apply_shot(hit)
    session.apply_shot(miss)
    view = session.get_client_view()
    cells = [cell for row in view["board"] for cell in row]
    assert CellState.SHIP not in cells
    assert view["board"][hit.y][hit.x] is CellState.HIT
    assert view["board"][miss.y][miss.x] is CellState.MISS
    assert view["remaining_shots"] == INITIAL_SHOTS - 1
    assert view["is_game_over"] is False
    assert view["has_won"] is False


def test_reveal_view_shows_every_ship(session: GameSession) -> None:
    hit = ship_cells(session)[0]
    session.apply_shot(hit)
    reveal = session.get_reveal_view()
    assert reveal["board"][hit.y][hit.x] is CellState.HIT
    for cell in ship_cells(session)[1:]:
        assert reveal["board"][cell.y][cell.x] is CellState.SHIP
    # projection only – the authoritative board is untouched
    assert session.get_state().board[hit.y][hit.x] is CellState.HIT


def test_events_for_shot_and_end(session: GameSession) -> None:
    events = []
    session.subscribe(events.append)
    for cell in ship_cells(session):
        session.apply_shot(cell)
    assert [e.type for e in events] == ["shot"] * 24 + ["end"]
    assert events[-1].category is Category.TURN
    assert events[-1].payload["has_won"] is True
    session.close()
    assert session.closed


def test_close_notifies_once(session: GameSession) -> None:
    events = []
    session.subscribe(events.append)
    session.close()
    session.close()
    assert [(e.category, e.type) for e in events] == [(Category.SYSTEM, "closed")]


def test_create_session_propagates_placement_failure(monkeypatch) -> None:
    def _boom(self, board):
        raise PlacementExhausted("no room")

    monkeypatch.setattr(ShipPlacer, "place", _boom)
    with pytest.raises(PlacementExhausted):
        create_session("doomed")


def test_sessions_with_same_seed_match() -> None:
    a = GameSession("a", rng=random.Random(5))
    b = GameSession("b", rng=random.Random(5))
    assert a.get_state().ships == b.get_state().ships
