import pytest

from salvo.commands import (
    parse_command,
    NewGameCommand,
    FireCommand,
    QuitCommand,
    CommandParseError,
)
from salvo.coord_utils import coord_to_xy, format_coord


def test_new_game():
    assert isinstance(parse_command("  new "), NewGameCommand)


def test_fire_valid_A1():
    cmd = parse_command("FIRE A1")
    assert isinstance(cmd, FireCommand)
    assert (cmd.x, cmd.y) == (0, 0)


def test_fire_letter_is_row():
    cmd = parse_command("fire b7")
    assert (cmd.x, cmd.y) == (6, 1)


def test_fire_valid_J10():
    cmd = parse_command("fire j10")
    assert (cmd.x, cmd.y) == (9, 9)


def test_fire_raw_xy_passes_through_out_of_range_values():
    assert parse_command("FIRE 3 4") == FireCommand(x=3, y=4)
    assert parse_command("FIRE -1 0") == FireCommand(x=-1, y=0)
    assert parse_command("FIRE 10 5") == FireCommand(x=10, y=5)


@pytest.mark.parametrize("line", ["FIRE K1", "FIRE A11", "FIRE", "FIRE 1 two", "FIRE 1 2 3"])
def test_fire_invalid(line):
    with pytest.raises(CommandParseError):
        parse_command(line)


def test_quit():
    assert isinstance(parse_command("QUIT"), QuitCommand)


def test_unknown_command():
    with pytest.raises(CommandParseError):
        parse_command("HELLO there")


def test_empty_line():
    with pytest.raises(CommandParseError):
        parse_command("    ")


def test_coordinate_helpers():
    assert coord_to_xy("C10") == (9, 2)
    assert format_coord(9, 2) == "C10"


@pytest.mark.parametrize("line", [5, 1.5, ["FIRE", "A1"], {"msg": "NEW"}])
def test_non_text_command_rejected(line):
    with pytest.raises(CommandParseError):
        parse_command(line)
