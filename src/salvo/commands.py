import re
from dataclasses import dataclass
from typing import Union

from .coord_utils import COORD_RE, coord_to_xy

_INT_RE = re.compile(r"^-?\d+$")


class CommandParseError(Exception):
    """Raised when a line cannot be parsed as a valid command."""


@dataclass(frozen=True)
class NewGameCommand:
    pass


@dataclass(frozen=True)
class FireCommand:
    x: int
    y: int


@dataclass(frozen=True)
class QuitCommand:
    pass


Command = Union[NewGameCommand, FireCommand, QuitCommand]


def _parse_target(args: str) -> FireCommand:
    parts = args.split()
    if len(parts) == 1:
        coord = parts[0].upper()
        if not COORD_RE.match(coord):
            raise CommandParseError(f"Invalid coordinate: {coord}")
        x, y = coord_to_xy(coord)
        return FireCommand(x=x, y=y)
    if len(parts) == 2 and all(_INT_RE.match(p) for p in parts):
        # Raw x/y pairs are passed through unchecked; range checks belong to the game.
        return FireCommand(x=int(parts[0]), y=int(parts[1]))
    raise CommandParseError(f"Invalid coordinate: {args}")


def parse_command(line: str) -> Command:
    if line is None:
        raise CommandParseError("No command to parse")
    if not isinstance(line, str):
        raise CommandParseError(f"Command must be text, got {type(line).__name__}")
    raw = line.strip()
    if not raw:
        raise CommandParseError("Empty command")
    parts = raw.split(maxsplit=1)
    verb = parts[0].upper()
    if verb == "NEW" and len(parts) == 1:
        return NewGameCommand()
    elif verb == "FIRE":
        if len(parts) < 2 or not parts[1].strip():
            raise CommandParseError("FIRE requires a coordinate")
        return _parse_target(parts[1])
    elif verb == "QUIT" and len(parts) == 1:
        return QuitCommand()
    else:
        raise CommandParseError(f"Unknown command: {raw}")
