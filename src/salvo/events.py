"""Lightweight event model used by GameSession to decouple game logic from transport.

GameSession emits strongly-typed events; the per-connection router translates
them into wire-protocol packets, and any other subscriber (logging, tests) can
consume them without parsing free-text strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict


class Category(Enum):
    """High-level event categories."""

    TURN = auto()  # per-shot lifecycle (shot, end)
    SYSTEM = auto()  # session closed / abandoned


@dataclass(slots=True)
class Event:
    """Immutable event emitted by GameSession."""

    category: Category
    type: str  # finer-grained identifier, e.g. "shot", "end", "closed"
    payload: Dict[str, Any]
