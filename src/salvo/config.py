"""Central configuration for runtime-tunable parameters.

Network and server knobs can be overridden via environment variables so the
production server runs with sane defaults while the test-suite can tighten
specific limits. The board geometry and the fleet are fixed game rules and
are deliberately *not* exposed to the environment.
"""

from __future__ import annotations

import os


# ===========================================================================
# Network Defaults
# ===========================================================================
# SALVO_HOST: Default host address for the server to bind to and clients to connect to.
#   Defaults to "127.0.0.1".
#   Example: export SALVO_HOST=0.0.0.0
DEFAULT_HOST: str = os.getenv("SALVO_HOST", "127.0.0.1")

# SALVO_PORT: Default port for the server to listen on and clients to connect to.
#   Defaults to 6969.
#   Example: export SALVO_PORT=7000
DEFAULT_PORT: int = int(os.getenv("SALVO_PORT", "6969"))


# ===========================================================================
# Connection Limits
# ===========================================================================
# SALVO_THROTTLE_WINDOW: seconds during which repeated connections from the same
#   address are only admitted while the server is below SALVO_MAX_CONNECTIONS.
#   Defaults to 60.
THROTTLE_WINDOW: float = float(os.getenv("SALVO_THROTTLE_WINDOW", "60"))

# SALVO_MAX_CONNECTIONS: active-connection ceiling applied to throttled addresses.
#   Defaults to 10.
MAX_CONNECTIONS: int = int(os.getenv("SALVO_MAX_CONNECTIONS", "10"))

# SALVO_IDLE_TIMEOUT: seconds a client may stay silent before the server drops it.
#   Defaults to 300. Set to 0 to wait forever.
IDLE_TIMEOUT: float = float(os.getenv("SALVO_IDLE_TIMEOUT", "300"))


# ===========================================================================
# Ship Placement Limits
# ===========================================================================
# SALVO_SHIP_ATTEMPTS: random positions tried for a single ship before the
#   whole board is cleared and placement starts over. Defaults to 100.
SHIP_ATTEMPTS: int = int(os.getenv("SALVO_SHIP_ATTEMPTS", "100"))

# SALVO_BOARD_ATTEMPTS: full-fleet placement rounds before giving up with
#   PlacementExhausted. Defaults to 3.
BOARD_ATTEMPTS: int = int(os.getenv("SALVO_BOARD_ATTEMPTS", "3"))


# ===========================================================================
# Game Constants
# ===========================================================================
# Width and height of the (square) board.
BOARD_SIZE: int = 10

# Misses a player may make before the game is lost. Hits are free.
INITIAL_SHOTS: int = 25


# ===========================================================================
# Debugging and Logging
# ===========================================================================
# SALVO_DEBUG: If "1", enables detailed debug logging across modules.
#   Defaults to "0" (disabled).
#   Example: export SALVO_DEBUG=1
DEBUG: bool = os.getenv("SALVO_DEBUG", "0") == "1"


# ===========================================================================
# Cryptography Defaults
# ===========================================================================
# SALVO_KEY: AES key as a hex string, used by --secure when no key is given.
# Defaults to "00112233445566778899AABBCCDDEEFF".
DEFAULT_KEY_HEX: str = os.getenv("SALVO_KEY", "00112233445566778899AABBCCDDEEFF")
DEFAULT_KEY: bytes = bytes.fromhex(DEFAULT_KEY_HEX)
