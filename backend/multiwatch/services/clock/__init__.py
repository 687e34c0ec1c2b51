"""Clock domain services: state machine, ticker ports and helpers.

This package holds the clock rules themselves and is imported by the HTTP
routes and socket handlers, keeping transport concerns separated from the
clock mechanics.
"""

from .machine import ClockStateMachine, MemoryStore, NO_ACTIVE_PLAYERS, next_active_index, remap_index
from .state import ClockConfig, ClockPolicy, GameState, Player, Status
from .ticker import BackgroundTicker, ManualTicker
