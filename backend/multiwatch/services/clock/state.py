"""Clock data model: players, game state, config and policy switches."""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


def _require_mapping(data: Any, kind: str) -> None:
    if not isinstance(data, dict):
        raise TypeError(f"stored {kind} must be an object, got {type(data).__name__}")


class Status(str, Enum):
    ACTIVE = 'active'
    OUT_OF_TIME = 'out_of_time'
    ELIMINATED = 'eliminated'


@dataclass
class Player:
    id: int
    name: str
    time_left: int
    status: Status = Status.ACTIVE

    @property
    def eligible(self) -> bool:
        return self.status == Status.ACTIVE and self.time_left > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'time_left': self.time_left,
            'status': self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        _require_mapping(data, "player")
        time_left = max(0, int(data['time_left']))
        status = Status(data.get('status', Status.ACTIVE.value))
        if status == Status.ACTIVE and time_left == 0:
            status = Status.OUT_OF_TIME
        return cls(id=int(data['id']), name=str(data['name']), time_left=time_left, status=status)


@dataclass
class GameState:
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0
    running: bool = False

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    def find_player(self, player_id: int) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def seat_of(self, player_id: int) -> Optional[int]:
        for idx, p in enumerate(self.players):
            if p.id == player_id:
                return idx
        return None

    def snapshot(self) -> 'GameState':
        """Independent deep copy; shares no mutable structure with self."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'players': [p.to_dict() for p in self.players],
            'current_player_index': self.current_player_index,
            'running': self.running,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GameState':
        _require_mapping(data, "game state")
        players = [Player.from_dict(p) for p in data.get('players') or []]
        idx = int(data.get('current_player_index', 0))
        if not 0 <= idx < len(players):
            idx = 0
        return cls(players=players, current_player_index=idx, running=bool(data.get('running', False)))


@dataclass(frozen=True)
class ClockConfig:
    seat_count: int
    seconds_per_seat: int
    increment_seconds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'seat_count': self.seat_count,
            'seconds_per_seat': self.seconds_per_seat,
            'increment_seconds': self.increment_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClockConfig':
        return cls(
            seat_count=int(data['seat_count']),
            seconds_per_seat=int(data['seconds_per_seat']),
            increment_seconds=int(data.get('increment_seconds', 0)),
        )


PAUSE_WHEN_RUNNING = 'running'
PAUSE_ALWAYS = 'always'


@dataclass(frozen=True)
class ClockPolicy:
    """Switches for behaviour that differs between clock variants.

    - preserve_eliminated_on_new_game: eliminated seats stay out (pinned at 0)
      across a new game instead of being reset with everyone else
    - pause_on_elimination: 'running' rotates away from an eliminated current
      seat only while the clock runs; 'always' does it while paused too
    - stop_when_rotation_exhausted: advance_turn stops the clock when no other
      seat can take the turn
    """

    preserve_eliminated_on_new_game: bool = True
    pause_on_elimination: str = PAUSE_WHEN_RUNNING
    stop_when_rotation_exhausted: bool = False

    @classmethod
    def from_mapping(cls, cfg) -> 'ClockPolicy':
        mode = str(cfg.get('PAUSE_ON_ELIMINATION', PAUSE_WHEN_RUNNING)).strip().lower()
        if mode not in (PAUSE_WHEN_RUNNING, PAUSE_ALWAYS):
            mode = PAUSE_WHEN_RUNNING
        return cls(
            preserve_eliminated_on_new_game=bool(cfg.get('PRESERVE_ELIMINATED_ON_NEW_GAME', True)),
            pause_on_elimination=mode,
            stop_when_rotation_exhausted=bool(cfg.get('STOP_WHEN_ROTATION_EXHAUSTED', False)),
        )
