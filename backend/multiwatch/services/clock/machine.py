"""The clock state machine.

Owns the authoritative GameState for one clock session. Every mutating
operation runs under a single re-entrant lock, is guarded locally (a failed
guard is a silent no-op, never an exception), pushes an undo snapshot where
the operation is undoable, and on change:

- synchronises the ticker with ``running``
- writes the full state (with undo history) to the store
- notifies listeners
"""

import functools
import json
import logging
import threading
from typing import Callable, Dict, List, Optional

from .state import ClockConfig, ClockPolicy, GameState, Player, Status, PAUSE_ALWAYS
from .ticker import ManualTicker


NO_ACTIVE_PLAYERS = 'No active players left'


class MemoryStore:
    """Dict-backed key-value byte store."""

    def __init__(self):
        self.data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def next_active_index(players: List[Player], current_index: int) -> Optional[int]:
    """First eligible seat after ``current_index``, scanning cyclically.

    The scan covers every seat once, so the current seat itself is the last
    candidate. Returns None when nobody can take the turn.
    """
    total = len(players)
    for step in range(1, total + 1):
        idx = (current_index + step) % total
        if players[idx].eligible:
            return idx
    return None


def remap_index(index: int, from_index: int, to_index: int) -> int:
    """Where the seat at ``index`` ends up after moving from_index -> to_index.

    Seats between the two positions shift one step toward ``from_index``,
    the seat already at ``to_index`` included, so the index keeps following
    the same player: remap_index(2, 0, 2) == 1 and remap_index(0, 2, 0) == 1.
    """
    if index == from_index:
        return to_index
    if from_index < index <= to_index:
        return index - 1
    if to_index <= index < from_index:
        return index + 1
    return index


def _mutation(method):
    # Methods return True when they changed the state.
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            self.notice = None
            if method(self, *args, **kwargs):
                self._commit()
            return self._state.snapshot()
    return wrapper


class ClockStateMachine:
    def __init__(self, config: ClockConfig, store=None, ticker=None,
                 policy: Optional[ClockPolicy] = None, state_key: str = 'clock:state',
                 logger: Optional[logging.Logger] = None, label: str = ''):
        self.config = config
        self.store = store if store is not None else MemoryStore()
        self.ticker = ticker if ticker is not None else ManualTicker()
        self.policy = policy or ClockPolicy()
        self.state_key = state_key
        self.logger = logger or logging.getLogger(__name__)
        self.label = label
        self.notice: Optional[str] = None
        self._state = GameState()
        self._history: List[GameState] = []
        self._listeners: List[Callable[['ClockStateMachine'], None]] = []
        self._lock = threading.RLock()

    # ---- read-only views ----

    @property
    def state(self) -> GameState:
        with self._lock:
            return self._state.snapshot()

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def add_listener(self, listener: Callable[['ClockStateMachine'], None]) -> None:
        self._listeners.append(listener)

    # ---- lifecycle ----

    def initialize(self, config: Optional[ClockConfig] = None) -> GameState:
        with self._lock:
            if config is not None:
                self.config = config
            self._state = GameState(
                players=[
                    Player(id=i, name=f"Player {i + 1}", time_left=self.config.seconds_per_seat)
                    for i in range(self.config.seat_count)
                ],
                current_player_index=0,
                running=False,
            )
            self._history = []
            self.notice = None
            self.logger.info(
                f"[clock-init] clock={self.label} seats={self.config.seat_count} "
                f"seconds={self.config.seconds_per_seat} increment={self.config.increment_seconds}"
            )
            self._commit()
            return self._state.snapshot()

    def restore(self) -> GameState:
        """Load the stored session, or initialize fresh when none is stored."""
        with self._lock:
            blob = self.store.get(self.state_key)
            if blob is None:
                return self.initialize()
            try:
                data = json.loads(blob.decode('utf-8') if isinstance(blob, bytes) else blob)
                state = GameState.from_dict(data)
                history = [GameState.from_dict(h) for h in data.get('history') or []]
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                self.logger.warning(f"[clock-restore] clock={self.label} unreadable state, starting fresh: {exc}")
                return self.initialize()
            if len(state.players) != self.config.seat_count:
                self.logger.warning(
                    f"[clock-restore] clock={self.label} stored seats={len(state.players)} "
                    f"config seats={self.config.seat_count}, starting fresh"
                )
                return self.initialize()
            if any(len(h.players) != self.config.seat_count for h in history):
                self.logger.warning(
                    f"[clock-restore] clock={self.label} history does not match {self.config.seat_count} seats, dropping it"
                )
                history = []
            self._state = state
            self._history = history
            self.logger.info(
                f"[clock-restore] clock={self.label} running={state.running} history={len(history)}"
            )
            self._sync_ticker()
            return self._state.snapshot()

    def exit(self) -> None:
        """Discard the session: stop ticking, drop history and the stored state."""
        with self._lock:
            self._state.running = False
            self._sync_ticker()
            self._history = []
            self.store.delete(self.state_key)
            self.logger.info(f"[clock-exit] clock={self.label}")

    def dump(self) -> Dict:
        payload = self._state.to_dict()
        payload['history'] = [h.to_dict() for h in self._history]
        return payload

    # ---- operations ----

    @_mutation
    def tick(self) -> bool:
        st = self._state
        player = st.current_player
        if not st.running or player is None or player.status != Status.ACTIVE:
            return False
        player.time_left = max(0, player.time_left - 1)
        if player.time_left == 0:
            player.status = Status.OUT_OF_TIME
            st.running = False
            moved = self._rotate()
            self.logger.info(
                f"[tick-expire] clock={self.label} player={player.id} next_seat={st.current_player_index} moved={moved}"
            )
        return True

    @_mutation
    def toggle_running(self) -> bool:
        if not any(p.eligible for p in self._state.players):
            return False
        self._push_history()
        self._state.running = not self._state.running
        return True

    @_mutation
    def advance_turn(self, player_id: int) -> bool:
        st = self._state
        player = st.current_player
        if not st.running or player is None or player.id != player_id or not player.eligible:
            return False
        self._push_history()
        if self.config.increment_seconds > 0 and player.status == Status.ACTIVE:
            player.time_left += self.config.increment_seconds
        if not self._rotate() and self.policy.stop_when_rotation_exhausted:
            st.running = False
        return True

    @_mutation
    def resume_from_pause(self, player_id: int) -> bool:
        st = self._state
        player = st.current_player
        if st.running or player is None or player.id != player_id or not player.eligible:
            return False
        self._push_history()
        st.running = True
        return True

    def press(self, player_id: int) -> GameState:
        """A click on a seat: hand the turn on while running, resume while paused."""
        with self._lock:
            if self._state.running:
                return self.advance_turn(player_id)
            return self.resume_from_pause(player_id)

    @_mutation
    def add_time(self, player_id: int, delta_seconds: int) -> bool:
        st = self._state
        seat = st.seat_of(player_id)
        if seat is None:
            return False
        self._push_history()
        player = st.players[seat]
        player.time_left = max(0, player.time_left + int(delta_seconds))
        if player.status == Status.ELIMINATED:
            return True
        if player.time_left > 0:
            if player.status == Status.OUT_OF_TIME:
                player.status = Status.ACTIVE
        elif player.status == Status.ACTIVE:
            player.status = Status.OUT_OF_TIME
            if seat == st.current_player_index and st.running:
                st.running = False
                self._rotate()
        return True

    @_mutation
    def toggle_elimination(self, player_id: int) -> bool:
        st = self._state
        seat = st.seat_of(player_id)
        if seat is None:
            return False
        self._push_history()
        player = st.players[seat]
        if player.status != Status.ELIMINATED:
            player.status = Status.ELIMINATED
            is_current = seat == st.current_player_index
            if is_current and (st.running or self.policy.pause_on_elimination == PAUSE_ALWAYS):
                st.running = False
                self._rotate()
            if not any(p.eligible for p in st.players):
                self.notice = NO_ACTIVE_PLAYERS
                self.logger.info(f"[eliminate] clock={self.label} player={player.id} notice='{NO_ACTIVE_PLAYERS}'")
            else:
                self.logger.info(f"[eliminate] clock={self.label} player={player.id} seat={seat}")
            return True

        player.status = Status.ACTIVE if player.time_left > 0 else Status.OUT_OF_TIME
        current = st.current_player
        if seat == st.current_player_index or (player.eligible and not current.eligible):
            st.current_player_index = seat
            st.running = False
        self.logger.info(f"[revive] clock={self.label} player={player.id} status={player.status.value}")
        return True

    @_mutation
    def reorder(self, from_index: int, to_index: int) -> bool:
        st = self._state
        total = len(st.players)
        if from_index == to_index or not (0 <= from_index < total and 0 <= to_index < total):
            return False
        self._push_history()
        st.players.insert(to_index, st.players.pop(from_index))
        st.current_player_index = remap_index(st.current_player_index, from_index, to_index)
        return True

    @_mutation
    def rename_all(self, name_by_id: Dict[int, str]) -> bool:
        st = self._state
        known = {pid: name for pid, name in name_by_id.items() if st.find_player(pid) is not None}
        if not known:
            return False
        self._push_history()
        for pid, name in known.items():
            st.find_player(pid).name = str(name)
        return True

    @_mutation
    def new_game(self, preserve_eliminated: Optional[bool] = None) -> bool:
        if preserve_eliminated is None:
            preserve_eliminated = self.policy.preserve_eliminated_on_new_game
        st = self._state
        for p in st.players:
            if preserve_eliminated and p.status == Status.ELIMINATED:
                p.time_left = 0
                continue
            p.time_left = self.config.seconds_per_seat
            p.status = Status.ACTIVE
        st.current_player_index = 0
        st.running = False
        self._history = []
        self.logger.info(f"[new-game] clock={self.label} preserve_eliminated={preserve_eliminated}")
        return True

    @_mutation
    def undo(self) -> bool:
        if not self._history:
            return False
        self._state = self._history.pop()
        self.logger.info(f"[undo] clock={self.label} remaining={len(self._history)}")
        return True

    # ---- internals ----

    def _push_history(self) -> None:
        self._history.append(self._state.snapshot())

    def _rotate(self) -> bool:
        nxt = next_active_index(self._state.players, self._state.current_player_index)
        if nxt is None:
            return False
        self._state.current_player_index = nxt
        return True

    def _on_tick(self, token: int) -> None:
        with self._lock:
            if not self.ticker.is_current(token):
                return
            self.tick()

    def _sync_ticker(self) -> None:
        if self._state.running and not self.ticker.active:
            self.ticker.start(self._on_tick)
        elif not self._state.running and self.ticker.active:
            self.ticker.stop()

    def _commit(self) -> None:
        self._sync_ticker()
        self.store.set(self.state_key, json.dumps(self.dump()).encode('utf-8'))
        for listener in list(self._listeners):
            listener(self)
