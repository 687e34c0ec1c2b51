import json
import threading
from typing import Dict, Optional

from flask import current_app

from .machine import ClockStateMachine
from .state import ClockConfig, ClockPolicy
from .ticker import BackgroundTicker, ManualTicker
from .display import state_payload
from multiwatch.models import config_key, generate_clock_code, state_key


class ClockRegistry:
    """Live clock sessions keyed by clock code.

    - Builds machines from the stored config, restoring any stored state
    - Uses ManualTicker in TESTING mode unless ENABLE_TICKER_IN_TESTS is set
    - Broadcasts every change to the session's Socket.IO room
    """

    def __init__(self, app, store, socketio):
        self.app = app
        self.store = store
        self.socketio = socketio
        self._machines: Dict[str, ClockStateMachine] = {}
        self._lock = threading.Lock()

    def _make_ticker(self, code: str):
        cfg = self.app.config
        if cfg.get('TESTING') and not cfg.get('ENABLE_TICKER_IN_TESTS'):
            return ManualTicker()
        return BackgroundTicker(
            self.socketio,
            interval=float(cfg.get('TICK_INTERVAL_SEC', 1)),
            heartbeat=int(cfg.get('TIMER_HEARTBEAT_SEC', 0)),
            logger=self.app.logger,
            label=code,
        )

    def _build(self, code: str, config: ClockConfig) -> ClockStateMachine:
        machine = ClockStateMachine(
            config,
            store=self.store,
            ticker=self._make_ticker(code),
            policy=ClockPolicy.from_mapping(self.app.config),
            state_key=state_key(code),
            logger=self.app.logger,
            label=code,
        )
        machine.add_listener(lambda m: self.broadcast(code, m))
        return machine

    def create(self, config: ClockConfig) -> str:
        with self._lock:
            code = generate_clock_code(self.store)
            self.store.set(config_key(code), json.dumps(config.to_dict()).encode('utf-8'))
            machine = self._build(code, config)
            machine.initialize()
            self._machines[code] = machine
        self.app.logger.info(
            f"[clock-create] clock={code} seats={config.seat_count} seconds={config.seconds_per_seat} "
            f"increment={config.increment_seconds}"
        )
        return code

    def get(self, code: str) -> Optional[ClockStateMachine]:
        code = (code or '').upper()
        with self._lock:
            machine = self._machines.get(code)
            if machine is not None:
                return machine
            blob = self.store.get(config_key(code))
            if blob is None:
                return None
            try:
                config = ClockConfig.from_dict(json.loads(blob.decode('utf-8')))
            except (ValueError, KeyError, TypeError) as exc:
                self.app.logger.warning(f"[clock-load] clock={code} unreadable config: {exc}")
                return None
            machine = self._build(code, config)
            machine.restore()
            self._machines[code] = machine
        return machine

    def exit(self, code: str) -> bool:
        code = (code or '').upper()
        machine = self.get(code)
        if machine is None:
            return False
        machine.exit()
        with self._lock:
            self._machines.pop(code, None)
        self.socketio.emit('session_ended', {'clock_code': code}, to=f"clock:{code}", namespace='/ws')
        return True

    def payload(self, code: str, machine: ClockStateMachine) -> dict:
        threshold = int(self.app.config.get('LOW_TIME_THRESHOLD_SEC', 10))
        return state_payload(machine, clock_code=code, low_time_threshold=threshold)

    def broadcast(self, code: str, machine: ClockStateMachine) -> None:
        room = f"clock:{code}"
        self.socketio.emit('state_update', self.payload(code, machine), to=room, namespace='/ws')
        if machine.notice:
            self.socketio.emit('notice', {'clock_code': code, 'message': machine.notice}, to=room, namespace='/ws')


def get_registry() -> ClockRegistry:
    return current_app.extensions['clock_registry']
