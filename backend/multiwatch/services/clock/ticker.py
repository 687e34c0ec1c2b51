"""Timer ports driving ClockStateMachine.tick().

A ticker hands its callback a token on every tick. The machine checks the
token with ``is_current`` under its own lock, so a ``stop()`` issued by any
operation takes effect before the next tick is applied.
"""

import itertools
import logging
from typing import Callable, Optional


TickCallback = Callable[[int], None]

_handle_ids = itertools.count(1)


class ManualTicker:
    """Ticker fired explicitly; used in tests and when TESTING is set."""

    def __init__(self):
        self._callback: Optional[TickCallback] = None
        self._token = 0
        self.starts = 0

    @property
    def active(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        if self._callback is not None:
            return
        self._token = next(_handle_ids)
        self._callback = callback
        self.starts += 1

    def stop(self) -> None:
        self._callback = None
        self._token = 0

    def is_current(self, token: int) -> bool:
        return self._callback is not None and token == self._token

    def fire(self, count: int = 1) -> int:
        """Deliver up to ``count`` ticks; stops early once the ticker is stopped."""
        delivered = 0
        for _ in range(count):
            callback = self._callback
            if callback is None:
                break
            callback(self._token)
            delivered += 1
        return delivered


class BackgroundTicker:
    """One-second loop run as a Socket.IO background task.

    - start() is idempotent: one live loop per ticker
    - stop() invalidates the loop's token; the loop exits on its next wake-up
    - Optional heartbeat logging every ``heartbeat`` seconds
    """

    def __init__(self, socketio, interval: float = 1.0, heartbeat: int = 0,
                 logger: Optional[logging.Logger] = None, label: str = ''):
        self._socketio = socketio
        self._interval = interval
        self._heartbeat = heartbeat
        self._logger = logger or logging.getLogger(__name__)
        self._label = label
        self._token = 0

    @property
    def active(self) -> bool:
        return self._token != 0

    def start(self, callback: TickCallback) -> None:
        if self._token:
            self._logger.debug(f"[timer-skip] clock={self._label} already running")
            return
        token = next(_handle_ids)
        self._token = token
        self._logger.info(f"[timer-start] clock={self._label} handle={token} interval={self._interval}s")
        self._socketio.start_background_task(self._worker, token, callback)

    def stop(self) -> None:
        if not self._token:
            return
        self._logger.info(f"[timer-stop] clock={self._label} handle={self._token}")
        self._token = 0

    def is_current(self, token: int) -> bool:
        return token != 0 and token == self._token

    def _worker(self, token: int, callback: TickCallback) -> None:
        elapsed = 0.0
        while self._token == token:
            self._socketio.sleep(self._interval)
            if self._token != token:
                break
            try:
                callback(token)
            except Exception:
                # Keep the loop alive; the next tick retries the store write
                self._logger.exception(f"[timer-error] clock={self._label} handle={token}")
            elapsed += self._interval
            if self._heartbeat and elapsed >= self._heartbeat:
                elapsed = 0.0
                self._logger.info(f"[timer-heartbeat] clock={self._label} handle={token}")
        self._logger.debug(f"[timer-exit] clock={self._label} handle={token}")
