from flask_socketio import join_room, leave_room, emit
from multiwatch import socketio
from multiwatch.services.clock.registry import get_registry


def _clock_code(data):
    """Upper-cased clock code from an event payload, or None when unusable."""
    clock_code = data.get('clock_code') if isinstance(data, dict) else None
    if isinstance(clock_code, bool) or not isinstance(clock_code, (str, int)):
        return None
    code = str(clock_code).strip().upper()
    return code or None


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_clock(data):
    code = _clock_code(data)
    if code is None:
        emit('error', {'message': 'clock_code is required'})
        return
    room = f"clock:{code}"
    join_room(room)
    emit('joined', {'room': room})
    # Late joiners render straight away instead of waiting for the next change
    registry = get_registry()
    machine = registry.get(code)
    if machine is None:
        emit('error', {'message': 'Clock not found'})
        return
    emit('state_update', registry.payload(code, machine))


def handle_leave_clock(data):
    code = _clock_code(data)
    if code is None:
        emit('error', {'message': 'clock_code is required'})
        return
    room = f"clock:{code}"
    leave_room(room)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_clock', handle_join_clock, namespace=namespace)
        socketio.on_event('leave_clock', handle_leave_clock, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
