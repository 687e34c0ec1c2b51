from flask import Blueprint, jsonify, request, current_app
from multiwatch.services.clock.intake import build_config, IntakeError
from multiwatch.services.clock.registry import get_registry


clocks = Blueprint('clocks', __name__)


def _int_arg(data, name, default=None):
    value = data.get(name, default)
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _load(clock_code):
    code = clock_code.upper()
    return code, get_registry().get(code)


def _not_found():
    return jsonify({'error': 'Clock not found'}), 404


def _respond(code, machine, status=200):
    return jsonify(get_registry().payload(code, machine)), status


@clocks.route('', methods=['POST'])
def create_clock():
    """
    Takes the setup form (players, minutes, time mode, increment) and opens a
    fresh clock session.
    """
    data = request.get_json(silent=True) or {}
    try:
        config = build_config(
            num_players=data.get('num_players'),
            minutes=data.get('minutes'),
            time_mode=data.get('time_mode') or 'per_player',
            increment=data.get('increment'),
            max_seats=int(current_app.config.get('MAX_SEATS', 12)),
        )
    except IntakeError as exc:
        return jsonify({'error': str(exc)}), 400
    registry = get_registry()
    code = registry.create(config)
    return _respond(code, registry.get(code), 201)


@clocks.route('/<string:clock_code>/state', methods=['GET'])
def get_clock_state(clock_code):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    return _respond(code, machine)


@clocks.route('/<string:clock_code>/toggle', methods=['POST'])
def toggle_running(clock_code):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    machine.toggle_running()
    return _respond(code, machine)


def _seat_action(clock_code, action):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    player_id = _int_arg(request.get_json(silent=True) or {}, 'player_id')
    if player_id is None:
        return jsonify({'error': 'player_id is required'}), 400
    getattr(machine, action)(player_id)
    return _respond(code, machine)


@clocks.route('/<string:clock_code>/press', methods=['POST'])
def press_seat(clock_code):
    return _seat_action(clock_code, 'press')


@clocks.route('/<string:clock_code>/advance', methods=['POST'])
def advance_turn(clock_code):
    return _seat_action(clock_code, 'advance_turn')


@clocks.route('/<string:clock_code>/resume', methods=['POST'])
def resume_from_pause(clock_code):
    return _seat_action(clock_code, 'resume_from_pause')


@clocks.route('/<string:clock_code>/players/<int:player_id>/time', methods=['POST'])
def add_time(clock_code, player_id):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    data = request.get_json(silent=True) or {}
    seconds = _int_arg(data, 'seconds', current_app.config.get('DEFAULT_ADD_TIME_SEC', 10))
    if seconds is None:
        return jsonify({'error': 'seconds must be an integer'}), 400
    machine.add_time(player_id, seconds)
    return _respond(code, machine)


@clocks.route('/<string:clock_code>/players/<int:player_id>/eliminate', methods=['POST'])
def toggle_elimination(clock_code, player_id):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    machine.toggle_elimination(player_id)
    if machine.notice:
        current_app.logger.info(f"[notice] clock={code} message='{machine.notice}'")
    return _respond(code, machine)


@clocks.route('/<string:clock_code>/reorder', methods=['POST'])
def reorder(clock_code):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    data = request.get_json(silent=True) or {}
    from_index = _int_arg(data, 'from_index')
    to_index = _int_arg(data, 'to_index')
    if from_index is None or to_index is None:
        return jsonify({'error': 'from_index and to_index are required'}), 400
    machine.reorder(from_index, to_index)
    return _respond(code, machine)


@clocks.route('/<string:clock_code>/names', methods=['PUT'])
def rename_all(clock_code):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    names = (request.get_json(silent=True) or {}).get('names')
    if not isinstance(names, dict):
        return jsonify({'error': 'names must map player ids to names'}), 400
    try:
        name_by_id = {int(pid): str(name) for pid, name in names.items()}
    except (TypeError, ValueError):
        return jsonify({'error': 'player ids must be integers'}), 400
    machine.rename_all(name_by_id)
    return _respond(code, machine)


@clocks.route('/<string:clock_code>/new-game', methods=['POST'])
def new_game(clock_code):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    preserve = (request.get_json(silent=True) or {}).get('preserve_eliminated')
    machine.new_game(None if preserve is None else bool(preserve))
    current_app.logger.info(f"[new-game] clock={code} requested preserve={preserve}")
    return _respond(code, machine)


@clocks.route('/<string:clock_code>/undo', methods=['POST'])
def undo(clock_code):
    code, machine = _load(clock_code)
    if machine is None:
        return _not_found()
    machine.undo()
    return _respond(code, machine)


@clocks.route('/<string:clock_code>', methods=['DELETE'])
def exit_clock(clock_code):
    """
    Leaves the game screen: discards the running session but keeps the
    clock's setup so the next visit starts a fresh game with it.
    """
    if not get_registry().exit(clock_code):
        return _not_found()
    return jsonify({'message': 'Clock session discarded.'}), 200
