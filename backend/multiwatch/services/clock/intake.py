from .state import ClockConfig


TIME_MODES = ('per_player', 'total')


class IntakeError(ValueError):
    pass


def _as_int(value, fallback: int) -> int:
    # Blank or non-numeric form fields fall back, like an emptied input box
    if value is None or isinstance(value, bool):
        return fallback
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return fallback
    return parsed if parsed != 0 else fallback


def build_config(num_players=None, minutes=None, time_mode='per_player', increment=None,
                 max_seats: int = 12) -> ClockConfig:
    """Turn setup form values into a ClockConfig.

    ``minutes`` is either each player's bank (``per_player``) or the whole
    table's bank split evenly between seats (``total``), at least one second
    per seat.
    """
    seats = _as_int(num_players, 1)
    mins = _as_int(minutes, 1)
    inc = _as_int(increment, 0)
    mode = (time_mode or 'per_player').strip().lower()

    if mode not in TIME_MODES:
        raise IntakeError(f"time_mode must be one of {', '.join(TIME_MODES)}")
    if seats < 1 or seats > max_seats:
        raise IntakeError(f"num_players must be between 1 and {max_seats}")
    if mins < 1:
        raise IntakeError('minutes must be at least 1')
    if inc < 0:
        raise IntakeError('increment cannot be negative')

    if mode == 'per_player':
        seconds = mins * 60
    else:
        seconds = max((mins * 60) // seats, 1)
    return ClockConfig(seat_count=seats, seconds_per_seat=seconds, increment_seconds=inc)
