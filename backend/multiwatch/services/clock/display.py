from typing import Any, Dict

from .state import GameState, Player, Status


def format_time(seconds: int) -> str:
    """MM:SS below an hour, HH:MM:SS from an hour up."""
    seconds = max(0, int(seconds))
    if seconds >= 3600:
        h, leftover = divmod(seconds, 3600)
        m, s = divmod(leftover, 60)
        return f"{h:02d}:{m:02d}:{s:02d}"
    m, s = divmod(seconds, 60)
    return f"{m:02d}:{s:02d}"


def total_time_left(state: GameState) -> int:
    return sum(p.time_left for p in state.players)


def is_low_time(player: Player, threshold: int = 10) -> bool:
    return player.status == Status.ACTIVE and player.time_left <= threshold


def state_payload(machine, clock_code: str = None, low_time_threshold: int = 10) -> Dict[str, Any]:
    state = machine.state
    players = []
    for idx, p in enumerate(state.players):
        pd = p.to_dict()
        pd['seat'] = idx
        pd['display'] = format_time(p.time_left)
        pd['low_time'] = is_low_time(p, low_time_threshold)
        pd['is_current'] = idx == state.current_player_index
        players.append(pd)
    total = total_time_left(state)
    return {
        'clock_code': clock_code,
        'players': players,
        'current_player_index': state.current_player_index,
        'running': state.running,
        'wake_lock': state.running,
        'can_undo': machine.can_undo,
        'history_depth': machine.history_depth,
        'total_time_left': total,
        'total_display': format_time(total),
        'config': machine.config.to_dict(),
        'notice': machine.notice,
    }
