import os


def _flag(name, default):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///multiwatch.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Ticker cadence (seconds)
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1'))
    # Optional: heartbeat interval for ticker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Setup form limits
    MAX_SEATS = int(os.environ.get('MAX_SEATS', '12'))
    # Seats at or below this many seconds are flagged as low on time
    LOW_TIME_THRESHOLD_SEC = int(os.environ.get('LOW_TIME_THRESHOLD_SEC', '10'))
    # Seconds added by the "+10s" button when the request names no amount
    DEFAULT_ADD_TIME_SEC = int(os.environ.get('DEFAULT_ADD_TIME_SEC', '10'))
    # Policy switches for behaviour that differs between clock variants
    PRESERVE_ELIMINATED_ON_NEW_GAME = _flag('PRESERVE_ELIMINATED_ON_NEW_GAME', 'true')
    PAUSE_ON_ELIMINATION = os.environ.get('PAUSE_ON_ELIMINATION', 'running')  # running, always
    STOP_WHEN_ROTATION_EXHAUSTED = _flag('STOP_WHEN_ROTATION_EXHAUSTED', 'false')
