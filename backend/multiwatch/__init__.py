from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
import os
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)
MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), os.pardir, "migrations")

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db, directory=MIGRATIONS_DIR)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from multiwatch.main import main
    flask_app.register_blueprint(main)

    from multiwatch.api.clocks import clocks
    flask_app.register_blueprint(clocks, url_prefix='/api/clocks')

    # Register Socket.IO event handlers
    from multiwatch.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # One registry of live clock sessions per app, persisted through the kv_store table
    from multiwatch.models import DatabaseStore
    from multiwatch.services.clock.registry import ClockRegistry
    flask_app.extensions['clock_registry'] = ClockRegistry(flask_app, DatabaseStore(flask_app), socketio)

    @click.command('init-db')
    def init_db_command():
        """Drops and recreates the database tables."""
        import multiwatch.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(init_db_command)

    return flask_app
