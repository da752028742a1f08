from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:8081",
    "http://127.0.0.1:8081",
    "http://localhost:19006",
    "http://127.0.0.1:19006",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio_options = {'cors_allowed_origins': allowed_origins}
    if flask_app.config.get('SOCKETIO_MESSAGE_QUEUE'):
        socketio_options['message_queue'] = flask_app.config['SOCKETIO_MESSAGE_QUEUE']
    socketio.init_app(flask_app, **socketio_options)

    from focusbuddy.main import main
    flask_app.register_blueprint(main)

    from focusbuddy.api.sessions import sessions
    # Mount session routes under /api to match the mobile client
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from focusbuddy.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('sessions-purge')
    @click.option('--hours', type=int, default=None,
                  help='Override WAITING_SESSION_TTL_HOURS for this run.')
    def sessions_purge_command(hours):
        """Deletes sessions that were never joined and are older than the TTL."""
        from focusbuddy.store import SessionStore
        ttl = hours if hours is not None else int(flask_app.config.get('WAITING_SESSION_TTL_HOURS', 0))
        if ttl <= 0:
            print('Session expiry is disabled (WAITING_SESSION_TTL_HOURS=0).')
            return
        with flask_app.app_context():
            removed = SessionStore().purge_unjoined(older_than_hours=ttl)
        print(f'Removed {removed} unjoined session(s) older than {ttl}h.')

    flask_app.cli.add_command(sessions_purge_command)

    return flask_app
