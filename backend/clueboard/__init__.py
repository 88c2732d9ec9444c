from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # A message queue lets several workers share the leaderboard room
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        message_queue=flask_app.config.get('SOCKETIO_MESSAGE_QUEUE'),
    )

    # Game services shared by every session of this app
    from clueboard.services.games import init_services
    init_services(flask_app)

    from clueboard.identity import init_identity
    init_identity(login_manager)

    from clueboard.api.sessions import sessions
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(sessions, url_prefix='/api')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from clueboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('scores-reset')
    def scores_reset_command():
        """Deletes every leaderboard record."""
        from clueboard.services.games.score_store import ScoreStore
        with flask_app.app_context():
            db.create_all()
            removed = ScoreStore(db.session).reset()
            print(f'Leaderboard has been reset ({removed} records removed)')

    flask_app.cli.add_command(scores_reset_command)

    return flask_app
