from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS', '*')

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, resources={r"/api/*": {"origins": allowed_origins}})

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Game services are built per app so tests get a fresh store and scheduler
    from guessroom.services.games import init_game_services
    services = init_game_services(flask_app, db.session, socketio)

    from guessroom.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    # Register Socket.IO event handlers and forward store changes to subscribers
    from guessroom.socketio_events import register_socketio_handlers, bridge_change_feed
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))
    bridge_change_feed(services)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        import guessroom.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
