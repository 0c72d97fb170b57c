from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # The room registry lives as long as the app; handlers reach it through
    # app.extensions instead of a module global
    from pincer.lobby import broadcast_lobby_state
    from pincer.rooms import RoomManager

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    rooms = RoomManager(
        grace_period=flask_app.config.get('ROOM_CLEANUP_GRACE_SEC', 10.0),
        default_size=flask_app.config.get('DEFAULT_BOARD_SIZE', 13),
        allowed_sizes=flask_app.config.get('ALLOWED_BOARD_SIZES', (9, 11, 13, 15)),
        code_length=flask_app.config.get('ROOM_CODE_LENGTH', 6),
        start_background_task=socketio.start_background_task,
        sleep=socketio.sleep,
        logger=flask_app.logger,
    )
    # Timers fire outside any request; hand the lobby broadcast its targets
    rooms.on_room_deleted = lambda room_id: broadcast_lobby_state(rooms, namespace)
    flask_app.extensions['room_manager'] = rooms

    # Import and register blueprints here
    from pincer.routes import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers
    from pincer.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    return flask_app
