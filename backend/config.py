import os


def _csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = _csv(os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'))
    # Socket.IO namespace the game events are bound to
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Board sizes a room may be created with; anything else falls back to the default
    DEFAULT_BOARD_SIZE = int(os.environ.get('DEFAULT_BOARD_SIZE', '13'))
    ALLOWED_BOARD_SIZES = (9, 11, 13, 15)
    # Seconds an empty room survives, so a page refresh can reconnect
    ROOM_CLEANUP_GRACE_SEC = float(os.environ.get('ROOM_CLEANUP_GRACE_SEC', '10'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    PORT = int(os.environ.get('PORT', '3000'))
