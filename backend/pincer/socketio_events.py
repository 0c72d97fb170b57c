from functools import wraps

from flask import current_app, request
from flask_socketio import ConnectionRefusedError, emit, join_room, leave_room

from pincer import socketio
from pincer.errors import GameError, InvalidIdentity
from pincer.game.pieces import Team
from pincer.lobby import LOBBY_ROOM, broadcast_lobby_state
from pincer.rooms import RoomManager, normalize_room_id


def _rooms() -> RoomManager:
    return current_app.extensions['room_manager']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _reports_errors(handler):
    """Send rule and lookup failures back to the calling socket only."""

    @wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except GameError as exc:
            emit('error_message', exc.message)

    return wrapper


def _room_id_from(data):
    if isinstance(data, dict):
        return data.get('roomId')
    return data


def handle_connect(auth=None):
    token = auth.get('token') if isinstance(auth, dict) else None
    try:
        _rooms().connect(_get_sid(), token)
    except InvalidIdentity as exc:
        raise ConnectionRefusedError(exc.message)
    join_room(LOBBY_ROOM)
    broadcast_lobby_state()


def handle_disconnect(reason=None):
    _rooms().handle_disconnect(_get_sid())
    broadcast_lobby_state()


@_reports_errors
def handle_create_game(data=None):
    size = data.get('size') if isinstance(data, dict) else None
    rooms = _rooms()
    session = rooms.create_game(_get_sid(), size)
    leave_room(LOBBY_ROOM)
    join_room(session.room_id)
    emit('game_created', {
        'roomId': session.room_id,
        'team': Team.AC.value,
        'state': rooms.state_of(session),
    })
    broadcast_lobby_state()


@_reports_errors
def handle_join_game(data):
    result = _rooms().join_game(_get_sid(), _room_id_from(data))
    room = result.session.room_id
    leave_room(LOBBY_ROOM)
    join_room(room)
    emit('game_joined', {'roomId': room, 'team': result.team, 'state': result.state})
    if result.activated:
        emit('message', 'Game Active: AC vs BD', to=room)
        emit('state_update', result.state, to=room)
    broadcast_lobby_state()


@_reports_errors
def handle_leave_game(data):
    room = _room_id_from(data)
    rooms = _rooms()
    rooms.leave_game(_get_sid(), room)
    if room:
        leave_room(normalize_room_id(room))
    join_room(LOBBY_ROOM)
    broadcast_lobby_state()


@_reports_errors
def handle_make_move(data):
    data = data if isinstance(data, dict) else {}
    outcome = _rooms().submit_move(_get_sid(), data.get('roomId'), data.get('r'), data.get('c'))
    if outcome is None:
        return
    room = outcome.session.room_id
    emit('state_update', outcome.state, to=room)
    if outcome.decided:
        emit('game_over', outcome.state['winner'], to=room)
        broadcast_lobby_state()


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the game namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create_game', handle_create_game, namespace=namespace)
    socketio.on_event('join_game', handle_join_game, namespace=namespace)
    socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
    socketio.on_event('make_move', handle_make_move, namespace=namespace)
