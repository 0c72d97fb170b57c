from flask import Blueprint, current_app, jsonify

from pincer.errors import RoomNotFound
from pincer.lobby import summarize

main = Blueprint('main', __name__)


def _rooms():
    return current_app.extensions['room_manager']


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Pincer game server!'})


@main.route('/api/rooms', methods=['GET'])
def list_rooms():
    """
    Returns the lobby view: rooms waiting for a second player and the rest.
    """
    return jsonify(_rooms().snapshot(summarize))


@main.route('/api/rooms/<string:room_id>', methods=['GET'])
def get_room(room_id):
    """
    Returns the full state of one room.
    """
    rooms = _rooms()
    try:
        session = rooms.get(room_id)
    except RoomNotFound as exc:
        return jsonify({'error': exc.message}), 404

    return jsonify({
        'roomId': session.room_id,
        'size': session.engine.size,
        'players': list(session.players),
        'spectatorCount': len(session.spectators),
        'state': rooms.state_of(session),
    }), 200
