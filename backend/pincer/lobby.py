from typing import Any, Dict, Iterable

from flask import current_app

from pincer import socketio
from pincer.rooms import Session

LOBBY_ROOM = 'lobby'


def room_summary(session: Session) -> Dict[str, Any]:
    return {
        'id': session.room_id,
        'size': session.engine.size,
        'players': list(session.players),
        'playerCount': len(session.players),
        'spectatorCount': len(session.spectators),
        'winner': session.engine.winner_label,
    }


def summarize(sessions: Iterable[Session]) -> Dict[str, list]:
    """Split rooms into ones still waiting for a second player and the rest."""
    open_games, active_games = [], []
    for session in sessions:
        info = room_summary(session)
        if not session.engine.is_decided and not session.is_full:
            open_games.append(info)
        else:
            active_games.append(info)
    return {'openGames': open_games, 'activeGames': active_games}


def broadcast_lobby_state(rooms=None, namespace=None) -> None:
    # socketio.emit works from background tasks too
    if rooms is None:
        rooms = current_app.extensions['room_manager']
    if namespace is None:
        namespace = current_app.config.get('SOCKETIO_NAMESPACE', '/')
    socketio.emit('lobby_update', rooms.snapshot(summarize), to=LOBBY_ROOM, namespace=namespace)
