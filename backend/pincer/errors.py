"""Caller-local errors raised by the rules engine and the room manager.

Each error carries the message that is sent back to the originating socket
as ``error_message``. None of them leaves shared room or game state modified.
"""


class GameError(Exception):
    message = 'Request failed.'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(GameError):
    message = 'Room not found.'


class NotYourTurn(GameError):
    message = 'It is not your turn!'


class InvalidMove(GameError):
    message = 'Invalid Move'


class InvalidIdentity(GameError):
    message = 'invalid token'
