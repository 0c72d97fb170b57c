import time

from pincer.game.pieces import Color


def payloads(received, name):
    # The test client keeps a plain `send` payload as-is, not wrapped in a list
    return [
        pkt['args'] if name == 'message' else pkt['args'][0]
        for pkt in received if pkt['name'] == name
    ]


def room_ids(rooms):
    return rooms.snapshot(lambda sessions: [s.room_id for s in sessions])


def start_room(sio_factory, size=13):
    """Alice creates a room and Bob joins it. Queues are flushed."""
    alice = sio_factory('alice')
    bob = sio_factory('bob')
    alice.emit('create_game', {'size': size})
    code = payloads(alice.get_received(), 'game_created')[0]['roomId']
    bob.emit('join_game', code)
    alice.get_received()
    bob.get_received()
    return alice, bob, code


def wait_until(predicate, timeout=3.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.05)
    return predicate()


def test_connect_without_token_is_refused(sio_factory):
    anonymous = sio_factory(token=None)
    assert not anonymous.is_connected()


def test_connect_lands_in_lobby(sio_factory):
    alice = sio_factory('alice')
    assert alice.is_connected()
    received = alice.get_received()
    assert payloads(received, 'lobby_update')
    assert 'openGames' in payloads(received, 'lobby_update')[0]


def test_create_game_replies_with_room_and_state(sio_factory, rooms):
    alice = sio_factory('alice')
    alice.get_received()

    alice.emit('create_game', {'size': 9})

    created = payloads(alice.get_received(), 'game_created')[0]
    assert created['team'] == 'AC'
    assert created['state']['size'] == 9
    assert created['state']['placementsLeft'] == 1
    assert created['roomId'] in room_ids(rooms)


def test_create_game_with_odd_size_uses_default(sio_factory):
    alice = sio_factory('alice')
    alice.emit('create_game', {'size': 'huge'})
    created = payloads(alice.get_received(), 'game_created')[0]
    assert created['state']['size'] == 13


def test_second_player_join_activates_the_room(sio_factory):
    alice = sio_factory('alice')
    bob = sio_factory('bob')
    alice.emit('create_game', {'size': 11})
    code = payloads(alice.get_received(), 'game_created')[0]['roomId']
    bob.get_received()

    bob.emit('join_game', code.lower())

    bob_events = bob.get_received()
    joined = payloads(bob_events, 'game_joined')[0]
    assert joined['roomId'] == code
    assert joined['team'] == 'BD'
    assert payloads(bob_events, 'state_update')

    alice_events = alice.get_received()
    assert payloads(alice_events, 'message') == ['Game Active: AC vs BD']
    assert payloads(alice_events, 'state_update')[0]['size'] == 11


def test_join_with_object_payload_and_spectator(sio_factory):
    alice, bob, code = start_room(sio_factory)
    carol = sio_factory('carol')
    carol.emit('join_game', {'roomId': code})
    joined = payloads(carol.get_received(), 'game_joined')[0]
    assert joined['team'] == 'spectator'


def test_join_unknown_room_reports_error(sio_factory, rooms):
    alice = sio_factory('alice')
    alice.get_received()

    alice.emit('join_game', 'NOPE99')

    assert payloads(alice.get_received(), 'error_message') == ['Room not found.']
    assert room_ids(rooms) == []


def test_moves_are_broadcast_to_the_room(sio_factory):
    alice, bob, code = start_room(sio_factory)

    alice.emit('make_move', {'roomId': code, 'r': 6, 'c': 6})

    for player in (alice, bob):
        state = payloads(player.get_received(), 'state_update')[0]
        assert state['grid'][6][6]['color'] == 'A'
        assert state['currentColor'] == 'B'
        assert state['placementsLeft'] == 2


def test_out_of_turn_move_is_reported_to_caller_only(sio_factory):
    alice, bob, code = start_room(sio_factory)

    bob.emit('make_move', {'roomId': code, 'r': 6, 'c': 6})

    assert payloads(bob.get_received(), 'error_message') == ['It is not your turn!']
    assert alice.get_received() == []


def test_illegal_move_is_reported(sio_factory, rooms):
    alice, bob, code = start_room(sio_factory)

    alice.emit('make_move', {'roomId': code, 'r': 0, 'c': 0})
    assert payloads(alice.get_received(), 'error_message') == ['Invalid Move']

    alice.emit('make_move', {'roomId': code, 'r': 'six', 'c': 6})
    assert payloads(alice.get_received(), 'error_message') == ['Invalid Move']

    assert rooms.get(code).engine.placements_left == 1


def test_move_in_unknown_room_is_silent(sio_factory):
    alice = sio_factory('alice')
    alice.get_received()
    alice.emit('make_move', {'roomId': 'ZZZZZZ', 'r': 6, 'c': 6})
    alice.emit('make_move', {'roomId': 'ZZZZZZ', 'r': 'x', 'c': 6})
    received = alice.get_received()
    assert payloads(received, 'error_message') == []
    assert payloads(received, 'state_update') == []


def test_winning_move_announces_game_over(sio_factory, rooms, place):
    alice, bob, code = start_room(sio_factory)
    engine = rooms.get(code).engine
    engine.placements_left = 2
    for r in range(12):
        place(engine, r, 6, Color.A)

    alice.emit('make_move', {'roomId': code, 'r': 12, 'c': 6})

    for player in (alice, bob):
        received = player.get_received()
        assert payloads(received, 'game_over') == ['A']
        assert payloads(received, 'state_update')[0]['winner'] == 'A'


def test_leave_keeps_the_seat(sio_factory, rooms):
    alice, bob, code = start_room(sio_factory)

    alice.emit('leave_game', code)

    assert payloads(alice.get_received(), 'lobby_update')
    assert rooms.get(code).players == ['alice', 'bob']

    alice.emit('join_game', code)
    assert payloads(alice.get_received(), 'game_joined')[0]['team'] == 'AC'


def test_empty_room_is_removed_after_grace(sio_factory, rooms):
    alice = sio_factory('alice')
    alice.emit('create_game', {'size': 9})
    code = payloads(alice.get_received(), 'game_created')[0]['roomId']

    alice.disconnect()

    assert code in room_ids(rooms)
    assert wait_until(lambda: code not in room_ids(rooms))


def test_reconnect_within_grace_keeps_the_room(sio_factory, rooms, flask_app):
    alice = sio_factory('alice')
    alice.emit('create_game', {'size': 9})
    code = payloads(alice.get_received(), 'game_created')[0]['roomId']
    alice.emit('make_move', {'roomId': code, 'r': 4, 'c': 4})
    alice.disconnect()

    again = sio_factory('alice')
    again.emit('join_game', code)
    joined = payloads(again.get_received(), 'game_joined')[0]

    time.sleep(flask_app.config['ROOM_CLEANUP_GRACE_SEC'] * 3)
    assert code in room_ids(rooms)
    assert joined['team'] == 'AC'
    assert joined['state']['grid'][4][4]['color'] == 'A'
