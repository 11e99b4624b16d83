def _events(sio_client, name):
    return [pkt for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_ping(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' for pkt in received)


def test_subscribe_room_sends_snapshot(sio_client, client, services):
    room = client.post('/api/rooms').get_json()
    sio_client.get_received('/ws')  # flush

    sio_client.emit('subscribe', {'channel': 'room', 'id': room['id']}, namespace='/ws')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'subscribed' in names
    snapshot = next(pkt for pkt in received if pkt['name'] == 'room_snapshot')
    assert snapshot['args'][0]['data']['code'] == room['code']


def test_subscribe_rejects_unknown_channel(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('subscribe', {'channel': 'everything', 'id': 1}, namespace='/ws')
    assert _events(sio_client, 'error')


def test_players_channel_receives_joins(sio_client, client, services):
    room = client.post('/api/rooms').get_json()
    sio_client.emit('subscribe', {'channel': 'players', 'id': room['id']}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post('/api/rooms/join', json={'code': room['code'], 'name': 'Alice'})

    updates = _events(sio_client, 'players_update')
    assert updates
    assert [p['name'] for p in updates[-1]['args'][0]] == ['Alice']


def test_round_updates_reach_room_watchers_without_word(sio_client, client, services):
    room = client.post('/api/rooms').get_json()
    alice = client.post('/api/rooms/join', json={'code': room['code'], 'name': 'Alice'}).get_json()['player']
    client.post('/api/rooms/join', json={'code': room['code'], 'name': 'Bob'})
    sio_client.emit('subscribe', {'channel': 'room', 'id': room['id']}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post(f"/api/rooms/{room['id']}/start", json={'player_id': alice['id']})

    received = sio_client.get_received('/ws')
    room_updates = [pkt['args'][0] for pkt in received if pkt['name'] == 'room_update']
    round_updates = [pkt['args'][0] for pkt in received if pkt['name'] == 'round_update']
    assert room_updates[-1]['status'] == 'playing'
    assert round_updates and round_updates[0]['round_number'] == 1
    assert round_updates[0]['word'] is None
    assert round_updates[0]['hint1'] is None
    assert round_updates[0]['hint2'] is None


def test_unsubscribe_stops_updates(sio_client, client, services):
    room = client.post('/api/rooms').get_json()
    sio_client.emit('subscribe', {'channel': 'players', 'id': room['id']}, namespace='/ws')
    sio_client.emit('unsubscribe', {'channel': 'players', 'id': room['id']}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post('/api/rooms/join', json={'code': room['code'], 'name': 'Alice'})

    assert not _events(sio_client, 'players_update')


def test_round_snapshot_hides_unrevealed_hints(sio_client, client, services):
    room = client.post('/api/rooms').get_json()
    alice = client.post('/api/rooms/join', json={'code': room['code'], 'name': 'Alice'}).get_json()['player']
    client.post('/api/rooms/join', json={'code': room['code'], 'name': 'Bob'})
    state = client.post(f"/api/rooms/{room['id']}/start", json={'player_id': alice['id']}).get_json()
    sio_client.get_received('/ws')  # flush

    sio_client.emit('subscribe', {'channel': 'round', 'id': state['round']['id']}, namespace='/ws')
    snapshot = _events(sio_client, 'round_snapshot')[0]['args'][0]['data']
    assert snapshot['hint1'] is None
    assert snapshot['hint2'] is None
    assert 55 <= snapshot['time_remaining'] <= 60
