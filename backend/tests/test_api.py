def _create(client, **form):
    payload = {'num_players': 2, 'minutes': 1, 'increment': 0}
    payload.update(form)
    res = client.post('/api/clocks', json=payload)
    assert res.status_code == 201
    return res.get_json()


def _fire(flask_app, code, count=1):
    machine = flask_app.extensions['clock_registry'].get(code)
    return machine.ticker.fire(count)


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()
    health = client.get('/health').get_json()
    assert health == {'status': 'ok', 'testing': True}


def test_create_clock(client):
    data = _create(client, num_players=3, minutes=5, increment=2)
    assert len(data['clock_code']) == 4
    assert [p['name'] for p in data['players']] == ['Player 1', 'Player 2', 'Player 3']
    assert all(p['time_left'] == 300 and p['display'] == '05:00' for p in data['players'])
    assert data['total_display'] == '15:00'
    assert data['config'] == {'seat_count': 3, 'seconds_per_seat': 300, 'increment_seconds': 2}
    assert data['running'] is False
    assert data['can_undo'] is False


def test_create_clock_total_time_mode(client):
    data = _create(client, num_players=3, minutes=10, time_mode='total')
    assert [p['time_left'] for p in data['players']] == [200, 200, 200]


def test_create_clock_rejects_bad_setup(client):
    assert client.post('/api/clocks', json={'num_players': 50, 'minutes': 5}).status_code == 400
    assert client.post('/api/clocks', json={'num_players': 2, 'time_mode': 'weird'}).status_code == 400
    assert client.post('/api/clocks', json={'num_players': 2, 'increment': -3}).status_code == 400


def test_unknown_clock_is_404(client):
    assert client.get('/api/clocks/ZZZZ/state').status_code == 404
    assert client.post('/api/clocks/ZZZZ/undo').status_code == 404
    assert client.delete('/api/clocks/ZZZZ').status_code == 404


def test_turn_flow(flask_app, client):
    code = _create(client, increment=5)['clock_code']
    started = client.post(f'/api/clocks/{code}/press', json={'player_id': 0}).get_json()
    assert started['running'] is True
    assert started['wake_lock'] is True

    assert _fire(flask_app, code, 3) == 3
    state = client.get(f'/api/clocks/{code}/state').get_json()
    assert state['players'][0]['time_left'] == 57

    moved = client.post(f'/api/clocks/{code}/press', json={'player_id': 0}).get_json()
    assert moved['players'][0]['time_left'] == 62
    assert moved['current_player_index'] == 1
    assert moved['players'][1]['is_current'] is True

    paused = client.post(f'/api/clocks/{code}/toggle').get_json()
    assert paused['running'] is False
    assert paused['wake_lock'] is False

    undone = client.post(f'/api/clocks/{code}/undo').get_json()
    assert undone['running'] is True
    assert undone['history_depth'] == 2


def test_advance_and_resume_routes(client):
    code = _create(client)['clock_code']
    # advance is ignored while paused
    state = client.post(f'/api/clocks/{code}/advance', json={'player_id': 0}).get_json()
    assert state['current_player_index'] == 0
    state = client.post(f'/api/clocks/{code}/resume', json={'player_id': 0}).get_json()
    assert state['running'] is True
    state = client.post(f'/api/clocks/{code}/advance', json={'player_id': 0}).get_json()
    assert state['current_player_index'] == 1


def test_seat_actions_require_player_id(client):
    code = _create(client)['clock_code']
    assert client.post(f'/api/clocks/{code}/press', json={}).status_code == 400
    assert client.post(f'/api/clocks/{code}/advance', json={'player_id': 'x'}).status_code == 400


def test_tick_expiry_through_registry(flask_app, client):
    code = _create(client, num_players=2, minutes=1)['clock_code']
    client.post(f'/api/clocks/{code}/toggle')
    assert _fire(flask_app, code, 100) == 60
    state = client.get(f'/api/clocks/{code}/state').get_json()
    assert state['players'][0]['status'] == 'out_of_time'
    assert state['current_player_index'] == 1
    assert state['running'] is False


def test_add_time(client):
    code = _create(client)['clock_code']
    state = client.post(f'/api/clocks/{code}/players/1/time').get_json()
    assert state['players'][1]['time_left'] == 70
    state = client.post(f'/api/clocks/{code}/players/1/time', json={'seconds': -1000}).get_json()
    assert state['players'][1]['time_left'] == 0
    assert state['players'][1]['status'] == 'out_of_time'
    assert state['players'][1]['low_time'] is False
    state = client.post(f'/api/clocks/{code}/players/1/time', json={'seconds': 5}).get_json()
    assert state['players'][1]['status'] == 'active'
    assert state['players'][1]['low_time'] is True
    assert client.post(f'/api/clocks/{code}/players/1/time', json={'seconds': 'lots'}).status_code == 400


def test_elimination_notice(client):
    code = _create(client)['clock_code']
    client.post(f'/api/clocks/{code}/toggle')
    state = client.post(f'/api/clocks/{code}/players/0/eliminate').get_json()
    assert state['players'][0]['status'] == 'eliminated'
    assert state['current_player_index'] == 1
    assert state['notice'] is None
    state = client.post(f'/api/clocks/{code}/players/1/eliminate').get_json()
    assert state['notice'] == 'No active players left'
    assert state['running'] is False


def test_reorder(client):
    code = _create(client, num_players=3)['clock_code']
    state = client.post(f'/api/clocks/{code}/reorder', json={'from_index': 0, 'to_index': 2}).get_json()
    assert [p['id'] for p in state['players']] == [1, 2, 0]
    assert state['current_player_index'] == 2
    assert client.post(f'/api/clocks/{code}/reorder', json={'from_index': 0}).status_code == 400


def test_rename_all(client):
    code = _create(client)['clock_code']
    res = client.put(f'/api/clocks/{code}/names', json={'names': {'0': 'Ada', '1': 'Grace'}})
    assert res.status_code == 200
    assert [p['name'] for p in res.get_json()['players']] == ['Ada', 'Grace']
    assert client.put(f'/api/clocks/{code}/names', json={'names': ['Ada']}).status_code == 400
    assert client.put(f'/api/clocks/{code}/names', json={'names': {'first': 'Ada'}}).status_code == 400


def test_new_game(client):
    code = _create(client, num_players=3)['clock_code']
    client.post(f'/api/clocks/{code}/players/1/eliminate')
    client.post(f'/api/clocks/{code}/players/2/time', json={'seconds': 30})
    state = client.post(f'/api/clocks/{code}/new-game').get_json()
    assert [p['status'] for p in state['players']] == ['active', 'eliminated', 'active']
    assert [p['time_left'] for p in state['players']] == [60, 0, 60]
    assert state['can_undo'] is False
    state = client.post(f'/api/clocks/{code}/new-game', json={'preserve_eliminated': False}).get_json()
    assert [p['status'] for p in state['players']] == ['active'] * 3


def test_exit_discards_session_but_keeps_setup(client):
    code = _create(client, num_players=3, minutes=2)['clock_code']
    client.post(f'/api/clocks/{code}/players/0/time', json={'seconds': 30})
    res = client.delete(f'/api/clocks/{code}')
    assert res.status_code == 200
    state = client.get(f'/api/clocks/{code}/state').get_json()
    assert [p['time_left'] for p in state['players']] == [120, 120, 120]
    assert state['can_undo'] is False


def test_session_restored_from_store(flask_app, client):
    code = _create(client)['clock_code']
    client.post(f'/api/clocks/{code}/players/0/time', json={'seconds': 15})
    # Drop the live machine; the next request rebuilds it from kv_store
    flask_app.extensions['clock_registry']._machines.clear()
    state = client.get(f'/api/clocks/{code.lower()}/state').get_json()
    assert state['clock_code'] == code
    assert state['players'][0]['time_left'] == 75
    assert state['can_undo'] is True
