from flask_socketio import join_room, leave_room, emit
from guessroom import socketio
from guessroom.services.games import get_services
from guessroom.services.games.feed import INSERT
from typing import Any, Dict

NAMESPACE = '/ws'
CHANNELS = ('room', 'players', 'round', 'guesses')


def _channel_room(channel: str, key: Any) -> str:
    return f"{channel}:{key}"


def _parse_subscription(data):
    channel = (data or {}).get('channel')
    key = (data or {}).get('id')
    if channel not in CHANNELS:
        emit('error', {'message': f'channel must be one of {", ".join(CHANNELS)}'})
        return None
    try:
        key = int(key)
    except (TypeError, ValueError):
        emit('error', {'message': 'id is required'})
        return None
    return channel, key


def _snapshot(channel: str, key: int):
    services = get_services()
    store = services.store
    if channel == 'room':
        room = store.get_room(key)
        return services.coordinator.room_state(room) if room else None
    if channel == 'players':
        return [p.to_dict() for p in store.list_players(key)]
    if channel == 'round':
        round_ = store.get_round(key)
        return services.coordinator.round_payload(round_) if round_ else None
    return [g.to_dict() for g in store.list_guesses(key)]


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_subscribe(data):
    parsed = _parse_subscription(data)
    if not parsed:
        return
    channel, key = parsed
    room = _channel_room(channel, key)
    join_room(room)
    emit('subscribed', {'room': room})
    emit(f'{channel}_snapshot', {'id': key, 'data': _snapshot(channel, key)})


def handle_unsubscribe(data):
    parsed = _parse_subscription(data)
    if not parsed:
        return
    channel, key = parsed
    room = _channel_room(channel, key)
    leave_room(room)
    emit('unsubscribed', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def _forward_change(table: str, event: str, record: Dict[str, Any]) -> None:
    """Fan a store change out to the Socket.IO rooms watching it."""
    if table == 'rooms':
        socketio.emit('room_update', record, to=_channel_room('room', record['id']), namespace=NAMESPACE)
    elif table == 'players':
        room_id = record['room_id']
        players = [p.to_dict() for p in get_services().store.list_players(room_id)]
        socketio.emit('players_update', players, to=_channel_room('players', room_id), namespace=NAMESPACE)
    elif table == 'game_rounds':
        socketio.emit('round_update', record, to=_channel_room('round', record['id']), namespace=NAMESPACE)
        # room watchers learn about new rounds without knowing their id
        socketio.emit('round_update', record, to=_channel_room('room', record['room_id']), namespace=NAMESPACE)
    elif table == 'guesses' and event == INSERT:
        socketio.emit('guess_added', record, to=_channel_room('guesses', record['round_id']), namespace=NAMESPACE)


def bridge_change_feed(services) -> None:
    services.feed.add_listener(_forward_change)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    # Primary namespace
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('subscribe', handle_subscribe, namespace=NAMESPACE)
    socketio.on_event('unsubscribe', handle_unsubscribe, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('subscribe', handle_subscribe, namespace='/')
        socketio.on_event('unsubscribe', handle_unsubscribe, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
