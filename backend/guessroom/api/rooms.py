from flask import Blueprint, jsonify, request, current_app
from guessroom.models import WAITING
from guessroom.services.games import get_services
from guessroom.services.games.errors import GameError


rooms = Blueprint('rooms', __name__)


def _int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _room_or_404(room_id):
    room = get_services().store.get_room(room_id)
    if room is None:
        return None, (jsonify({'error': 'Room not found'}), 404)
    return room, None


@rooms.errorhandler(GameError)
def handle_game_error(exc):
    current_app.logger.error(f"[api-error] {exc}")
    return jsonify({'error': 'Storage unavailable, please retry'}), 503


@rooms.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


@rooms.route('/rooms', methods=['POST'])
def create_room():
    room = get_services().coordinator.create_room()
    if room is None:
        return jsonify({'error': 'Could not create room, please retry'}), 503
    return jsonify(room.to_dict()), 201


@rooms.route('/rooms/join', methods=['POST'])
def join_room():
    data = request.get_json(silent=True) or {}
    code = (data.get('code') or '').strip()
    name = (data.get('name') or '').strip()
    if not all([code, name]):
        return jsonify({'error': 'Room code and player name are required'}), 400
    if len(name) > 64:
        return jsonify({'error': 'Player name is too long'}), 400

    joined = get_services().coordinator.join_room(code, name)
    if joined is None:
        return jsonify({'error': 'Room not found'}), 404
    room, player = joined
    return jsonify({'room': room.to_dict(), 'player': player.to_dict()}), 201


@rooms.route('/rooms/<string:code>/state', methods=['GET'])
def get_room_state(code):
    services = get_services()
    room = services.store.find_room_by_code(code.upper())
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(services.coordinator.room_state(room))


@rooms.route('/rooms/<int:room_id>/start', methods=['POST'])
def start_game(room_id):
    data = request.get_json(silent=True) or {}
    player_id = _int_or_none(data.get('player_id'))
    services = get_services()
    room, error = _room_or_404(room_id)
    if error:
        return error
    if room.created_by is None or player_id != room.created_by:
        return jsonify({'error': 'Only the host may start the game'}), 403

    min_players = int(current_app.config.get('MIN_PLAYERS', 2))
    if room.status == WAITING and services.store.count_players(room_id) < min_players:
        return jsonify({'error': f'At least {min_players} players are required to start'}), 400

    # the coordinator also accepts a retry of a start that never created round #1
    if not services.coordinator.start_game(room_id):
        room = services.store.get_room(room_id)
        if room.status != WAITING and services.store.find_round(room_id, 1) is not None:
            return jsonify({'error': 'Game has already started'}), 409
        return jsonify({'error': 'Could not start the game, please retry'}), 503
    return jsonify(services.coordinator.room_state(services.store.get_room(room_id)))


@rooms.route('/rooms/<int:room_id>/settings', methods=['POST'])
def update_settings(room_id):
    data = request.get_json(silent=True) or {}
    player_id = _int_or_none(data.get('player_id'))
    round_time = _int_or_none(data.get('round_time'))
    total_rounds = _int_or_none(data.get('total_rounds'))
    room, error = _room_or_404(room_id)
    if error:
        return error
    if room.created_by is None or player_id != room.created_by:
        return jsonify({'error': 'Only the host may change settings'}), 403
    if not round_time or not total_rounds or round_time < 1 or total_rounds < 1:
        return jsonify({'error': 'round_time and total_rounds must be positive integers'}), 400

    services = get_services()
    if not services.coordinator.update_game_settings(room_id, round_time, total_rounds):
        return jsonify({'error': 'Settings were not applied'}), 400
    return jsonify(services.store.get_room(room_id).to_dict())


@rooms.route('/rooms/<int:room_id>/rounds/<int:round_id>/end', methods=['POST'])
def end_round(room_id, round_id):
    services = get_services()
    room, error = _room_or_404(room_id)
    if error:
        return error
    if not services.coordinator.end_round(room_id, round_id):
        return jsonify({'error': 'Round is not open'}), 409
    return jsonify(services.coordinator.room_state(services.store.get_room(room_id)))


@rooms.route('/rooms/<int:room_id>/next', methods=['POST'])
def next_round(room_id):
    data = request.get_json(silent=True) or {}
    current_round = _int_or_none(data.get('current_round'))
    if current_round is None:
        return jsonify({'error': 'current_round is required'}), 400
    services = get_services()
    room, error = _room_or_404(room_id)
    if error:
        return error
    if not services.coordinator.start_next_round(room_id, current_round):
        return jsonify({'error': 'Round already advanced'}), 409
    return jsonify(services.coordinator.room_state(services.store.get_room(room_id)))


@rooms.route('/rounds/<int:round_id>/guesses', methods=['POST'])
def submit_guess(round_id):
    data = request.get_json(silent=True) or {}
    player_id = _int_or_none(data.get('player_id'))
    guess = data.get('guess')
    time_remaining = data.get('time_remaining', 0)
    if player_id is None or not isinstance(guess, str) or not guess.strip():
        return jsonify({'error': 'player_id and guess are required'}), 400
    if not isinstance(time_remaining, (int, float)) or isinstance(time_remaining, bool):
        return jsonify({'error': 'time_remaining must be a number'}), 400

    services = get_services()
    if not services.coordinator.submit_guess(round_id, player_id, guess, time_remaining):
        return jsonify({'error': 'Guess not accepted'}), 400
    recorded = services.store.find_guess(round_id, player_id)
    return jsonify(recorded.to_dict()), 201


@rooms.route('/rounds/<int:round_id>/guesses', methods=['GET'])
def list_guesses(round_id):
    services = get_services()
    store = services.store
    round_ = store.get_round(round_id)
    if round_ is None:
        return jsonify({'error': 'Round not found'}), 404
    return jsonify({
        'round': services.coordinator.round_payload(round_),
        'guesses': [g.to_dict() for g in store.list_guesses(round_id)],
    })
