from flask import Blueprint, jsonify, request, current_app
from clueboard import socketio
from clueboard.errors import EmptyCatalog, InvalidTransition, StoreUnavailable
from clueboard.identity import resolve_player
from clueboard.services.games import get_services
from clueboard.services.games.registry import SessionNotFound
from clueboard.services.games.session import MAX_NAME_LENGTH


sessions = Blueprint('sessions', __name__)

MAX_LEADERBOARD_LIMIT = 50


def _notify(session) -> None:
    socketio.emit('state_update', {'session_id': session.session_id}, to=f"session:{session.session_id}", namespace='/ws')


def _get_session(session_id):
    return get_services().registry.get(session_id)


def _respond(session, status=200):
    _notify(session)
    return jsonify(session.to_dict()), status


@sessions.errorhandler(SessionNotFound)
def _session_not_found(exc):
    return jsonify({'error': 'Session not found'}), 404


@sessions.errorhandler(InvalidTransition)
def _invalid_transition(exc):
    return jsonify({'error': str(exc), 'mode': exc.mode}), 409


@sessions.errorhandler(EmptyCatalog)
def _empty_catalog(exc):
    current_app.logger.warning(f"[empty-catalog] {exc}")
    return jsonify({'error': 'No content available'}), 503


@sessions.errorhandler(ValueError)
def _bad_input(exc):
    return jsonify({'error': str(exc)}), 400


@sessions.route('/sessions', methods=['POST'])
def create_session():
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    if name is not None and not isinstance(name, str):
        return jsonify({'error': 'name must be a string'}), 400
    player = resolve_player(name)
    if len(player) > MAX_NAME_LENGTH:
        return jsonify({'error': f'Name must be at most {MAX_NAME_LENGTH} characters'}), 400
    session = get_services().registry.create(player)
    return jsonify(session.to_dict()), 201


@sessions.route('/sessions/<string:session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(_get_session(session_id).to_dict())


@sessions.route('/sessions/<string:session_id>', methods=['DELETE'])
def end_session(session_id):
    session = get_services().registry.end(session_id)
    if session is None:
        return jsonify({'error': 'Session not found'}), 404
    socketio.emit('session_ended', {'session_id': session_id}, to=f"session:{session_id}", namespace='/ws')
    return jsonify({'session_id': session_id, 'score': session.state.score})


@sessions.route('/sessions/<string:session_id>/start', methods=['POST'])
def start_round(session_id):
    data = request.get_json(silent=True) or {}
    mode = data.get('mode')
    if mode not in ('category', 'word'):
        return jsonify({'error': "mode must be 'category' or 'word'"}), 400
    category = data.get('category')
    if category is not None and category not in get_services().catalog.categories:
        return jsonify({'error': f'Unknown category {category!r}'}), 400
    session = _get_session(session_id)
    session.start(mode, category=category)
    return _respond(session)


@sessions.route('/sessions/<string:session_id>/guess', methods=['POST'])
def submit_guess(session_id):
    data = request.get_json(silent=True) or {}
    guess = data.get('guess')
    if not isinstance(guess, str):
        return jsonify({'error': 'guess is required'}), 400
    session = _get_session(session_id)
    transition = session.guess(guess)
    body = session.to_dict()
    body['points'] = transition.points
    _notify(session)
    return jsonify(body)


@sessions.route('/sessions/<string:session_id>/clue', methods=['POST'])
def reveal_clue(session_id):
    session = _get_session(session_id)
    session.reveal_clue()
    return _respond(session)


@sessions.route('/sessions/<string:session_id>/skip', methods=['POST'])
def skip_puzzle(session_id):
    session = _get_session(session_id)
    session.skip()
    return _respond(session)


@sessions.route('/sessions/<string:session_id>/category', methods=['POST'])
def change_category(session_id):
    data = request.get_json(silent=True) or {}
    category = data.get('category')
    if not category:
        return jsonify({'error': 'category is required'}), 400
    if category not in get_services().catalog.categories:
        return jsonify({'error': f'Unknown category {category!r}'}), 400
    session = _get_session(session_id)
    session.change_category(category)
    return _respond(session)


@sessions.route('/sessions/<string:session_id>/leaderboard', methods=['POST'])
def view_leaderboard(session_id):
    session = _get_session(session_id)
    session.view_leaderboard()
    return _respond(session)


@sessions.route('/sessions/<string:session_id>/back', methods=['POST'])
def go_back(session_id):
    session = _get_session(session_id)
    session.back()
    return _respond(session)


@sessions.route('/sessions/<string:session_id>/play-again', methods=['POST'])
def play_again(session_id):
    session = _get_session(session_id)
    session.play_again()
    return _respond(session)


@sessions.route('/sessions/<string:session_id>/name', methods=['POST'])
def rename_player(session_id):
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    if not isinstance(name, str):
        return jsonify({'error': 'name must be a string'}), 400
    session = _get_session(session_id)
    session.rename(name)
    return _respond(session)


@sessions.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    services = get_services()
    limit = request.args.get('limit', default=services.leaderboard_size, type=int)
    if limit is None or not 1 <= limit <= MAX_LEADERBOARD_LIMIT:
        return jsonify({'error': f'limit must be between 1 and {MAX_LEADERBOARD_LIMIT}'}), 400
    try:
        entries = services.store.top_k(limit)
    except StoreUnavailable:
        return jsonify({'error': 'Leaderboard temporarily unavailable'}), 503
    return jsonify({'entries': [e.to_dict() for e in entries]})


@sessions.route('/categories', methods=['GET'])
def list_categories():
    return jsonify({'categories': list(get_services().catalog.categories)})
