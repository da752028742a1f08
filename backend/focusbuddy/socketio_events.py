from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from focusbuddy import socketio
from focusbuddy.errors import SessionError
from focusbuddy.models import PRESENCE_AWAY, PRESENCE_FOCUSED, STATUS_COMPLETE
from focusbuddy.services.sessions import lifecycle
from focusbuddy.services.sessions.clock import server_now_ms, offset_for
from focusbuddy.services.sessions.countdown import seconds_remaining
from focusbuddy.services.sessions.events import observers, CHANGE_DELETED
from typing import Callable, Optional


# Unsubscribe handle for the store -> room broadcaster
_broadcast_unsubscribe: Optional[Callable[[], None]] = None


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room(session_id: str) -> str:
    return f"session:{session_id}"


def _snapshot(record: dict) -> dict:
    now = server_now_ms()
    payload = dict(record)
    payload['server_time'] = now
    if payload.get('status') == STATUS_COMPLETE:
        payload['seconds_remaining'] = 0
    else:
        payload['seconds_remaining'] = seconds_remaining(now, payload.get('startTime'), payload['duration'])
    return payload


def broadcast_change(change) -> None:
    """Fan a committed store write out to everyone in the session room.

    Emitting to the room (rather than to individual sids) goes through the
    Socket.IO message queue when one is configured, so subscribers held by
    other server processes receive it too.
    """
    room = _room(change.session_id)
    if change.kind == CHANGE_DELETED:
        socketio.emit('session_ended', {'session_id': change.session_id}, to=room, namespace='/ws')
        socketio.close_room(room, namespace='/ws')
        return
    socketio.emit('session_update', _snapshot(change.record), to=room, namespace='/ws')


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws', 'server_time': server_now_ms()})


def handle_disconnect(reason=None):
    # Room membership is dropped by Socket.IO itself
    current_app.logger.debug(f"[ws-disconnect] sid={_get_sid()} reason={reason}")


def handle_join_session(data=None):
    session_id = ((data or {}).get('session_id') or '').lower()
    if not session_id:
        emit('error', {'error': 'session_id is required', 'code': 'invalid_request'})
        return
    try:
        record, _ = lifecycle.observe_session(session_id)
    except SessionError as exc:
        emit('error', exc.to_dict())
        return
    join_room(_room(session_id))
    emit('joined', {'room': _room(session_id)})
    emit('session_update', _snapshot(record.to_dict()))


def handle_leave_session(data=None):
    session_id = ((data or {}).get('session_id') or '').lower()
    if not session_id:
        emit('error', {'error': 'session_id is required', 'code': 'invalid_request'})
        return
    leave_room(_room(session_id))
    emit('left', {'room': _room(session_id)})


def handle_sync_clock(data=None):
    now = server_now_ms()
    payload = {'server_time': now}
    client_time = (data or {}).get('client_time')
    if isinstance(client_time, (int, float)) and not isinstance(client_time, bool):
        payload['offset'] = offset_for(int(client_time), now)
        payload['client_time'] = client_time
    emit('clock', payload)


def handle_status_ping(data=None):
    """Fire-and-forget presence report; failures are dropped.

    Payload: {session_id, role, participant_id, status}. `participant_id` is
    the creator_id for the creator and the friend id issued on join.
    """
    data = data or {}
    session_id = (data.get('session_id') or '').lower()
    role = data.get('role')
    participant_id = data.get('participant_id')
    status = data.get('status')
    try:
        if status == PRESENCE_AWAY:
            lifecycle.report_away(session_id, role, participant_id)
        elif status == PRESENCE_FOCUSED:
            lifecycle.report_return(session_id, role, participant_id)
    except SessionError as exc:
        # The next successful ping corrects the record
        current_app.logger.debug(f"[status-ping-dropped] session={session_id} role={role} reason={exc.code}")


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers and the room broadcaster.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    global _broadcast_unsubscribe
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_session', handle_join_session, namespace=namespace)
        socketio.on_event('leave_session', handle_leave_session, namespace=namespace)
        socketio.on_event('sync_clock', handle_sync_clock, namespace=namespace)
        socketio.on_event('status_ping', handle_status_ping, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)

    # One broadcaster per process, even if create_app runs more than once
    if _broadcast_unsubscribe is not None:
        _broadcast_unsubscribe()
    _broadcast_unsubscribe = observers.subscribe_all(broadcast_change)
