from flask import Blueprint, jsonify, request, current_app
from focusbuddy.errors import SessionError, SessionNotFoundError
from focusbuddy.services.sessions import lifecycle
from focusbuddy.services.sessions.clock import server_now_ms
from focusbuddy.services.sessions.links import build_join_link, parse_join_link
from focusbuddy.services.sessions.scheduler import schedule_completion


sessions = Blueprint('sessions', __name__)


@sessions.errorhandler(SessionError)
def handle_session_error(exc):
    # Store/network problems are retryable by the user; everything else is final
    if exc.status_code >= 500:
        current_app.logger.warning(f"[session-error] path={request.path} code={exc.code}")
    return jsonify(exc.to_dict()), exc.status_code


def _session_payload(record, remaining=None):
    payload = record.to_dict()
    payload['server_time'] = server_now_ms()
    if remaining is not None:
        payload['seconds_remaining'] = remaining
    return payload


def _link_for(session_id):
    return build_join_link(session_id, current_app.config.get('DEEP_LINK_SCHEME', 'focusnest'))


@sessions.route('/create', methods=['POST'])
def create_session():
    """
    Creates a waiting session for the creator and returns the shareable link.
    """
    data = request.get_json(silent=True) or {}
    session_id = data.get('session_id')
    record = lifecycle.create_session(
        data.get('creator_id'),
        data.get('task'),
        data.get('duration'),
        session_id=session_id.lower() if isinstance(session_id, str) else session_id,
    )
    payload = _session_payload(record)
    payload['link'] = _link_for(record.id)
    return jsonify(payload), 201


@sessions.route('/resolve', methods=['GET'])
def resolve_link():
    """
    Maps a join link (<scheme>://buddy/<id>) to an existing session id.
    """
    url = request.args.get('url', '')
    session_id = parse_join_link(url, current_app.config.get('DEEP_LINK_SCHEME'))
    if not session_id:
        raise SessionNotFoundError('This is not a valid session link.')
    record, _ = lifecycle.observe_session(session_id)
    return jsonify({'session_id': record.id, 'status': record.status})


@sessions.route('/<string:session_id>/join', methods=['POST'])
def join_session(session_id):
    """
    Joins as the friend. The response carries the friend id (`friend`) that
    the friend's status reports must send as participant_id.
    """
    data = request.get_json(silent=True) or {}
    record = lifecycle.join_session(
        session_id.lower(),
        friend_task=data.get('friend_task'),
        friend_id=data.get('friend_id'),
    )
    return jsonify(_session_payload(record))


@sessions.route('/<string:session_id>/start', methods=['POST'])
def start_session(session_id):
    """
    Starts the session: status becomes active and the server stamps startTime.
    """
    data = request.get_json(silent=True) or {}
    record = lifecycle.start_session(session_id.lower(), data.get('creator_id'))
    schedule_completion(current_app._get_current_object(), record.id)
    return jsonify(_session_payload(record))


@sessions.route('/<string:session_id>/complete', methods=['POST'])
def complete_session(session_id):
    record = lifecycle.complete_session(session_id.lower())
    return jsonify(_session_payload(record, remaining=0))


@sessions.route('/<string:session_id>/away', methods=['POST'])
def report_away(session_id):
    data = request.get_json(silent=True) or {}
    record = lifecycle.report_away(session_id.lower(), data.get('role'), data.get('participant_id'))
    return jsonify(_session_payload(record))


@sessions.route('/<string:session_id>/return', methods=['POST'])
def report_return(session_id):
    data = request.get_json(silent=True) or {}
    record = lifecycle.report_return(session_id.lower(), data.get('role'), data.get('participant_id'))
    return jsonify(_session_payload(record))


@sessions.route('/<string:session_id>/state', methods=['GET'])
def get_session_state(session_id):
    """
    Returns the session record with the projected countdown.
    """
    record, remaining = lifecycle.observe_session(session_id.lower())
    return jsonify(_session_payload(record, remaining=remaining))
