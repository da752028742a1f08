"""Session lifecycle: waiting -> active -> complete.

Each participant writes only its own fields (status, violations, task);
`complete` is the one field either side may write, and it is written as an
idempotent set of the terminal value. Reports carry the reporter's id
(`creator_id` or the `friend_id` issued on join) so one side cannot write the
other's fields. Transitions are conditional writes against the state they
were decided from.
"""

import uuid

from flask import current_app

from focusbuddy.errors import (
    InvalidTransitionError,
    NotParticipantError,
    SessionValidationError,
)
from focusbuddy.models import (
    BuddySession,
    generate_session_id,
    ROLES,
    ROLE_FRIEND,
    STATUS_WAITING,
    STATUS_ACTIVE,
    STATUS_COMPLETE,
    PRESENCE_WAITING,
    PRESENCE_FOCUSED,
    PRESENCE_AWAY,
)
from focusbuddy.store import SessionStore
from . import clock
from .countdown import seconds_remaining
from .links import is_valid_session_id

PRESENCE_WRITE_ATTEMPTS = 3


def _cfg_int(name, default):
    try:
        return int(current_app.config.get(name, default))
    except (TypeError, ValueError):
        return default


def _validate_role(role):
    if role not in ROLES:
        raise SessionValidationError(f"role must be one of {', '.join(ROLES)}")
    return role


def _validate_new_session(creator_id, task, duration):
    if not creator_id or not str(creator_id).strip():
        raise SessionValidationError('creator_id is required')
    task = (task or '').strip()
    if not task:
        raise SessionValidationError('Please enter what you want to focus on')
    max_task = _cfg_int('MAX_TASK_LENGTH', 50)
    if len(task) > max_task:
        raise SessionValidationError(f'Task must be at most {max_task} characters')
    if isinstance(duration, bool):
        raise SessionValidationError('duration must be a whole number of minutes')
    try:
        duration = int(duration)
    except (TypeError, ValueError):
        raise SessionValidationError('duration must be a whole number of minutes')
    max_duration = _cfg_int('MAX_DURATION_MIN', 180)
    if not 1 <= duration <= max_duration:
        raise SessionValidationError(f'duration must be between 1 and {max_duration} minutes')
    return _clean_id(creator_id), task, duration


def create_session(creator_id, task, duration, session_id=None, store=None):
    store = store or SessionStore()
    creator_id, task, duration = _validate_new_session(creator_id, task, duration)
    if session_id is None:
        session_id = generate_session_id(_cfg_int('SESSION_ID_LENGTH', 8))
    elif not is_valid_session_id(session_id):
        raise SessionValidationError('session_id must be 4-32 lowercase letters or digits')

    record = store.create(
        session_id,
        creator_id=creator_id,
        task=task,
        duration=duration,
        status=STATUS_WAITING,
        created_at=clock.server_now_ms(),
        creator_status=PRESENCE_FOCUSED,
        friend_status=PRESENCE_WAITING,
        creator_violations=0,
        friend_violations=0,
    )
    current_app.logger.info(f"[session-create] id={session_id} creator={creator_id} duration={duration}")
    return record


def _clean_id(value):
    if value is None:
        return None
    return str(value).strip() or None


def join_session(session_id, friend_task=None, friend_id=None, store=None):
    """Attach the friend to a waiting session.

    The friend's id is supplied by the client or minted here; it is returned
    in the record and must accompany the friend's later status reports.
    """
    store = store or SessionStore()
    record = store.require(session_id)
    _require_joinable(record)

    friend_id = _clean_id(friend_id) or uuid.uuid4().hex
    if len(friend_id) > 64:
        raise SessionValidationError('friend_id must be at most 64 characters')
    fields = {'friend_status': PRESENCE_FOCUSED, 'friend_id': friend_id}
    friend_task = (friend_task or '').strip()
    if friend_task:
        max_task = _cfg_int('MAX_TASK_LENGTH', 50)
        if len(friend_task) > max_task:
            raise SessionValidationError(f'Task must be at most {max_task} characters')
        fields['friend_task'] = friend_task

    joined = store.transition(session_id, [
        BuddySession.status == STATUS_WAITING,
        BuddySession.friend_status == PRESENCE_WAITING,
    ], **fields)
    if joined is None:
        # Someone else joined or the creator started first
        _require_joinable(store.require(session_id))
        raise InvalidTransitionError('This session can no longer be joined')
    current_app.logger.info(f"[session-join] id={session_id}")
    return joined


def _require_joinable(record):
    if record.status != STATUS_WAITING:
        raise InvalidTransitionError('This session has already started')
    if record.friend_joined:
        raise InvalidTransitionError('A friend has already joined this session')


def start_session(session_id, creator_id, store=None):
    store = store or SessionStore()
    record = store.require(session_id)
    if record.creator_id != _clean_id(creator_id):
        raise NotParticipantError('Only the session creator can start the session')
    if record.status == STATUS_ACTIVE:
        # Idempotent start: startTime is stamped once
        return record
    if record.status != STATUS_WAITING:
        raise InvalidTransitionError('This session has already finished')
    if current_app.config.get('REQUIRE_FRIEND_TO_START', True) and not record.friend_joined:
        raise InvalidTransitionError('Wait for your friend to join before starting')

    started = store.transition(
        session_id,
        [BuddySession.status == STATUS_WAITING],
        status=STATUS_ACTIVE,
        start_time=clock.server_now_ms(),
    )
    if started is None:
        current = store.require(session_id)
        if current.status == STATUS_ACTIVE:
            # A concurrent start won; keep its startTime
            return current
        raise InvalidTransitionError('This session has already finished')
    current_app.logger.info(f"[session-start] id={session_id} start_time={started.start_time} duration={started.duration}")
    return started


def _mark_complete(record, store, now_ms, observer):
    completed = store.transition(
        record.id,
        [BuddySession.status == STATUS_ACTIVE],
        status=STATUS_COMPLETE,
        completed_at=now_ms,
    )
    if completed is None:
        current = store.require(record.id)
        if current.status == STATUS_COMPLETE:
            return current
        raise InvalidTransitionError('This session has not started yet')
    current_app.logger.info(f"[session-complete] id={record.id} by={observer} at={now_ms}")
    return completed


def complete_session(session_id, now_ms=None, store=None):
    """Set the session to complete once its countdown has run out.

    Writing complete again is a no-op, so both participants may report it.
    COMPLETE_TOLERANCE_SEC (0 unless configured) allows early completion to
    absorb client clock skew.
    """
    store = store or SessionStore()
    record = store.require(session_id)
    if record.status == STATUS_COMPLETE:
        return record
    if record.status != STATUS_ACTIVE:
        raise InvalidTransitionError('This session has not started yet')
    if now_ms is None:
        now_ms = clock.server_now_ms()
    remaining = seconds_remaining(now_ms, record.start_time, record.duration)
    if remaining > _cfg_int('COMPLETE_TOLERANCE_SEC', 0):
        raise InvalidTransitionError(f'{remaining} seconds remain in this session')
    return _mark_complete(record, store, now_ms, 'client')


def observe_session(session_id, now_ms=None, store=None):
    """Read a session and project its countdown.

    An observer that sees zero remaining completes the session.
    """
    store = store or SessionStore()
    record = store.require(session_id)
    if now_ms is None:
        now_ms = clock.server_now_ms()
    remaining = seconds_remaining(now_ms, record.start_time, record.duration)
    if record.status == STATUS_ACTIVE and remaining == 0:
        record = _mark_complete(record, store, now_ms, 'observer')
    if record.status == STATUS_COMPLETE:
        remaining = 0
    return record, remaining


def _require_reporter(record, role, participant_id):
    if record.status == STATUS_COMPLETE:
        raise InvalidTransitionError('This session is already complete')
    if role == ROLE_FRIEND and not record.friend_joined:
        raise InvalidTransitionError('Join the session before reporting status')
    if record.participant_id(role) != _clean_id(participant_id):
        raise NotParticipantError(f'Only the {role} can report this status')


def _report_presence(session_id, role, participant_id, presence, store):
    """Write one side's presence; returns (record, changed).

    Violations are counted only on a focused -> away edge while the session
    is active. The write is conditional on the state it was decided from,
    so a concurrent change makes us decide again.
    """
    store = store or SessionStore()
    _validate_role(role)
    for _ in range(PRESENCE_WRITE_ATTEMPTS):
        record = store.require(session_id)
        _require_reporter(record, role, participant_id)
        status_field = record.status_field(role)
        violations_field = record.violations_field(role)
        current = getattr(record, status_field)
        violations = getattr(record, violations_field)
        if current == presence:
            return record, False

        fields = {status_field: presence}
        if presence == PRESENCE_AWAY and record.status == STATUS_ACTIVE:
            fields[violations_field] = violations + 1
        updated = store.transition(session_id, [
            BuddySession.status == record.status,
            getattr(BuddySession, status_field) == current,
            getattr(BuddySession, violations_field) == violations,
        ], **fields)
        if updated is not None:
            return updated, True
    raise InvalidTransitionError('The session changed while saving your status, please retry')


def report_away(session_id, role, participant_id=None, store=None):
    """Mark one side as away; count a violation once per away period."""
    record, changed = _report_presence(session_id, role, participant_id, PRESENCE_AWAY, store)
    if changed:
        violations = getattr(record, record.violations_field(role))
        current_app.logger.info(f"[session-away] id={session_id} role={role} status={record.status} violations={violations}")
    return record


def report_return(session_id, role, participant_id=None, store=None):
    record, changed = _report_presence(session_id, role, participant_id, PRESENCE_FOCUSED, store)
    if changed:
        current_app.logger.info(f"[session-return] id={session_id} role={role}")
    return record
