from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from focusbuddy import db
from focusbuddy.models import BuddySession, STATUS_WAITING, PRESENCE_WAITING
from focusbuddy.errors import SessionExistsError, SessionNotFoundError, StoreUnavailableError
from focusbuddy.services.sessions.clock import server_now_ms, offset_for
from focusbuddy.services.sessions.events import (
    observers,
    SessionChange,
    CHANGE_CREATED,
    CHANGE_UPDATED,
    CHANGE_DELETED,
)


class SessionStore:
    """Keyed session records with push-based change notification.

    Every write commits before returning, so the writer's next `get` sees it
    (read-your-writes). Subscribers are notified after the commit.
    """

    def __init__(self, registry=None):
        self._observers = registry or observers

    def _commit(self, action, session_id):
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"[store-error] action={action} id={session_id} error={exc}")
            raise StoreUnavailableError() from exc

    def get(self, session_id):
        try:
            return db.session.get(BuddySession, session_id)
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"[store-error] action=get id={session_id} error={exc}")
            raise StoreUnavailableError() from exc

    def require(self, session_id):
        record = self.get(session_id)
        if record is None:
            raise SessionNotFoundError()
        return record

    def create(self, session_id, **fields):
        if self.get(session_id) is not None:
            raise SessionExistsError()
        record = BuddySession(id=session_id, **fields)
        db.session.add(record)
        try:
            self._commit('create', session_id)
        except IntegrityError as exc:
            raise SessionExistsError() from exc
        self._observers.publish(SessionChange(session_id, CHANGE_CREATED, record.to_dict(), tuple(sorted(fields))))
        return record

    def update(self, session_id, **fields):
        """Partial write. Publishes only when a value actually changed."""
        record = self.require(session_id)
        changed = []
        for name, value in fields.items():
            if getattr(record, name) != value:
                setattr(record, name, value)
                changed.append(name)
        if not changed:
            return record
        db.session.add(record)
        self._commit('update', session_id)
        self._observers.publish(SessionChange(session_id, CHANGE_UPDATED, record.to_dict(), tuple(changed)))
        return record

    def transition(self, session_id, conditions, **fields):
        """Conditional write: apply `fields` only if the row still matches.

        `conditions` are column expressions checked in the same UPDATE, so
        two writers racing on the same precondition cannot both win. Returns
        the fresh record, or None when the row no longer matched.
        """
        try:
            matched = BuddySession.query.filter(
                BuddySession.id == session_id, *conditions
            ).update(fields, synchronize_session=False)
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.error(f"[store-error] action=transition id={session_id} error={exc}")
            raise StoreUnavailableError() from exc
        if not matched:
            db.session.rollback()
            return None
        self._commit('transition', session_id)
        record = self.require(session_id)
        self._observers.publish(SessionChange(session_id, CHANGE_UPDATED, record.to_dict(), tuple(fields)))
        return record

    def delete(self, session_id):
        record = self.require(session_id)
        db.session.delete(record)
        self._commit('delete', session_id)
        self._observers.publish(SessionChange(session_id, CHANGE_DELETED, None))

    def subscribe(self, session_id, on_change):
        return self._observers.subscribe(session_id, on_change)

    def server_time_offset(self, client_now_ms):
        return offset_for(client_now_ms)

    def purge_unjoined(self, older_than_hours, now_ms=None):
        """Delete waiting sessions nobody joined within the TTL."""
        if now_ms is None:
            now_ms = server_now_ms()
        cutoff = now_ms - int(older_than_hours) * 60 * 60 * 1000
        try:
            stale = BuddySession.query.filter(
                BuddySession.status == STATUS_WAITING,
                BuddySession.friend_status == PRESENCE_WAITING,
                BuddySession.created_at < cutoff,
            ).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreUnavailableError() from exc
        stale_ids = [s.id for s in stale]
        for record in stale:
            db.session.delete(record)
        self._commit('purge', ','.join(stale_ids))
        for session_id in stale_ids:
            self._observers.publish(SessionChange(session_id, CHANGE_DELETED, None))
        current_app.logger.info(f"[session-purge] removed={len(stale_ids)} older_than={older_than_hours}h")
        return len(stale_ids)
