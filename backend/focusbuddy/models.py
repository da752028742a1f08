from focusbuddy import db
import string
import random

# Session lifecycle (monotonic) and per-participant presence values
STATUS_WAITING = 'waiting'
STATUS_ACTIVE = 'active'
STATUS_COMPLETE = 'complete'
SESSION_STATUSES = (STATUS_WAITING, STATUS_ACTIVE, STATUS_COMPLETE)

PRESENCE_WAITING = 'waiting'
PRESENCE_FOCUSED = 'focused'
PRESENCE_AWAY = 'away'
PRESENCE_VALUES = (PRESENCE_WAITING, PRESENCE_FOCUSED, PRESENCE_AWAY)

ROLE_CREATOR = 'creator'
ROLE_FRIEND = 'friend'
ROLES = (ROLE_CREATOR, ROLE_FRIEND)

SESSION_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id(length=8):
    """Generate a unique, short session id."""
    while True:
        session_id = ''.join(random.choices(SESSION_ID_ALPHABET, k=length))
        if not db.session.get(BuddySession, session_id):
            return session_id


class BuddySession(db.Model):
    __tablename__ = 'buddy_session'
    id = db.Column(db.String(32), primary_key=True)
    creator_id = db.Column(db.String(64), nullable=False)
    # Opaque id handed to the friend on join; nullable until someone joins
    friend_id = db.Column(db.String(64), nullable=True)
    task = db.Column(db.String(255), nullable=False)
    duration = db.Column(db.Integer, nullable=False)  # minutes
    status = db.Column(db.String(16), nullable=False, default=STATUS_WAITING, index=True)
    # Epoch milliseconds on the server clock
    created_at = db.Column(db.BigInteger, nullable=False)
    start_time = db.Column(db.BigInteger, nullable=True)
    completed_at = db.Column(db.BigInteger, nullable=True)
    creator_status = db.Column(db.String(16), nullable=False, default=PRESENCE_FOCUSED)
    friend_status = db.Column(db.String(16), nullable=False, default=PRESENCE_WAITING)
    friend_task = db.Column(db.String(255), nullable=True)
    creator_violations = db.Column(db.Integer, nullable=False, default=0)
    friend_violations = db.Column(db.Integer, nullable=False, default=0)

    @property
    def friend_joined(self):
        return self.friend_status != PRESENCE_WAITING

    def status_field(self, role):
        return 'creator_status' if role == ROLE_CREATOR else 'friend_status'

    def participant_id(self, role):
        return self.creator_id if role == ROLE_CREATOR else self.friend_id

    def violations_field(self, role):
        return 'creator_violations' if role == ROLE_CREATOR else 'friend_violations'

    def to_dict(self):
        data = {
            'id': self.id,
            'creator': self.creator_id,
            'task': self.task,
            'duration': self.duration,
            'status': self.status,
            'createdAt': self.created_at,
            'creatorStatus': self.creator_status,
            'friendStatus': self.friend_status,
            'creatorViolations': self.creator_violations,
            'friendViolations': self.friend_violations,
        }
        # Optional fields are omitted until they are written
        if self.start_time is not None:
            data['startTime'] = self.start_time
        if self.friend_id is not None:
            data['friend'] = self.friend_id
        if self.friend_task is not None:
            data['friendTask'] = self.friend_task
        if self.completed_at is not None:
            data['completedAt'] = self.completed_at
        return data

    def __repr__(self):
        return f'<BuddySession {self.id} {self.status}>'
