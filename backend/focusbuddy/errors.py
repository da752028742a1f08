"""Session error taxonomy shared by the HTTP routes and the socket handlers."""


class SessionError(Exception):
    status_code = 400
    code = 'session_error'
    default_message = 'Session request failed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class SessionValidationError(SessionError):
    status_code = 400
    code = 'invalid_request'
    default_message = 'Invalid session request'


class NotParticipantError(SessionError):
    status_code = 403
    code = 'not_participant'
    default_message = 'You are not a participant in this session'


class SessionNotFoundError(SessionError):
    status_code = 404
    code = 'not_found'
    default_message = 'This session link is invalid or has expired.'


class SessionExistsError(SessionError):
    status_code = 409
    code = 'already_exists'
    default_message = 'A session with this id already exists'


class InvalidTransitionError(SessionError):
    status_code = 409
    code = 'invalid_transition'
    default_message = 'This action is not allowed in the current session state'


class StoreUnavailableError(SessionError):
    status_code = 503
    code = 'store_unavailable'
    default_message = 'Could not reach the session store. Please try again.'
