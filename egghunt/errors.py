"""Error taxonomy for the hunt.

Every failure a participant or admin can trigger is a ``HuntError``. The
API layer renders them uniformly; the rules engine turns them into
rejected submissions.
"""


class HuntError(Exception):
    """Base class for all game errors."""
    status_code = 400
    reason = 'error'
    message = 'An error occurred'

    def __init__(self, message=None):
        if message:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message, 'reason': self.reason}


class InvalidInput(HuntError):
    reason = 'invalid_input'
    message = 'Invalid input'


class DuplicateUsername(HuntError):
    status_code = 409
    reason = 'duplicate_username'
    message = 'Username already taken'

    def __init__(self, username=None):
        self.username = username
        super().__init__()


class DuplicateCode(HuntError):
    status_code = 409
    reason = 'duplicate_code'
    message = 'Code already exists'


class InvalidCode(HuntError):
    reason = 'invalid_code'
    message = 'Invalid code'


class AlreadyFound(HuntError):
    status_code = 409
    reason = 'already_found'
    message = 'Code already found!'


class NotFound(HuntError):
    status_code = 404
    reason = 'not_found'
    message = 'Not found'


class RecordingFailed(HuntError):
    status_code = 409
    reason = 'recording_failed'
    message = 'Failed to record code'


class StoreUnavailable(HuntError):
    """The database could not be reached or dropped the connection."""
    status_code = 503
    reason = 'store_unavailable'
    message = 'Database error, please try again'
