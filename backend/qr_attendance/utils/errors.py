"""Exception hierarchy shared by services and API handlers."""


class AttendanceError(Exception):
    """Base class for failures that are reported to the caller."""

    status_code = 400
    reason = 'ERROR'
    default_message = 'Request failed'

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AttendanceError):
    status_code = 400
    reason = 'VALIDATION_ERROR'
    default_message = 'Invalid input'

    def __init__(self, message: str = None, errors: list = None):
        self.errors = errors or []
        if message is None and self.errors:
            message = '; '.join(self.errors)
        super().__init__(message)


class InvalidToken(AttendanceError):
    status_code = 400
    reason = 'INVALID_TOKEN'
    default_message = 'Invalid QR code'


class ExpiredToken(AttendanceError):
    status_code = 400
    reason = 'EXPIRED_TOKEN'
    default_message = 'QR code has expired'


class DuplicateAttendance(AttendanceError):
    status_code = 400
    reason = 'DUPLICATE_ATTENDANCE'
    default_message = 'Attendance already marked for this session'


class SessionClosed(AttendanceError):
    status_code = 400
    reason = 'SESSION_CLOSED'
    default_message = 'This attendance session has ended'


class Unauthorized(AttendanceError):
    status_code = 401
    reason = 'UNAUTHORIZED'
    default_message = 'Authentication required'


class Forbidden(AttendanceError):
    status_code = 403
    reason = 'FORBIDDEN'
    default_message = 'You do not have access to this resource'


class AccountLocked(AttendanceError):
    status_code = 403
    reason = 'ACCOUNT_LOCKED'
    default_message = 'Account temporarily locked. Try again later'


class NotFound(AttendanceError):
    status_code = 404
    reason = 'NOT_FOUND'
    default_message = 'Resource not found'


class SessionNotFound(NotFound):
    reason = 'SESSION_NOT_FOUND'
    default_message = 'Attendance session not found'


class Conflict(AttendanceError):
    status_code = 409
    reason = 'CONFLICT'
    default_message = 'Resource already exists'


class DeliveryFailed(AttendanceError):
    status_code = 502
    reason = 'EMAIL_DELIVERY_FAILED'
    default_message = 'Failed to send email'
