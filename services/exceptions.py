# services/exceptions.py
"""
Domain errors raised by the services layer.

Controllers let these propagate; the app factory turns them into
``{"success": False, "error": ...}`` responses with ``status_code``.
"""


class BookingTrackerError(Exception):
    """Base class for all expected failures."""

    status_code = 500

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self):
        payload = {'success': False, 'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(BookingTrackerError):
    """Malformed or out-of-range input."""

    status_code = 400


class ConflictError(BookingTrackerError):
    """Uniqueness violation or duplicate catalog entry. Never retried."""

    status_code = 400


class NotFoundError(BookingTrackerError):
    status_code = 404


class AuthError(BookingTrackerError):
    status_code = 401


class ForbiddenError(BookingTrackerError):
    status_code = 403


class IntegrityGuardError(BookingTrackerError):
    """Refused delete/resize because dependents still reference the target."""

    status_code = 400

    def __init__(self, message, blocking_count):
        self.blocking_count = blocking_count
        super().__init__(message, details={'blocking_count': blocking_count})


class AttachmentStoreError(BookingTrackerError):
    """The photo store failed an operation."""

    status_code = 500
