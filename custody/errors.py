"""Error types raised by the custody service.

Every user-facing error carries the HTTP status it maps to and a message that
is safe to return to the client.
"""


class CustodyError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(CustodyError):
    status_code = 400
    message = 'Invalid request'


class AuthenticationError(CustodyError):
    status_code = 401
    message = 'Authentication required'


class AuthorizationError(CustodyError):
    status_code = 403
    message = 'Access denied'


class NotFound(CustodyError):
    status_code = 404
    message = 'Wallet not found'


class Conflict(CustodyError):
    status_code = 409
    message = 'Wallet already exists for this employee'


class IntegrityError(CustodyError):
    """Stored key material failed authentication or does not match its address.

    The public message is fixed; the reason is only kept on the exception for
    server-side logs.
    """
    status_code = 500

    def __init__(self, reason='integrity check failed'):
        self.reason = reason
        super().__init__('Internal server error')


class OperationFailed(CustodyError):
    """An unexpected error surfaced as a generic 500 with a per-operation message."""
    status_code = 500


class ConfigurationError(Exception):
    """Raised at startup when required settings are missing or invalid."""


class AuditWriteFailure(Exception):
    """Raised inside an audit sink when an entry cannot be stored. Never escapes the sink."""
