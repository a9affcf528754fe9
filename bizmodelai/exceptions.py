"""
Domain errors raised by the services and mapped to HTTP responses in main.py
"""


class BizModelError(Exception):
    """Base class for recoverable domain errors"""

    status_code = 400
    error = "bad_request"

    def __init__(self, message: str = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return cls.__doc__ or cls.error


class InvalidResponseShape(BizModelError):
    """Quiz response is malformed"""
    status_code = 400
    error = "invalid_response_shape"


class DuplicateEmail(BizModelError):
    """An account with this email already exists"""
    status_code = 400
    error = "duplicate_email"


class InvalidCredentials(BizModelError):
    """Invalid email or password"""
    status_code = 401
    error = "invalid_credentials"


class PaymentNotCompleted(BizModelError):
    """Payment required to access this report"""
    status_code = 402
    error = "payment_not_completed"


class Forbidden(BizModelError):
    """Access denied"""
    status_code = 403
    error = "forbidden"


class TemporaryUserCannotLogin(BizModelError):
    """This email belongs to a temporary account. Complete signup to set a password."""
    status_code = 403
    error = "temporary_user_cannot_login"


class NotFound(BizModelError):
    """Quiz attempt not found"""
    status_code = 404
    error = "not_found"


class UserNotFound(BizModelError):
    """User not found"""
    status_code = 404
    error = "user_not_found"


class AlreadyPaid(BizModelError):
    """User has already upgraded to a paid account"""
    status_code = 409
    error = "already_paid"


class EmailRequired(BizModelError):
    """An email address is required to send results"""
    status_code = 400
    error = "email_required"
