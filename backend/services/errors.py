"""
Matchmaker CRM - Error taxonomy

Every error raised by the services carries the HTTP status it maps to.
server.py converts them to {"detail": ...} responses.
"""


class CRMError(Exception):
    """Base class for errors surfaced verbatim to the caller"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(CRMError):
    status_code = 401
    default_message = "Not authenticated"


class AccountDisabled(CRMError):
    status_code = 403
    default_message = "account disabled"


class Forbidden(CRMError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(CRMError):
    status_code = 404
    default_message = "Not found"


class Conflict(CRMError):
    status_code = 409
    default_message = "Conflict"

    def __init__(self, message: str = None, current_status: str = None):
        super().__init__(message)
        self.current_status = current_status


class ValidationFailed(CRMError):
    status_code = 422
    default_message = "Invalid input"


class BadRequest(CRMError):
    status_code = 400
    default_message = "Bad request"


class PromotionFailed(CRMError):
    """Payment accepted but the lead could not be marked paid"""
    status_code = 500
    default_message = "Payment accepted but lead update failed; it will be reconciled"
