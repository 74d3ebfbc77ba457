"""
Domain errors raised by services and rendered by the API exception handler

Every error carries a stable machine-readable kind (``error``) and the HTTP
status it maps to, so callers can branch on the kind instead of the message.
"""


class QuizHubError(Exception):
    """Base class for all expected failures"""

    status_code = 500
    error = "internal_error"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.error,
            "message": self.message,
            "status_code": self.status_code,
        }


class UnauthorizedError(QuizHubError):
    status_code = 401
    error = "unauthorized"
    default_message = "Authentication required"


class ForbiddenError(QuizHubError):
    status_code = 403
    error = "forbidden"
    default_message = "You do not have permission to perform this action"


class NotEnrolledError(ForbiddenError):
    error = "not_enrolled"
    default_message = "You are not enrolled in this quiz"


class NotApprovedError(ForbiddenError):
    """Educator exists but has not been approved by an admin yet"""
    error = "not_approved"
    default_message = "Your educator account is pending approval"


class NotFoundError(QuizHubError):
    status_code = 404
    error = "not_found"
    default_message = "Resource not found"


class ConflictError(QuizHubError):
    status_code = 409
    error = "conflict"
    default_message = "The request conflicts with the current state"


class AlreadyEnrolledError(ConflictError):
    error = "already_enrolled"
    default_message = "You are already enrolled in this quiz"


class QuizInactiveError(ConflictError):
    error = "quiz_inactive"
    default_message = "This quiz is not currently active"


class MaxAttemptsReachedError(ConflictError):
    error = "max_attempts_reached"
    default_message = "You have reached the maximum number of attempts for this quiz"


class AlreadySubmittedError(ConflictError):
    error = "already_submitted"
    default_message = "This attempt has already been submitted"


class NotCompletedError(ConflictError):
    error = "not_completed"
    default_message = "This attempt has not been completed yet"


class EmailTakenError(ConflictError):
    error = "email_taken"
    default_message = "User with this email already exists"


class InvalidInputError(QuizHubError):
    status_code = 400
    error = "validation_error"
    default_message = "Invalid input"


class InternalError(QuizHubError):
    """Store or other unexpected failure; the message never carries internals"""


class RateLimitExceededError(QuizHubError):
    status_code = 429
    error = "rate_limit_exceeded"
    default_message = "Too many requests"

    def __init__(self, message: str = None, retry_after: int = 60):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["retry_after"] = self.retry_after
        return body
