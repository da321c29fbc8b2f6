"""
Error taxonomy for the quiz core.

Every failure raised by the lifecycle manager, the assessment engine and
the result aggregator is a ``QuizError``. The HTTP status code travels with
the exception so the blueprint error handler can render it without knowing
which service raised it.
"""
from typing import List, Optional


class QuizError(Exception):
    """Base class for quiz core failures."""
    status_code = 500

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> dict:
        payload = {'success': False, 'error': self.message}
        if self.details:
            payload['errors'] = self.details
        return payload


class AuthorizationError(QuizError):
    """Caller role is not allowed to perform the action."""
    status_code = 403


class NotFoundError(QuizError):
    """Target does not exist or is not visible to the caller."""
    status_code = 404


class ConflictError(QuizError):
    """Duplicate quiz name or attempt number collision."""
    status_code = 409


class ValidationError(QuizError):
    """Malformed or inconsistent input, including illegal state transitions."""
    status_code = 400


class StorageFailure(QuizError):
    """Transaction aborted or store unavailable. Nothing was written."""
    status_code = 503
