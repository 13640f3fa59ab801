"""Exception types shared by the engine, services and HTTP layer.

`QuizAppError` subclasses are expected failures that map onto an HTTP
status. `BatteryIntegrityError` is different: it means stored data broke
an invariant the engine relies on, and is surfaced as a generic 500.
"""

from enum import Enum
from typing import List, Optional


class QuizAppError(Exception):
    status_code = 400

    def __init__(self, detail: str, issues: Optional[List[str]] = None):
        super().__init__(detail)
        self.detail = detail
        self.issues = issues or []


class NotFoundError(QuizAppError):
    status_code = 404


class ForbiddenError(QuizAppError):
    status_code = 403


class ConflictError(QuizAppError):
    status_code = 409


class ValidationFailedError(QuizAppError):
    status_code = 400


class Rejection(str, Enum):
    """Reasons a battery submission is refused before grading."""
    ALREADY_COMPLETE = "already_complete"
    OUTDATED = "outdated"
    QUIZ_NOT_OPEN = "quiz_not_open"


_REJECTION_STATUS = {
    Rejection.ALREADY_COMPLETE: 409,
    Rejection.OUTDATED: 409,
    Rejection.QUIZ_NOT_OPEN: 403,
}


class SubmissionRejected(QuizAppError):
    def __init__(self, reason: Rejection, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.status_code = _REJECTION_STATUS[reason]


class BatteryIntegrityError(RuntimeError):
    """A battery or quiz violated an engine invariant."""
