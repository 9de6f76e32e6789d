"""Domain-specific exceptions for the submission scoring service.

These exceptions let the API layer distinguish between "the thing you asked
for does not exist" and "the request is malformed or out of policy" without
the core assigning HTTP semantics itself.
"""

from __future__ import annotations


class SubmissionError(Exception):
    """Base class for typed submission-core errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(SubmissionError):
    """A referenced entity (submission, user, assessment, result) is absent.

    Soft-deleted submissions are reported through this error as well.
    """


class BadRequestError(SubmissionError):
    """Malformed or out-of-policy input.

    Covers answer validation, a closed submission window, permission denial
    on update and invalid manual score adjustments.  ``question_id`` is set
    when a single answer is at fault.
    """

    def __init__(self, message: str, question_id: str | None = None) -> None:
        self.question_id = question_id
        super().__init__(message)


class MissingAuthorizationError(SubmissionError):
    """The caller's account role does not allow the requested action."""
