"""Custom exception hierarchy for the submission scoring service."""

from errors.exceptions import (
    BadRequestError,
    MissingAuthorizationError,
    NotFoundError,
    SubmissionError,
)

__all__ = [
    "BadRequestError",
    "MissingAuthorizationError",
    "NotFoundError",
    "SubmissionError",
]
