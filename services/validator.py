"""Submission validation: window, answer shape and grader/target uniqueness.

All checks raise :class:`~errors.BadRequestError` on the first violation so
a mutating operation aborts before anything is persisted.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import TypeAdapter, ValidationError

from errors import BadRequestError
from models.answer import (
    ANSWER_TYPE_FOR_QUESTION,
    BaseAnswer,
    DateAnswer,
    MultipleChoiceAnswer,
    MultipleResponseAnswer,
    NumberAnswer,
    ScaleAnswer,
    TeamMemberSelectionAnswer,
)
from models.assessment import Assessment, Granularity
from models.question import (
    DateQuestion,
    MultipleChoiceQuestion,
    MultipleResponseQuestion,
    NumberQuestion,
    ScaleQuestion,
    TeamMemberSelectionQuestion,
)
from models.submission import Submission
from services.document_store import DocumentStore

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)


def _as_utc(moment: datetime) -> datetime:
    # Naive datetimes are stored as UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def validate_submission_period(assessment: Assessment, now: datetime) -> None:
    """Reject submissions outside ``[startDate, endDate]``."""
    now = _as_utc(now)
    if _as_utc(assessment.start_date) > now or (
        assessment.end_date is not None and _as_utc(assessment.end_date) < now
    ):
        raise BadRequestError("Assessment is not open for submissions at this time")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _is_date(value: Any) -> bool:
    if value is None or value == "":
        return False
    try:
        _datetime_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def validate_answers(assessment: Assessment, answers: Iterable[BaseAnswer]) -> None:
    """Check every answer against its question in ``assessment``.

    Answers must reference a question of this assessment, carry the answer
    type paired with that question's type, and satisfy the per-type value
    constraints.
    """
    for answer in answers:
        question_id = answer.question
        question = assessment.find_question(question_id)
        if question is None:
            raise BadRequestError(
                f"Question {question_id} not found in this assessment", question_id
            )

        expected = ANSWER_TYPE_FOR_QUESTION[question.type]
        if answer.type != expected:
            raise BadRequestError(
                f'Answer type "{answer.type}" does not match question type '
                f'"{question.type}" for question {question_id}',
                question_id,
            )

        if isinstance(question, TeamMemberSelectionQuestion):
            _check_team_member_selection(assessment, answer, question_id)
        elif isinstance(question, MultipleChoiceQuestion):
            _check_multiple_choice(question, answer, question_id)
        elif isinstance(question, MultipleResponseQuestion):
            _check_multiple_response(question, answer, question_id)
        elif isinstance(question, ScaleQuestion):
            _check_scale(question, answer, question_id)
        elif isinstance(question, DateQuestion):
            _check_date(question, answer, question_id)
        elif isinstance(question, NumberQuestion):
            _check_number(question, answer, question_id)
        # NUSNET ID/Email, Short/Long Response and Undecided carry no value constraint.


def _check_team_member_selection(
    assessment: Assessment, answer: TeamMemberSelectionAnswer, question_id: str
) -> None:
    if not isinstance(answer.selected_user_ids, list):
        raise BadRequestError(f"Answers for question {question_id} must be an array", question_id)
    for user_id in answer.selected_user_ids:
        if not isinstance(user_id, str) or not user_id:
            raise BadRequestError(
                f"Invalid team member selected for question {question_id}", question_id
            )
    if assessment.granularity == Granularity.INDIVIDUAL and len(answer.selected_user_ids) > 1:
        raise BadRequestError(
            f"Only one team member can be selected for question {question_id}", question_id
        )


def _check_multiple_choice(
    question: MultipleChoiceQuestion, answer: MultipleChoiceAnswer, question_id: str
) -> None:
    if not any(option.text == answer.value for option in question.options):
        raise BadRequestError(f"Invalid option selected for question {question_id}", question_id)


def _check_multiple_response(
    question: MultipleResponseQuestion, answer: MultipleResponseAnswer, question_id: str
) -> None:
    if not isinstance(answer.values, list):
        raise BadRequestError(f"Answers for question {question_id} must be an array", question_id)
    texts = {option.text for option in question.options}
    for value in answer.values:
        if not isinstance(value, str) or value not in texts:
            raise BadRequestError(
                f"Invalid option selected for question {question_id}", question_id
            )


def _check_scale(question: ScaleQuestion, answer: ScaleAnswer, question_id: str) -> None:
    if not _is_number(answer.value) or answer.value < 1 or answer.value > question.scale_max:
        raise BadRequestError(f"Invalid scale value for question {question_id}", question_id)


def _check_date(question: DateQuestion, answer: DateAnswer, question_id: str) -> None:
    if question.is_range:
        if not (_is_date(answer.start_date) and _is_date(answer.end_date)):
            raise BadRequestError(
                f"Invalid date range provided for question {question_id}", question_id
            )
    elif not _is_date(answer.value):
        raise BadRequestError(f"Invalid date provided for question {question_id}", question_id)


def _check_number(question: NumberQuestion, answer: NumberAnswer, question_id: str) -> None:
    if not _is_number(answer.value):
        raise BadRequestError(f"Answer for question {question_id} must be a number", question_id)
    if answer.value < 0 or answer.value > question.max_number:
        raise BadRequestError(f"Invalid number value for question {question_id}", question_id)


async def check_submission_uniqueness(
    store: DocumentStore,
    assessment_id: str,
    user_id: str,
    target_student_ids: Iterable[str],
) -> bool:
    """Return False if this grader already has a live submission for any target.

    Looks at the grader's non-deleted submissions for the assessment and
    compares their Team Member Selection targets with ``target_student_ids``.
    """
    previous = await store.find(
        Submission,
        lambda s: s.assessment == assessment_id and s.user == user_id and not s.deleted,
    )
    already_graded: set[str] = set()
    for submission in previous:
        for answer in submission.team_member_answers():
            if isinstance(answer.selected_user_ids, list):
                already_graded.update(answer.selected_user_ids)

    overlap = already_graded.intersection(target_student_ids)
    if overlap:
        logger.debug(
            "Grader %s already graded %s in assessment %s",
            user_id, sorted(overlap), assessment_id,
        )
        return False
    return True
