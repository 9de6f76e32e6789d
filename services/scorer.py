"""Answer scoring: pure functions from (question, answer, assessment) to points.

Each scored question type has its own algorithm:

- Multiple Choice: points of the selected option.
- Multiple Response: all-or-nothing, or partial credit with optional
  negative marking.
- Scale: linear interpolation between label breakpoints.
- Number: proportional (``direct``) or range lookup with interpolation
  between ranges (``range``).

Every raw score is multiplied by the assessment's scaling factor, so a
submission total lands on the assessment's ``maxMarks``.  Unscored question
types always score 0.
"""

from __future__ import annotations

import logging

from models.answer import (
    BaseAnswer,
    MultipleChoiceAnswer,
    MultipleResponseAnswer,
    NumberAnswer,
    ScaleAnswer,
)
from models.assessment import Assessment
from models.question import (
    BaseQuestion,
    MultipleChoiceQuestion,
    MultipleResponseQuestion,
    NumberQuestion,
    NumberScoringRange,
    ScaleQuestion,
)

logger = logging.getLogger(__name__)


def scaling_factor(assessment: Assessment) -> float:
    """Ratio of the assessment's max marks to the questions' total marks.

    Returns 1 when scaling is disabled or either total is zero/absent.
    """
    if (
        assessment.max_marks == 0
        or not assessment.scale_to_max_marks
        or not assessment.questions_total_marks
    ):
        return 1.0
    return assessment.max_marks / assessment.questions_total_marks


def calculate_answer_score(
    question: BaseQuestion, answer: BaseAnswer, assessment: Assessment
) -> float:
    """Score one answer against its question, scaled for the assessment.

    The answer is assumed to have passed validation against the question.
    An answer whose variant does not fit the question scores 0.
    """
    if isinstance(question, MultipleChoiceQuestion):
        raw = (
            score_multiple_choice(question, answer)
            if isinstance(answer, MultipleChoiceAnswer)
            else 0.0
        )
    elif isinstance(question, MultipleResponseQuestion):
        raw = (
            score_multiple_response(question, answer)
            if isinstance(answer, MultipleResponseAnswer)
            else 0.0
        )
    elif isinstance(question, ScaleQuestion):
        raw = score_scale(question, answer) if isinstance(answer, ScaleAnswer) else 0.0
    elif isinstance(question, NumberQuestion):
        raw = score_number(question, answer) if isinstance(answer, NumberAnswer) else 0.0
    else:
        # Date, Team Member Selection, NUSNET ID/Email, Short/Long Response, Undecided
        raw = 0.0
    score = raw * scaling_factor(assessment)
    logger.debug("Question %s (%s) scored %s", question.id, question.type, score)
    return score


def score_multiple_choice(question: MultipleChoiceQuestion, answer: MultipleChoiceAnswer) -> float:
    if not question.is_scored:
        return 0.0
    for option in question.options:
        if option.text == answer.value:
            return option.points
    return 0.0


def score_multiple_response(
    question: MultipleResponseQuestion, answer: MultipleResponseAnswer
) -> float:
    """Score a multi-select answer.

    Without partial marks the selection must be exactly the set of options
    with positive points.  With partial marks the chosen options' points are
    summed; the total is clamped at zero unless wrong answers are penalized
    and negative totals are allowed.
    """
    if not question.is_scored:
        return 0.0

    selected = set(answer.values or [])
    chosen = [opt for opt in question.options if opt.text in selected]
    total = sum(opt.points for opt in chosen)

    if not question.allow_partial_marks:
        correct = [opt for opt in question.options if opt.points > 0]
        all_correct_chosen = all(opt.text in selected for opt in correct)
        chosen_has_incorrect = any(opt.points <= 0 for opt in chosen)
        if all_correct_chosen and not chosen_has_incorrect:
            return max(total, 0.0)
        return 0.0

    if question.are_wrong_answers_penalized and question.allow_negative:
        return total
    return max(total, 0.0)


def score_scale(question: ScaleQuestion, answer: ScaleAnswer) -> float:
    """Interpolate linearly between the labels bracketing the answer value."""
    if not question.is_scored:
        return 0.0

    labels = sorted(question.labels, key=lambda lb: lb.value)
    value = answer.value
    if value <= labels[0].value:
        return labels[0].points
    if value >= labels[-1].value:
        return labels[-1].points

    for low, high in zip(labels, labels[1:]):
        if value == low.value:
            return low.points
        if low.value < value < high.value:
            return _interpolate(low.value, low.points, high.value, high.points, value)
        if value == high.value:
            return high.points
    return 0.0  # unreachable with sorted, unique labels


def score_number(question: NumberQuestion, answer: NumberAnswer) -> float:
    if not question.is_scored:
        return 0.0

    value = answer.value
    if question.scoring_method == "direct":
        if question.max_number == 0:
            return 0.0
        return (value / question.max_number) * (question.max_points or 0)

    if question.scoring_method == "range" and question.scoring_ranges:
        return _score_number_range(question.scoring_ranges, value)

    return 0.0


def _score_number_range(ranges: list[NumberScoringRange], value: float) -> float:
    """Points for ``value`` under range scoring.

    A value inside a range gets that range's points.  Between two ranges the
    points are interpolated from the lower range's ``(maxValue, points)`` to
    the higher range's ``(minValue, points)``.  Above every range the last
    range's points apply; below every range the points ramp up from
    ``(0, 0)`` to the first range's ``(minValue, points)``.
    """
    for rng in ranges:
        if rng.min_value <= value <= rng.max_value:
            return rng.points

    lower: NumberScoringRange | None = None
    higher: NumberScoringRange | None = None
    for rng in ranges:
        if rng.max_value < value and (lower is None or rng.max_value > lower.max_value):
            lower = rng
        elif rng.min_value > value and (higher is None or rng.min_value < higher.min_value):
            higher = rng

    if lower is not None and higher is not None:
        return _interpolate(lower.max_value, lower.points, higher.min_value, higher.points, value)
    if lower is not None:
        return lower.points
    if higher is not None:
        return _interpolate(0.0, 0.0, higher.min_value, higher.points, value)
    return 0.0


def _interpolate(x0: float, y0: float, x1: float, y1: float, x: float) -> float:
    if x1 == x0:
        return y1
    return y0 + (y1 - y0) / (x1 - x0) * (x - x0)
