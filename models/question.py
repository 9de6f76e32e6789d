"""Question models: the closed set of assessment question variants.

Every variant carries a ``type`` tag used as the pydantic discriminator, so a
raw document such as ``{"type": "Scale", "scaleMax": 5, ...}`` parses straight
into :class:`ScaleQuestion` through the :data:`Question` union.

Definition-time invariants (scale label ordering, number scoring ranges) are
enforced here; the scorer assumes they hold.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import Field, model_validator

from models.base import CamelModel, new_id

MULTIPLE_CHOICE = "Multiple Choice"
MULTIPLE_RESPONSE = "Multiple Response"
SCALE = "Scale"
NUMBER = "Number"
DATE = "Date"
TEAM_MEMBER_SELECTION = "Team Member Selection"
NUSNET_ID = "NUSNET ID"
NUSNET_EMAIL = "NUSNET Email"
SHORT_RESPONSE = "Short Response"
LONG_RESPONSE = "Long Response"
UNDECIDED = "Undecided"

QUESTION_TYPES: tuple[str, ...] = (
    MULTIPLE_CHOICE,
    MULTIPLE_RESPONSE,
    SCALE,
    NUMBER,
    DATE,
    TEAM_MEMBER_SELECTION,
    NUSNET_ID,
    NUSNET_EMAIL,
    SHORT_RESPONSE,
    LONG_RESPONSE,
    UNDECIDED,
)


class BaseQuestion(CamelModel):
    """Fields shared by every question variant."""

    id: str = Field(default_factory=new_id)
    text: str = ""
    is_required: bool = False
    is_locked: bool = False
    custom_instruction: str | None = None


# ── Scored variants ──────────────────────────────────────────


class QuestionOption(CamelModel):
    """A selectable option and the points it awards."""

    text: str
    points: float = 0


class MultipleChoiceQuestion(BaseQuestion):
    type: Literal["Multiple Choice"] = MULTIPLE_CHOICE
    options: list[QuestionOption] = Field(default_factory=list)
    is_scored: bool = False


class MultipleResponseQuestion(BaseQuestion):
    """Select-any question with partial-credit and negative-marking policy."""

    type: Literal["Multiple Response"] = MULTIPLE_RESPONSE
    options: list[QuestionOption] = Field(default_factory=list)
    is_scored: bool = False
    allow_partial_marks: bool = False
    allow_negative: bool = False
    are_wrong_answers_penalized: bool = False


class ScaleLabel(CamelModel):
    """A breakpoint on a scale: answering ``value`` awards ``points``."""

    value: float
    label: str = ""
    points: float = 0


class ScaleQuestion(BaseQuestion):
    """Scale question; scores interpolate linearly between label breakpoints."""

    type: Literal["Scale"] = SCALE
    scale_max: int
    labels: list[ScaleLabel]
    is_scored: bool = False

    @model_validator(mode="after")
    def _check_labels(self) -> ScaleQuestion:
        if len(self.labels) < 2:
            raise ValueError("Scale questions need at least two labels")
        ordered = sorted(self.labels, key=lambda lb: lb.value)
        for prev, cur in zip(ordered, ordered[1:]):
            if cur.value == prev.value:
                raise ValueError(f"Duplicate scale label value {cur.value}")
            if cur.points < prev.points:
                raise ValueError(
                    "Scale label points must not decrease as the value increases"
                )
        return self


class NumberScoringRange(CamelModel):
    min_value: float
    max_value: float
    points: float


class NumberQuestion(BaseQuestion):
    """Numeric answer, scored proportionally (direct) or by ranges."""

    type: Literal["Number"] = NUMBER
    max_number: float
    is_scored: bool = False
    scoring_method: Literal["direct", "range", "None"] = "None"
    max_points: float | None = None
    scoring_ranges: list[NumberScoringRange] | None = None

    @model_validator(mode="after")
    def _check_ranges(self) -> NumberQuestion:
        if self.scoring_method != "range":
            return self
        if not self.scoring_ranges:
            raise ValueError("Range scoring needs at least one scoring range")
        for rng in self.scoring_ranges:
            if rng.min_value > rng.max_value:
                raise ValueError(
                    f"Scoring range minValue {rng.min_value} exceeds maxValue {rng.max_value}"
                )
        return self


# ── Unscored variants ────────────────────────────────────────


class DateQuestion(BaseQuestion):
    type: Literal["Date"] = DATE
    is_range: bool = False
    date_picker_placeholder: str | None = None
    min_date: datetime | None = None
    max_date: datetime | None = None


class TeamMemberSelectionQuestion(BaseQuestion):
    """Identifies the student(s) a submission grades."""

    type: Literal["Team Member Selection"] = TEAM_MEMBER_SELECTION


class NUSNETIDQuestion(BaseQuestion):
    type: Literal["NUSNET ID"] = NUSNET_ID
    short_response_placeholder: str | None = None


class NUSNETEmailQuestion(BaseQuestion):
    type: Literal["NUSNET Email"] = NUSNET_EMAIL
    short_response_placeholder: str | None = None


class ShortResponseQuestion(BaseQuestion):
    type: Literal["Short Response"] = SHORT_RESPONSE
    short_response_placeholder: str | None = None


class LongResponseQuestion(BaseQuestion):
    type: Literal["Long Response"] = LONG_RESPONSE
    long_response_placeholder: str | None = None


class UndecidedQuestion(BaseQuestion):
    """Placeholder question whose type has not been chosen yet."""

    type: Literal["Undecided"] = UNDECIDED


Question = Annotated[
    Union[
        MultipleChoiceQuestion,
        MultipleResponseQuestion,
        ScaleQuestion,
        NumberQuestion,
        DateQuestion,
        TeamMemberSelectionQuestion,
        NUSNETIDQuestion,
        NUSNETEmailQuestion,
        ShortResponseQuestion,
        LongResponseQuestion,
        UndecidedQuestion,
    ],
    Field(discriminator="type"),
]
