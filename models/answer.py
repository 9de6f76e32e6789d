"""Answer models: one variant per question type, tagged ``"<type> Answer"``.

Payload fields are typed as ``Any``: a Number answer sent as
``{"value": "abc"}`` parses, and the validator then rejects it with a
:class:`~errors.BadRequestError` naming the question.  ``score`` is written
by the scorer only.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import Field

from models import question as q
from models.base import CamelModel, new_id


class BaseAnswer(CamelModel):
    id: str = Field(default_factory=new_id)
    question: str  # id of the answered question
    score: float | None = None


class MultipleChoiceAnswer(BaseAnswer):
    type: Literal["Multiple Choice Answer"] = "Multiple Choice Answer"
    value: Any = None


class MultipleResponseAnswer(BaseAnswer):
    type: Literal["Multiple Response Answer"] = "Multiple Response Answer"
    values: Any = None


class ScaleAnswer(BaseAnswer):
    type: Literal["Scale Answer"] = "Scale Answer"
    value: Any = None


class NumberAnswer(BaseAnswer):
    type: Literal["Number Answer"] = "Number Answer"
    value: Any = None


class DateAnswer(BaseAnswer):
    type: Literal["Date Answer"] = "Date Answer"
    value: Any = None
    start_date: Any = None
    end_date: Any = None


class TeamMemberSelectionAnswer(BaseAnswer):
    type: Literal["Team Member Selection Answer"] = "Team Member Selection Answer"
    selected_user_ids: Any = Field(default_factory=list)


class NUSNETIDAnswer(BaseAnswer):
    type: Literal["NUSNET ID Answer"] = "NUSNET ID Answer"
    value: Any = None


class NUSNETEmailAnswer(BaseAnswer):
    type: Literal["NUSNET Email Answer"] = "NUSNET Email Answer"
    value: Any = None


class ShortResponseAnswer(BaseAnswer):
    type: Literal["Short Response Answer"] = "Short Response Answer"
    value: Any = None


class LongResponseAnswer(BaseAnswer):
    type: Literal["Long Response Answer"] = "Long Response Answer"
    value: Any = None


class UndecidedAnswer(BaseAnswer):
    type: Literal["Undecided Answer"] = "Undecided Answer"


Answer = Annotated[
    Union[
        MultipleChoiceAnswer,
        MultipleResponseAnswer,
        ScaleAnswer,
        NumberAnswer,
        DateAnswer,
        TeamMemberSelectionAnswer,
        NUSNETIDAnswer,
        NUSNETEmailAnswer,
        ShortResponseAnswer,
        LongResponseAnswer,
        UndecidedAnswer,
    ],
    Field(discriminator="type"),
]

# Question tag -> the only answer tag accepted for it.
ANSWER_TYPE_FOR_QUESTION: dict[str, str] = {
    q.MULTIPLE_CHOICE: "Multiple Choice Answer",
    q.MULTIPLE_RESPONSE: "Multiple Response Answer",
    q.SCALE: "Scale Answer",
    q.NUMBER: "Number Answer",
    q.DATE: "Date Answer",
    q.TEAM_MEMBER_SELECTION: "Team Member Selection Answer",
    q.NUSNET_ID: "NUSNET ID Answer",
    q.NUSNET_EMAIL: "NUSNET Email Answer",
    q.SHORT_RESPONSE: "Short Response Answer",
    q.LONG_RESPONSE: "Long Response Answer",
    q.UNDECIDED: "Undecided Answer",
}
