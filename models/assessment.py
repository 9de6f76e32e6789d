"""Assessment model: the scoring configuration plus its question set."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import Field

from models.base import CamelModel, new_id
from models.question import Question


class Granularity(str, Enum):
    """Whether an assessment grades teams or individual students."""

    INDIVIDUAL = "individual"
    TEAM = "team"


class Assessment(CamelModel):
    collection: ClassVar[str] = "assessments"

    id: str = Field(default_factory=new_id)
    course: str = ""
    assessment_name: str = ""
    start_date: datetime
    end_date: datetime | None = None
    granularity: Granularity = Granularity.TEAM
    max_marks: float = 0
    scale_to_max_marks: bool = False
    questions_total_marks: float | None = 0
    are_submissions_editable: bool = False
    # Incremented whenever the question set changes.
    release_number: int = 0
    questions: list[Question] = Field(default_factory=list)

    def find_question(self, question_id: str) -> Question | None:
        """Return the question with ``question_id``, or None if it is not part of this assessment."""
        for question in self.questions:
            if question.id == question_id:
                return question
        return None
