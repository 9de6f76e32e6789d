"""Submission and per-student result ledger documents."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar

from pydantic import Field

from models.answer import Answer, TeamMemberSelectionAnswer
from models.base import CamelModel, new_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Submission(CamelModel):
    """One grading act: a grader's answers against an assessment.

    ``user`` is the grader, not necessarily the graded student; the graded
    students are the ``selectedUserIds`` of the Team Member Selection answer.
    """

    collection: ClassVar[str] = "submissions"

    id: str = Field(default_factory=new_id)
    assessment: str
    user: str
    answers: list[Answer] = Field(default_factory=list)
    submitted_at: datetime = Field(default_factory=utcnow)
    score: float = 0
    adjusted_score: float | None = None
    submission_release_number: int = 0
    is_draft: bool = False
    deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    def team_member_answers(self) -> list[TeamMemberSelectionAnswer]:
        return [a for a in self.answers if isinstance(a, TeamMemberSelectionAnswer)]


class MarkEntry(CamelModel):
    """One grader's score for one student, tied to the submission that produced it."""

    marker: str
    submission: str
    score: float


class AssessmentResult(CamelModel):
    """Aggregate of every mark a student received for one assessment.

    The document id is derived from (assessment, student) so lazy creation
    and upserts address a single document.
    """

    collection: ClassVar[str] = "assessment_results"

    id: str
    assessment: str
    student: str
    marks: list[MarkEntry] = Field(default_factory=list)
    average_score: float = 0

    @staticmethod
    def key_for(assessment_id: str, student_id: str) -> str:
        return f"{assessment_id}:{student_id}"

    def find_mark(self, submission_id: str) -> MarkEntry | None:
        for entry in self.marks:
            if entry.submission == submission_id:
                return entry
        return None
