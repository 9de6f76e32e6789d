"""API request / response models."""

from __future__ import annotations

from pydantic import Field

from models.answer import Answer
from models.base import CamelModel


class CreateSubmissionRequest(CamelModel):
    """POST /api/submissions request body."""

    assessment_id: str
    answers: list[Answer] = Field(default_factory=list)
    is_draft: bool = False


class UpdateSubmissionRequest(CamelModel):
    """PUT /api/submissions/{id} request body."""

    answers: list[Answer] = Field(default_factory=list)
    is_draft: bool = False


class AdjustScoreRequest(CamelModel):
    """PATCH /api/submissions/{id}/score request body."""

    adjusted_score: float = Field(allow_inf_nan=False)


class DeleteAssessmentSubmissionsResponse(CamelModel):
    """DELETE /api/submissions/assessment/{id} response body."""

    deleted_count: int
