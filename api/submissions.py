"""Submission API: thin HTTP layer over :class:`SubmissionService`.

Authentication happens upstream; the caller's identity arrives in the
``X-User-Id`` and ``X-Account-Id`` headers.  Typed core errors are mapped
to HTTP status codes here and nowhere else.

Endpoints:
- ``POST   /api/submissions``  create
- ``GET    /api/submissions/{id}``  fetch one
- ``PUT    /api/submissions/{id}``  update answers / draft flag
- ``DELETE /api/submissions/{id}``  soft delete
- ``POST   /api/submissions/{id}/regrade``  rescore against current questions
- ``PATCH  /api/submissions/{id}/score``  manual score adjustment
- ``GET    /api/submissions/assessment/{id}``  list (optionally by ``userId``)
- ``DELETE /api/submissions/assessment/{id}``  soft delete all of an assessment
"""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from errors import BadRequestError, MissingAuthorizationError, NotFoundError, SubmissionError
from models.request import (
    AdjustScoreRequest,
    CreateSubmissionRequest,
    DeleteAssessmentSubmissionsResponse,
    UpdateSubmissionRequest,
)
from models.submission import Submission
from services.submission_service import SubmissionService, get_submission_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/submissions", tags=["submissions"])

_STATUS_FOR_ERROR: dict[type[SubmissionError], int] = {
    NotFoundError: 404,
    BadRequestError: 400,
    MissingAuthorizationError: 403,
}


def _raise_http(exc: SubmissionError) -> NoReturn:
    status = _STATUS_FOR_ERROR.get(type(exc), 400)
    raise HTTPException(status_code=status, detail=exc.message) from exc


async def _require_privileged(service: SubmissionService, account_id: str | None) -> None:
    if not await service.is_privileged(account_id):
        raise MissingAuthorizationError("Access denied")


@router.post("", response_model=Submission, status_code=201)
async def create_submission(
    req: CreateSubmissionRequest,
    x_user_id: str = Header(...),
    service: SubmissionService = Depends(get_submission_service),
) -> Submission:
    try:
        return await service.create_submission(
            req.assessment_id, x_user_id, req.answers, req.is_draft
        )
    except SubmissionError as exc:
        _raise_http(exc)


@router.get("/assessment/{assessment_id}", response_model=list[Submission])
async def list_submissions(
    assessment_id: str,
    user_id: str | None = Query(None, alias="userId"),
    x_user_id: str = Header(...),
    x_account_id: str | None = Header(None),
    service: SubmissionService = Depends(get_submission_service),
) -> list[Submission]:
    """Graders see their own submissions; faculty and admins may see everyone's."""
    try:
        if user_id is None or user_id != x_user_id:
            await _require_privileged(service, x_account_id)
        if user_id is None:
            return await service.get_submissions_by_assessment(assessment_id)
        return await service.get_submissions_by_assessment_and_user(assessment_id, user_id)
    except SubmissionError as exc:
        _raise_http(exc)


@router.delete("/assessment/{assessment_id}", response_model=DeleteAssessmentSubmissionsResponse)
async def delete_assessment_submissions(
    assessment_id: str,
    x_user_id: str = Header(...),
    x_account_id: str | None = Header(None),
    service: SubmissionService = Depends(get_submission_service),
) -> DeleteAssessmentSubmissionsResponse:
    try:
        await _require_privileged(service, x_account_id)
        count = await service.soft_delete_submissions_by_assessment(x_user_id, assessment_id)
    except SubmissionError as exc:
        _raise_http(exc)
    return DeleteAssessmentSubmissionsResponse(deleted_count=count)


@router.get("/{submission_id}", response_model=Submission)
async def get_submission(
    submission_id: str,
    x_user_id: str = Header(...),
    x_account_id: str | None = Header(None),
    service: SubmissionService = Depends(get_submission_service),
) -> Submission:
    try:
        submission = await service.get_submission(submission_id)
        if submission.user != x_user_id:
            await _require_privileged(service, x_account_id)
        return submission
    except SubmissionError as exc:
        _raise_http(exc)


@router.put("/{submission_id}", response_model=Submission)
async def update_submission(
    submission_id: str,
    req: UpdateSubmissionRequest,
    x_user_id: str = Header(...),
    x_account_id: str | None = Header(None),
    service: SubmissionService = Depends(get_submission_service),
) -> Submission:
    try:
        return await service.update_submission(
            submission_id, x_user_id, x_account_id, req.answers, req.is_draft
        )
    except SubmissionError as exc:
        _raise_http(exc)


@router.delete("/{submission_id}")
async def delete_submission(
    submission_id: str,
    x_user_id: str = Header(...),
    x_account_id: str | None = Header(None),
    service: SubmissionService = Depends(get_submission_service),
) -> dict:
    """Graders may delete their own submissions; admins and faculty any."""
    try:
        submission = await service.get_submission(submission_id)
        if submission.user != x_user_id:
            await _require_privileged(service, x_account_id)
        await service.delete_submission(submission_id, x_user_id)
    except SubmissionError as exc:
        _raise_http(exc)
    return {"message": "Submission deleted successfully"}


@router.post("/{submission_id}/regrade", response_model=Submission)
async def regrade_submission(
    submission_id: str,
    x_account_id: str | None = Header(None),
    service: SubmissionService = Depends(get_submission_service),
) -> Submission:
    try:
        await _require_privileged(service, x_account_id)
        return await service.regrade_submission(submission_id)
    except SubmissionError as exc:
        _raise_http(exc)


@router.patch("/{submission_id}/score", response_model=Submission)
async def adjust_submission_score(
    submission_id: str,
    req: AdjustScoreRequest,
    x_account_id: str | None = Header(None),
    service: SubmissionService = Depends(get_submission_service),
) -> Submission:
    try:
        await _require_privileged(service, x_account_id)
        return await service.adjust_submission_score(submission_id, req.adjusted_score)
    except SubmissionError as exc:
        _raise_http(exc)
