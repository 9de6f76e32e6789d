"""Submission lifecycle: create, update, delete, regrade and score adjustment.

A submission moves between Draft and Final (``isDraft``) and ends in
Deleted, a soft delete with no way back.  Every mutating operation
validates before it writes anything; once the submission is persisted the
result ledger is reconciled for each student it grades.

Per-answer scores are computed concurrently and joined before the total is
summed.  The submission and ledger writes are sequential; there is no
cross-document transaction.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime
from typing import Sequence

from config.settings import Settings, get_settings
from errors import BadRequestError, NotFoundError
from models.answer import Answer, BaseAnswer, TeamMemberSelectionAnswer
from models.assessment import Assessment
from models.submission import Submission, utcnow
from services.document_store import DocumentStore, get_document_store
from services.providers import (
    AssessmentProvider,
    StoreAssessmentProvider,
    StoreUserProvider,
    UserProvider,
)
from services.result_ledger import ResultLedger
from services.scorer import calculate_answer_score
from services.validator import (
    check_submission_uniqueness,
    validate_answers,
    validate_submission_period,
)

logger = logging.getLogger(__name__)


def target_student_ids(answers: Sequence[BaseAnswer]) -> list[str]:
    """Students graded by a submission, from its single Team Member Selection answer."""
    selections = [a for a in answers if isinstance(a, TeamMemberSelectionAnswer)]
    if len(selections) > 1:
        raise BadRequestError("Only one Team Member Selection Answer is allowed per submission")
    if not selections or not selections[0].selected_user_ids:
        raise BadRequestError("Missing Team Member Selection Answer")
    return list(dict.fromkeys(selections[0].selected_user_ids))


class SubmissionService:
    """Orchestrates validation, scoring, persistence and ledger reconciliation."""

    def __init__(
        self,
        store: DocumentStore,
        assessments: AssessmentProvider,
        users: UserProvider,
        ledger: ResultLedger,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._assessments = assessments
        self._users = users
        self._ledger = ledger
        self._settings = settings or get_settings()

    # -- helpers -------------------------------------------------------------

    async def _score_answers(
        self, assessment: Assessment, answers: Sequence[Answer]
    ) -> tuple[list[Answer], float]:
        async def score_one(answer: Answer) -> Answer:
            question = assessment.find_question(answer.question)
            if question is None:
                logger.warning(
                    "Question %s not found in assessment %s; scoring 0",
                    answer.question, assessment.id,
                )
                score = 0.0
            else:
                score = calculate_answer_score(question, answer, assessment)
            return answer.model_copy(update={"score": score})

        scored = list(await asyncio.gather(*(score_one(a) for a in answers)))
        total = sum(a.score for a in scored)
        return scored, total

    async def _get_active(self, submission_id: str) -> Submission:
        submission = await self._store.get(Submission, submission_id)
        if submission is None:
            raise NotFoundError("Submission not found.")
        if submission.deleted:
            raise NotFoundError("Submission not found (Deleted).")
        return submission

    async def is_privileged(self, account_id: str | None) -> bool:
        """True if the account's role may act on any grader's submission."""
        if not account_id:
            return False
        account = await self._users.get_account(account_id)
        return account is not None and account.role in self._settings.privileged_roles

    # -- queries -------------------------------------------------------------

    async def get_submission(self, submission_id: str) -> Submission:
        return await self._get_active(submission_id)

    async def get_submissions_by_assessment(self, assessment_id: str) -> list[Submission]:
        submissions = await self._store.find(
            Submission, lambda s: s.assessment == assessment_id and not s.deleted
        )
        return sorted(submissions, key=lambda s: s.submitted_at)

    async def get_submissions_by_assessment_and_user(
        self, assessment_id: str, user_id: str
    ) -> list[Submission]:
        submissions = await self._store.find(
            Submission,
            lambda s: s.assessment == assessment_id and s.user == user_id and not s.deleted,
        )
        return sorted(submissions, key=lambda s: s.submitted_at)

    # -- lifecycle -----------------------------------------------------------

    async def create_submission(
        self,
        assessment_id: str,
        user_id: str,
        answers: Sequence[Answer],
        is_draft: bool,
        *,
        now: datetime | None = None,
    ) -> Submission:
        now = now or utcnow()
        assessment = await self._assessments.get_assessment_with_questions(assessment_id)
        if await self._users.get_user(user_id) is None:
            raise NotFoundError("Submission creator not found")

        validate_submission_period(assessment, now)
        validate_answers(assessment, answers)
        targets = target_student_ids(answers)

        if self._settings.enforce_unique_targets and not await check_submission_uniqueness(
            self._store, assessment_id, user_id, targets
        ):
            logger.warning(
                "Rejected duplicate submission by %s for %s in assessment %s",
                user_id, targets, assessment_id,
            )
            raise BadRequestError(
                "A submission for the selected team member(s) already exists for this grader"
            )

        scored, total = await self._score_answers(assessment, answers)
        submission = Submission(
            assessment=assessment_id,
            user=user_id,
            answers=scored,
            submitted_at=now,
            score=total,
            submission_release_number=assessment.release_number,
            is_draft=is_draft,
        )
        await self._store.save(submission)

        for student_id in targets:
            await self._ledger.record_mark(assessment_id, student_id, user_id, submission.id, total)

        logger.info(
            "Created submission %s by %s for assessment %s (score=%s, draft=%s)",
            submission.id, user_id, assessment_id, total, is_draft,
        )
        return submission

    async def update_submission(
        self,
        submission_id: str,
        user_id: str,
        account_id: str | None,
        answers: Sequence[Answer],
        is_draft: bool,
        *,
        now: datetime | None = None,
    ) -> Submission:
        now = now or utcnow()
        submission = await self._get_active(submission_id)
        if await self._users.get_user(user_id) is None:
            raise NotFoundError("Submission updater not found")

        bypass = await self.is_privileged(account_id)
        if not bypass and submission.user != user_id:
            raise BadRequestError("You do not have permission to update this submission.")

        assessment = await self._assessments.get_assessment_with_questions(submission.assessment)
        validate_submission_period(assessment, now)
        validate_answers(assessment, answers)

        # A finalized submission is frozen while the question set is unchanged.
        if (
            not bypass
            and not assessment.are_submissions_editable
            and not submission.is_draft
            and assessment.release_number == submission.submission_release_number
        ):
            raise BadRequestError("Submissions are not editable for this assessment")

        targets = target_student_ids(answers)
        scored, total = await self._score_answers(assessment, answers)

        if total != submission.score:
            submission.adjusted_score = None
        submission.answers = scored
        submission.score = total
        submission.is_draft = is_draft
        submission.submitted_at = now
        submission.submission_release_number = assessment.release_number
        await self._store.save(submission)

        for student_id in targets:
            await self._ledger.update_mark(
                assessment.id, student_id, user_id, submission.id, total
            )

        logger.info(
            "Updated submission %s by %s (score=%s, draft=%s, bypass=%s)",
            submission.id, user_id, total, is_draft, bypass,
        )
        return submission

    async def delete_submission(
        self,
        submission_id: str,
        user_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Submission:
        """Soft-delete a submission.  Deleting twice is an error."""
        submission = await self._get_active(submission_id)
        submission.deleted = True
        submission.deleted_at = now or utcnow()
        submission.deleted_by = user_id
        await self._store.save(submission)
        logger.info("Soft-deleted submission %s", submission_id)
        return submission

    async def soft_delete_submissions_by_assessment(
        self,
        user_id: str,
        assessment_id: str,
        *,
        now: datetime | None = None,
    ) -> int:
        """Soft-delete every live submission of an assessment; returns the count."""
        await self._assessments.get_assessment_with_questions(assessment_id)
        now = now or utcnow()
        active = await self.get_submissions_by_assessment(assessment_id)
        for submission in active:
            submission.deleted = True
            submission.deleted_at = now
            submission.deleted_by = user_id
            await self._store.save(submission)
        logger.info(
            "Soft-deleted %d submissions of assessment %s", len(active), assessment_id
        )
        return len(active)

    async def adjust_submission_score(
        self, submission_id: str, adjusted_score: float
    ) -> Submission:
        """Set a manual score override; ``score`` and the ledger stay untouched."""
        submission = await self._get_active(submission_id)
        if not math.isfinite(adjusted_score):
            raise BadRequestError("Adjusted score must be a finite number.")
        if adjusted_score < 0:
            raise BadRequestError("Adjusted score cannot be negative.")
        submission.adjusted_score = adjusted_score
        await self._store.save(submission)
        return submission

    async def regrade_submission(
        self, submission_id: str, *, now: datetime | None = None
    ) -> Submission:
        """Rescore a submission against the assessment's current questions.

        Answers whose question was removed are dropped.  A soft-deleted
        submission is returned unchanged.
        """
        submission = await self._store.get(Submission, submission_id)
        if submission is None:
            raise NotFoundError(f"Submission with ID {submission_id} not found")
        if submission.deleted:
            logger.info("Skipping regrade of deleted submission %s", submission_id)
            return submission
        if await self._users.get_user(submission.user) is None:
            raise NotFoundError("Submission creator not found")

        assessment = await self._assessments.get_assessment_with_questions(submission.assessment)

        kept: list[Answer] = []
        for answer in submission.answers:
            if assessment.find_question(answer.question) is None:
                logger.warning(
                    "Removing orphan answer %s (question %s) from submission %s",
                    answer.id, answer.question, submission_id,
                )
                continue
            kept.append(answer)

        targets = target_student_ids(kept)
        scored, total = await self._score_answers(assessment, kept)

        submission.answers = scored
        submission.score = total
        submission.adjusted_score = None
        submission.submitted_at = now or utcnow()
        await self._store.save(submission)

        for student_id in targets:
            await self._ledger.regrade_mark(
                assessment.id, student_id, submission.user, submission.id, total
            )

        logger.info("Regraded submission %s (score=%s)", submission_id, total)
        return submission


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
_service: SubmissionService | None = None


def get_submission_service() -> SubmissionService:
    """Get the singleton service wired to the configured document store."""
    global _service
    if _service is None:
        store = get_document_store()
        _service = SubmissionService(
            store=store,
            assessments=StoreAssessmentProvider(store),
            users=StoreUserProvider(store),
            ledger=ResultLedger(store),
        )
    return _service
