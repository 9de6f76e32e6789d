"""Result ledger: per-student mark entries reconciled from submissions.

Each (assessment, student) pair owns one :class:`AssessmentResult` whose
``marks`` hold at most one entry per submission.  Every write is a single
atomic ``DocumentStore.update`` on that result, keyed by the submission id,
so graders saving concurrently for the same student cannot drop each
other's entries.  After each write the recompute hook refreshes the
result's aggregate; a failing hook fails the operation.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from errors import BadRequestError, NotFoundError
from models.submission import AssessmentResult, MarkEntry
from services.document_store import DocumentStore

logger = logging.getLogger(__name__)

RecalculateHook = Callable[[str], Awaitable[None]]


def _upsert(result: AssessmentResult, marker_id: str, submission_id: str, score: float) -> None:
    entry = result.find_mark(submission_id)
    if entry is None:
        result.marks.append(MarkEntry(marker=marker_id, submission=submission_id, score=score))
    else:
        entry.marker = marker_id
        entry.score = score


class AverageScoreRecalculator:
    """Default recompute hook: ``averageScore`` is the mean of the mark scores."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def __call__(self, result_id: str) -> None:
        def mutate(result: AssessmentResult | None) -> AssessmentResult:
            if result is None:
                raise NotFoundError(f"Result not found {result_id}")
            if not result.marks:
                raise BadRequestError("No marks to recalculate")
            result.average_score = sum(m.score for m in result.marks) / len(result.marks)
            return result

        result = await self._store.update(AssessmentResult, result_id, mutate)
        logger.debug("Recalculated result %s: average=%s", result_id, result.average_score)


class ResultLedger:
    """Writes mark entries for the students a submission grades."""

    def __init__(
        self,
        store: DocumentStore,
        recalculate: RecalculateHook | None = None,
    ) -> None:
        self._store = store
        self._recalculate = recalculate or AverageScoreRecalculator(store)

    async def _apply(
        self,
        result_id: str,
        mutate: Callable[[AssessmentResult | None], AssessmentResult],
    ) -> AssessmentResult:
        await self._store.update(AssessmentResult, result_id, mutate)
        await self._recalculate(result_id)
        return await self._store.get(AssessmentResult, result_id)

    async def get_result(self, assessment_id: str, student_id: str) -> AssessmentResult | None:
        return await self._store.get(
            AssessmentResult, AssessmentResult.key_for(assessment_id, student_id)
        )

    async def record_mark(
        self,
        assessment_id: str,
        student_id: str,
        marker_id: str,
        submission_id: str,
        score: float,
    ) -> AssessmentResult:
        """Add a new submission's mark, creating the student's result on first use."""
        result_id = AssessmentResult.key_for(assessment_id, student_id)

        def mutate(result: AssessmentResult | None) -> AssessmentResult:
            if result is None:
                logger.info(
                    "Creating assessment result for student %s in assessment %s",
                    student_id, assessment_id,
                )
                result = AssessmentResult(
                    id=result_id, assessment=assessment_id, student=student_id
                )
            _upsert(result, marker_id, submission_id, score)
            return result

        return await self._apply(result_id, mutate)

    async def update_mark(
        self,
        assessment_id: str,
        student_id: str,
        marker_id: str,
        submission_id: str,
        score: float,
    ) -> AssessmentResult:
        """Rewrite the mark of an edited submission; the entry must already exist."""
        result_id = AssessmentResult.key_for(assessment_id, student_id)

        def mutate(result: AssessmentResult | None) -> AssessmentResult:
            if result is None:
                raise NotFoundError(
                    "No previous assessment result found. Something went wrong with the flow."
                )
            entry = result.find_mark(submission_id)
            if entry is None:
                raise NotFoundError(
                    "Mark entry for this submission not found in assessment result."
                )
            entry.marker = marker_id
            entry.score = score
            return result

        return await self._apply(result_id, mutate)

    async def regrade_mark(
        self,
        assessment_id: str,
        student_id: str,
        marker_id: str,
        submission_id: str,
        score: float,
    ) -> AssessmentResult:
        """Upsert a regraded mark; the student's result must already exist."""
        result_id = AssessmentResult.key_for(assessment_id, student_id)

        def mutate(result: AssessmentResult | None) -> AssessmentResult:
            if result is None:
                raise NotFoundError(
                    f"No assessment result found for student {student_id} "
                    f"in assessment {assessment_id}"
                )
            _upsert(result, marker_id, submission_id, score)
            return result

        return await self._apply(result_id, mutate)
