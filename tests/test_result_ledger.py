"""Tests for the result ledger: lazy creation, upserts and the recompute hook."""

import asyncio

import pytest

from errors import BadRequestError, NotFoundError
from models.submission import AssessmentResult
from services.result_ledger import AverageScoreRecalculator, ResultLedger


class TestRecordMark:
    async def test_creates_result_lazily(self, ledger):
        result = await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        assert result.id == "a:s1"
        assert [(m.marker, m.submission, m.score) for m in result.marks] == [("g1", "sub-1", 8)]
        assert result.average_score == 8

    async def test_second_submission_appends_and_averages(self, ledger):
        await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        result = await ledger.record_mark("a", "s1", "g2", "sub-2", 4)
        assert len(result.marks) == 2
        assert result.average_score == 6

    async def test_same_submission_upserts(self, ledger):
        await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        result = await ledger.record_mark("a", "s1", "g1", "sub-1", 3)
        assert len(result.marks) == 1
        assert result.marks[0].score == 3

    async def test_students_kept_apart(self, ledger):
        await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        await ledger.record_mark("a", "s2", "g1", "sub-1", 8)
        assert (await ledger.get_result("a", "s1")).student == "s1"
        assert (await ledger.get_result("a", "s2")).student == "s2"
        assert await ledger.get_result("b", "s1") is None

    async def test_concurrent_graders_keep_every_entry(self, ledger):
        await asyncio.gather(*(
            ledger.record_mark("a", "s1", f"g{i}", f"sub-{i}", i) for i in range(10)
        ))
        result = await ledger.get_result("a", "s1")
        assert sorted(m.submission for m in result.marks) == sorted(f"sub-{i}" for i in range(10))
        assert result.average_score == pytest.approx(4.5)


class TestUpdateMark:
    async def test_missing_result(self, ledger):
        with pytest.raises(NotFoundError, match="No previous assessment result found"):
            await ledger.update_mark("a", "s1", "g1", "sub-1", 5)

    async def test_missing_entry(self, ledger):
        await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        with pytest.raises(NotFoundError, match="Mark entry for this submission not found"):
            await ledger.update_mark("a", "s1", "g1", "sub-2", 5)

    async def test_rewrites_marker_and_score(self, ledger):
        await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        result = await ledger.update_mark("a", "s1", "faculty", "sub-1", 2)
        assert (result.marks[0].marker, result.marks[0].score) == ("faculty", 2)
        assert result.average_score == 2


class TestRegradeMark:
    async def test_missing_result(self, ledger):
        with pytest.raises(NotFoundError, match="No assessment result found for student s1 in assessment a"):
            await ledger.regrade_mark("a", "s1", "g1", "sub-1", 5)

    async def test_appends_missing_entry(self, ledger):
        await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        result = await ledger.regrade_mark("a", "s1", "g1", "sub-2", 2)
        assert len(result.marks) == 2
        assert result.average_score == 5


class TestRecalculateHook:
    async def test_custom_hook_called_with_result_id(self, store):
        seen = []

        async def hook(result_id):
            seen.append(result_id)

        ledger = ResultLedger(store, recalculate=hook)
        result = await ledger.record_mark("a", "s1", "g1", "sub-1", 8)
        assert seen == ["a:s1"]
        assert result.average_score == 0

    async def test_failing_hook_fails_operation(self, store):
        async def hook(result_id):
            raise RuntimeError("aggregate service down")

        ledger = ResultLedger(store, recalculate=hook)
        with pytest.raises(RuntimeError, match="aggregate service down"):
            await ledger.record_mark("a", "s1", "g1", "sub-1", 8)

    async def test_average_requires_marks(self, store):
        await store.save(AssessmentResult(id="a:s1", assessment="a", student="s1"))
        with pytest.raises(BadRequestError, match="No marks to recalculate"):
            await AverageScoreRecalculator(store)("a:s1")

    async def test_average_requires_result(self, store):
        with pytest.raises(NotFoundError):
            await AverageScoreRecalculator(store)("a:missing")
