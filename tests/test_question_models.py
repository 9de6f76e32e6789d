"""Tests for question / answer / submission models: parsing and invariants."""

import pytest
from pydantic import TypeAdapter, ValidationError

from models.answer import ANSWER_TYPE_FOR_QUESTION, Answer, NumberAnswer, TeamMemberSelectionAnswer
from models.account import Account, AccountRole, User
from models.assessment import Assessment, Granularity
from models.question import (
    QUESTION_TYPES,
    NumberQuestion,
    NumberScoringRange,
    Question,
    ScaleLabel,
    ScaleQuestion,
)
from models.submission import AssessmentResult, MarkEntry, Submission
from tests.factories import NOW, make_answers

question_adapter = TypeAdapter(Question)
answer_adapter = TypeAdapter(Answer)


# ── Discriminated parsing ────────────────────────────────────


class TestQuestionParsing:
    def test_scale_from_camel_case_document(self):
        question = question_adapter.validate_python({
            "id": "q1",
            "type": "Scale",
            "text": "Effort",
            "scaleMax": 5,
            "isScored": True,
            "labels": [
                {"value": 1, "label": "Low", "points": 0},
                {"value": 5, "label": "High", "points": 10},
            ],
        })
        assert isinstance(question, ScaleQuestion)
        assert question.scale_max == 5
        assert question.is_scored is True

    def test_number_range_from_document(self):
        question = question_adapter.validate_python({
            "id": "q2",
            "type": "Number",
            "maxNumber": 100,
            "isScored": True,
            "scoringMethod": "range",
            "scoringRanges": [{"minValue": 0, "maxValue": 50, "points": 0}],
        })
        assert isinstance(question, NumberQuestion)
        assert question.scoring_ranges[0].max_value == 50

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            question_adapter.validate_python({"id": "q3", "type": "Essay"})

    def test_every_question_type_has_answer_type(self):
        assert set(ANSWER_TYPE_FOR_QUESTION) == set(QUESTION_TYPES)
        for question_type, answer_type in ANSWER_TYPE_FOR_QUESTION.items():
            assert answer_type == f"{question_type} Answer"


class TestAnswerParsing:
    def test_team_member_selection(self):
        answer = answer_adapter.validate_python({
            "type": "Team Member Selection Answer",
            "question": "q-team",
            "selectedUserIds": ["s1", "s2"],
        })
        assert isinstance(answer, TeamMemberSelectionAnswer)
        assert answer.selected_user_ids == ["s1", "s2"]
        assert answer.score is None

    def test_payload_kept_loose_for_validator(self):
        answer = answer_adapter.validate_python(
            {"type": "Number Answer", "question": "q-number", "value": "abc"}
        )
        assert isinstance(answer, NumberAnswer)
        assert answer.value == "abc"

    def test_answers_get_ids(self):
        a, b = make_answers()[:2]
        assert a.id and b.id and a.id != b.id


# ── Definition-time invariants ───────────────────────────────


class TestScaleLabels:
    def _scale(self, labels):
        return ScaleQuestion(id="q", scale_max=5, labels=labels)

    def test_requires_two_labels(self):
        with pytest.raises(ValidationError, match="at least two labels"):
            self._scale([ScaleLabel(value=1, points=0)])

    def test_rejects_duplicate_values(self):
        with pytest.raises(ValidationError, match="Duplicate scale label"):
            self._scale([ScaleLabel(value=1, points=0), ScaleLabel(value=1, points=5)])

    def test_rejects_decreasing_points(self):
        with pytest.raises(ValidationError, match="must not decrease"):
            self._scale([ScaleLabel(value=1, points=10), ScaleLabel(value=5, points=0)])

    def test_unsorted_labels_accepted(self):
        question = self._scale([ScaleLabel(value=5, points=10), ScaleLabel(value=1, points=0)])
        assert len(question.labels) == 2


class TestNumberRanges:
    def test_range_method_requires_ranges(self):
        with pytest.raises(ValidationError, match="at least one scoring range"):
            NumberQuestion(id="q", max_number=10, scoring_method="range")

    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError, match="exceeds maxValue"):
            NumberQuestion(
                id="q",
                max_number=10,
                scoring_method="range",
                scoring_ranges=[NumberScoringRange(min_value=8, max_value=2, points=1)],
            )

    def test_direct_needs_no_ranges(self):
        question = NumberQuestion(id="q", max_number=10, scoring_method="direct", max_points=5)
        assert question.scoring_ranges is None


# ── Documents ────────────────────────────────────────────────


class TestDocuments:
    def test_assessment_find_question(self):
        assessment = Assessment(
            id="a",
            start_date=NOW,
            questions=[{"id": "q1", "type": "Short Response"}],
        )
        assert assessment.find_question("q1").type == "Short Response"
        assert assessment.find_question("missing") is None
        assert assessment.granularity == Granularity.TEAM

    def test_submission_dumps_camel_case(self):
        submission = Submission(assessment="a", user="u", answers=make_answers(), submitted_at=NOW)
        data = submission.model_dump(by_alias=True)
        assert "submittedAt" in data
        assert "adjustedScore" in data
        assert "submissionReleaseNumber" in data
        assert data["answers"][0]["selectedUserIds"] == ["student-1"]

    def test_submission_round_trips_through_json(self):
        submission = Submission(assessment="a", user="u", answers=make_answers(), submitted_at=NOW)
        restored = Submission.model_validate_json(submission.model_dump_json(by_alias=True))
        assert restored == submission
        assert restored.team_member_answers()[0].selected_user_ids == ["student-1"]

    def test_result_key_and_find_mark(self):
        result = AssessmentResult(
            id=AssessmentResult.key_for("a", "s"),
            assessment="a",
            student="s",
            marks=[MarkEntry(marker="g", submission="sub-1", score=4)],
        )
        assert result.id == "a:s"
        assert result.find_mark("sub-1").score == 4
        assert result.find_mark("sub-2") is None

    def test_account_documents(self):
        user = User(id="u1", name="Alice")
        account = Account(id="acct-1", role="Faculty member", user_id="u1")
        assert user.model_dump(by_alias=True) == {"id": "u1", "name": "Alice"}
        assert account.model_dump(by_alias=True) == {
            "id": "acct-1",
            "role": AccountRole.FACULTY,
            "userId": "u1",
        }
