"""Shared pytest fixtures for the submission core.

Provides:
- ``store``: Fresh InMemoryDocumentStore per test
- ``assessments`` / ``users``: store-backed providers
- ``ledger``: ResultLedger with the default average-score hook
- ``settings``: Settings with defaults (no .env influence on policy flags)
- ``service``: SubmissionService wired to all of the above
- ``seeded``: the default assessment plus graders, students and accounts
"""

from __future__ import annotations

import pytest

from config.settings import Settings
from models.account import Account, AccountRole, User
from services.document_store import InMemoryDocumentStore
from services.providers import StoreAssessmentProvider, StoreUserProvider
from services.result_ledger import ResultLedger
from services.submission_service import SubmissionService
from tests.factories import make_assessment


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def assessments(store) -> StoreAssessmentProvider:
    return StoreAssessmentProvider(store)


@pytest.fixture
def users(store) -> StoreUserProvider:
    return StoreUserProvider(store)


@pytest.fixture
def ledger(store) -> ResultLedger:
    return ResultLedger(store)


@pytest.fixture
def settings() -> Settings:
    return Settings(enforce_unique_targets=False, privileged_roles=["Faculty member", "admin"])


@pytest.fixture
def service(store, assessments, users, ledger, settings) -> SubmissionService:
    return SubmissionService(store, assessments, users, ledger, settings=settings)


@pytest.fixture
async def seeded(assessments, users):
    """Default assessment, two graders, two students, TA/faculty/admin accounts."""
    for user_id, name in [
        ("grader-1", "Alice"),
        ("grader-2", "Bob"),
        ("faculty-1", "Prof. Tan"),
        ("student-1", "Carol"),
        ("student-2", "Dave"),
    ]:
        await users.save_user(User(id=user_id, name=name))
    await users.save_account(
        Account(id="acct-ta", role=AccountRole.TEACHING_ASSISTANT, user_id="grader-1")
    )
    await users.save_account(
        Account(id="acct-ta-2", role=AccountRole.TEACHING_ASSISTANT, user_id="grader-2")
    )
    await users.save_account(
        Account(id="acct-faculty", role=AccountRole.FACULTY, user_id="faculty-1")
    )
    await users.save_account(Account(id="acct-admin", role=AccountRole.ADMIN))
    return await assessments.save_assessment(make_assessment())
