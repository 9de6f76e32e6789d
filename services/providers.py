"""External collaborators consumed by the submission core.

Assessments, users and accounts are owned by other parts of the platform;
the core only reads them.  The abstract providers describe that contract and
the store-backed implementations read the same document store the core
writes submissions to.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from errors import NotFoundError
from models.account import Account, User
from models.assessment import Assessment
from services.document_store import DocumentStore

logger = logging.getLogger(__name__)


class AssessmentProvider(ABC):
    @abstractmethod
    async def get_assessment_with_questions(self, assessment_id: str) -> Assessment:
        """Return the assessment with its question set populated.

        Raises:
            NotFoundError: the assessment does not exist.
        """


class UserProvider(ABC):
    @abstractmethod
    async def get_user(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def get_account(self, account_id: str) -> Account | None: ...


class StoreAssessmentProvider(AssessmentProvider):
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get_assessment_with_questions(self, assessment_id: str) -> Assessment:
        assessment = await self._store.get(Assessment, assessment_id)
        if assessment is None:
            raise NotFoundError("Assessment not found")
        return assessment

    async def save_assessment(self, assessment: Assessment) -> Assessment:
        await self._store.save(assessment)
        return assessment


class StoreUserProvider(UserProvider):
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get_user(self, user_id: str) -> User | None:
        return await self._store.get(User, user_id)

    async def get_account(self, account_id: str) -> Account | None:
        return await self._store.get(Account, account_id)

    async def save_user(self, user: User) -> User:
        await self._store.save(user)
        return user

    async def save_account(self, account: Account) -> Account:
        await self._store.save(account)
        return account
