"""User and account documents resolved by the submission core."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import Field

from models.base import CamelModel, new_id


class AccountRole(str, Enum):
    ADMIN = "admin"
    FACULTY = "Faculty member"
    TEACHING_ASSISTANT = "Teaching assistant"


class User(CamelModel):
    """A person: grader or graded student."""

    collection: ClassVar[str] = "users"

    id: str = Field(default_factory=new_id)
    name: str = ""


class Account(CamelModel):
    """Login account carrying the permission tier of a user."""

    collection: ClassVar[str] = "accounts"

    id: str = Field(default_factory=new_id)
    role: AccountRole = AccountRole.TEACHING_ASSISTANT
    user_id: str | None = None
