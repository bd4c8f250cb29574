"""Data models for the group blueprint."""

from __future__ import annotations

from typing import Any

from peerfinder.core.types import FirestoreDocument
from peerfinder.user.models import MemberName


class StudyGroup(FirestoreDocument, total=False):
    """A study group document in Firestore."""

    name: str
    creatorId: str
    courses: list[str]
    maxMembers: int
    members: list[str]
    isPublic: bool

    # Calculated fields
    memberNames: list[MemberName]


class JoinRequest(FirestoreDocument, total=False):
    """A request by a non-member to join a private study group."""

    groupId: str
    userId: str
    userName: str
    userEmail: str
    message: str | None
    status: str
    respondedAt: Any
