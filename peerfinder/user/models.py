"""Data models for the user blueprint."""

from __future__ import annotations

from typing import TypedDict

from peerfinder.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    name: str
    email: str
    passwordHash: str
    coursesSeeking: list[str]
    availability: str
    year: str
    bio: str
    imageUrl: str


class MemberName(TypedDict):
    """A resolved group member, as shown next to a group."""

    id: str
    name: str
