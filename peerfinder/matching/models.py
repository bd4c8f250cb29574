"""Data models for the peer matching blueprint."""

from __future__ import annotations

from peerfinder.user.models import User


class RankedPeer(User, total=False):
    """A candidate peer annotated with how well they match a course search."""

    matchScore: int
    matchedCourses: list[str]
    totalCourses: int
