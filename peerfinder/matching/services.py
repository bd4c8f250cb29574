"""Service layer for peer search and ranking."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from peerfinder.core.courses import normalize_course, normalize_courses
from peerfinder.user.services.core import find_users_by_courses, public_profile

from .models import RankedPeer

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def score_peer(peer: dict[str, Any], search_set: set[str]) -> RankedPeer:
    """Annotate a candidate with its match score against ``search_set``.

    The score counts unique course codes on both sides, so a peer listing
    the same course twice is not counted twice. ``totalCourses`` is the raw
    length of the peer's course list.
    """
    courses = peer.get("coursesSeeking") or []
    peer_set = {code for code in (normalize_course(c) for c in courses) if code}
    matched = sorted(peer_set & search_set)

    ranked: RankedPeer = public_profile(peer)  # type: ignore[assignment]
    ranked["matchScore"] = len(matched)
    ranked["matchedCourses"] = matched
    ranked["totalCourses"] = len(courses)
    return ranked


def rank_candidates(
    candidates: Iterable[dict[str, Any]], search_set: set[str]
) -> list[RankedPeer]:
    """Score candidates and order them best match first.

    Ties on score go to the peer with more courses overall; exact ties keep
    the order the candidates came in.
    """
    scored = [score_peer(peer, search_set) for peer in candidates]
    matches = [peer for peer in scored if peer["matchScore"] > 0]
    matches.sort(key=lambda p: (p["matchScore"], p["totalCourses"]), reverse=True)
    return matches


class PeerMatchingService:
    """Service class for finding classmates who share courses."""

    @staticmethod
    def rank_peers(
        db: Client, requester_id: str, desired_courses: list[str]
    ) -> list[RankedPeer]:
        """Return peers sharing at least one desired course, best match first."""
        search_set = set(normalize_courses(desired_courses))
        if not search_set:
            return []

        # Raw labels are searched too so documents stored before course
        # codes were normalized on write are still found.
        raw_labels = [" ".join((c or "").split()) for c in desired_courses]
        query_values = sorted(search_set) + [r for r in raw_labels if r]

        candidates = find_users_by_courses(db, query_values, exclude_id=requester_id)
        return rank_candidates(candidates, search_set)
