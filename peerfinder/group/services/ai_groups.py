"""Creation of study groups whose members are suggested by the AI service."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from flask import current_app

from peerfinder.constants import (
    AI_CANDIDATE_POOL_LIMIT,
    AI_GROUP_REQUESTS_COLLECTION,
    GROUPS_COLLECTION,
    MAX_GROUP_NAME_LENGTH,
)
from peerfinder.core.courses import normalize_course
from peerfinder.errors import ConflictError, NotFoundError, ValidationError
from peerfinder.user.services.core import find_users_by_courses, get_user_by_id
from peerfinder.utils import run_in_transaction

from ..utils import member_names, utcnow
from .group_service import build_group, validate_max_members

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from .suggestions import MemberSuggester


def _cooldown_ref(db: Client, user_id: str, course: str) -> DocumentReference:
    doc_id = f"{user_id}_{course}".replace("/", "-")
    return db.collection(AI_GROUP_REQUESTS_COLLECTION).document(doc_id)


def _check_cooldown(
    snapshot: DocumentSnapshot, course: str, cooldown: timedelta
) -> None:
    if cooldown <= timedelta(0) or not snapshot.exists:
        return
    requested_at = (snapshot.to_dict() or {}).get("requestedAt")
    if requested_at is None:
        return
    remaining = requested_at + cooldown - utcnow()
    if remaining > timedelta(0):
        hours = max(1, round(remaining.total_seconds() / 3600))
        raise ConflictError(
            f"You already requested an AI study group for {course}. "
            f"Try again in about {hours} hour(s)."
        )


def _commit_in_transaction(  # noqa: PLR0913
    transaction: Transaction,
    db: Client,
    cooldown_ref: DocumentReference,
    cooldown: timedelta,
    group_data: dict[str, Any],
) -> str:
    """Write the group and start the cooldown, unless another request won."""
    course = group_data["courses"][0]
    _check_cooldown(cooldown_ref.get(transaction=transaction), course, cooldown)

    group_ref = db.collection(GROUPS_COLLECTION).document()
    transaction.set(group_ref, group_data)
    transaction.set(
        cooldown_ref,
        {
            "userId": group_data["creatorId"],
            "course": course,
            "groupId": group_ref.id,
            "requestedAt": utcnow(),
        },
    )
    return group_ref.id


def ai_group_name(course: str) -> str:
    return f"{course} Study Group"[:MAX_GROUP_NAME_LENGTH]


class AIGroupService:
    """Service class for AI-assisted study group creation."""

    @staticmethod
    def create_ai_group(  # noqa: PLR0913
        db: Client,
        requester_id: str,
        course: str,
        group_size: Any,
        suggester: MemberSuggester,
        cooldown: timedelta,
    ) -> dict[str, Any]:
        """Create a private group for ``course`` filled with suggested classmates.

        ``group_size`` counts the requester. Nothing is written when the
        suggestion fails, so a failed attempt does not start the cooldown.
        The cooldown is checked up front and again in the transaction that
        writes the group, so concurrent requests create one group at most.
        """
        course_code = normalize_course(course)
        if not course_code:
            raise ValidationError("A course is required.")
        max_members = validate_max_members(group_size)

        requester = get_user_by_id(db, requester_id)
        if requester is None:
            raise NotFoundError("User not found.")

        cooldown_ref = _cooldown_ref(db, requester_id, course_code)
        _check_cooldown(cooldown_ref.get(), course_code, cooldown)

        lookup = [course_code, " ".join(course.split())]
        pool = find_users_by_courses(db, lookup, exclude_id=requester_id)
        pool = pool[:AI_CANDIDATE_POOL_LIMIT]
        if not pool:
            raise NotFoundError(
                f"No other students are looking for study partners in {course_code}."
            )

        suggestion = suggester.suggest_members(
            course_code, requester, pool, max_members - 1
        )
        current_app.logger.info(
            f"AI suggested {len(suggestion.member_ids)} members for "
            f"{requester_id} in {course_code}"
        )

        group_data, users = build_group(
            db,
            name=ai_group_name(course_code),
            creator_id=requester_id,
            course=course_code,
            max_members=max_members,
            is_public=False,
            invitee_ids=suggestion.member_ids,
        )
        group_id = run_in_transaction(
            db, _commit_in_transaction, db, cooldown_ref, cooldown, group_data
        )
        current_app.logger.info(f"AI study group {group_id} created by {requester_id}")
        return {
            **group_data,
            "id": group_id,
            "memberNames": member_names(group_data["members"], users),
            "rationale": suggestion.rationale,
        }
